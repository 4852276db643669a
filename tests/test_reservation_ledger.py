import numpy as np
import pytest

from CallEvent import CallEvent
from CostFunctions import ShortestHop
from PathSearch import find_route
from ReservationLedger import ReservationLedger
from Tool import ReservationError


def _call(call_id, source="A", destination="D"):
    return CallEvent(call_id, 0.0, 1.0, source, destination)


def test_reserve_takes_one_circuit_per_link(square):
    ledger = ReservationLedger(square)
    call = _call(0)
    ledger.reserve(call, find_route(square, "A", "D", ShortestHop()))

    assert square.available("A", "B") == 1
    assert square.available("B", "D") == 1
    assert square.available("A", "C") == 10
    assert call.reserved_links == {(0, 1): 1, (1, 2): 1}
    assert ledger.held_on("B", "A") == 1
    assert ledger.active_calls == 1


def test_release_restores_exactly(square):
    ledger = ReservationLedger(square)
    before = square.available_matrix.copy()
    calls = [_call(i) for i in range(2)]
    for call in calls:
        ledger.reserve(call, find_route(square, "A", "D", ShortestHop()))

    assert sum(ledger.release(call) for call in calls) == 4
    assert np.array_equal(square.available_matrix, before)
    assert calls[0].reserved_links == {}
    assert ledger.active_calls == 0


def test_release_twice_is_a_no_op(square):
    ledger = ReservationLedger(square)
    call = _call(0)
    ledger.reserve(call, find_route(square, "A", "D", ShortestHop()))
    ledger.release(call)
    after_first = square.available_matrix.copy()

    assert ledger.release(call) == 0
    assert np.array_equal(square.available_matrix, after_first)


def test_many_cycles_do_not_drift(mesh):
    ledger = ReservationLedger(mesh)
    route = find_route(mesh, "A", "D", ShortestHop())
    for i in range(1000):
        call = _call(i)
        ledger.reserve(call, route)
        ledger.release(call)
    assert np.array_equal(mesh.available_matrix, mesh.capacity_matrix)


def test_double_reservation_is_an_error(square):
    ledger = ReservationLedger(square)
    call = _call(0)
    route = find_route(square, "A", "D", ShortestHop())
    ledger.reserve(call, route)
    with pytest.raises(ReservationError):
        ledger.reserve(call, route)


def test_reserving_a_full_link_is_an_error(single_link):
    ledger = ReservationLedger(single_link)
    route = find_route(single_link, "A", "B", ShortestHop())
    ledger.reserve(_call(0, "A", "B"), route)
    ledger.reserve(_call(1, "A", "B"), route)
    with pytest.raises(ReservationError):
        ledger.reserve(_call(2, "A", "B"), route)
    assert single_link.available("A", "B") == 0


def test_conservation_check_catches_tampering(square):
    ledger = ReservationLedger(square)
    ledger.reserve(_call(0), find_route(square, "A", "D", ShortestHop()))
    ledger.check_conservation()

    square.available_matrix[0, 3] += 1
    with pytest.raises(ReservationError, match="A-C"):
        ledger.check_conservation()
