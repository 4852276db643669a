import numba as nb
import numpy as np


@nb.njit(cache=True)
def update_link_units(available, us, vs, deltas):
    # available is kept symmetric, so both directions move together
    for k in range(us.shape[0]):
        u = us[k]
        v = vs[k]
        available[u, v] += deltas[k]
        if u != v:
            available[v, u] += deltas[k]


@nb.njit(cache=True)
def free_ratio_matrix(available, capacity):
    n = available.shape[0]
    ratios = np.zeros((n, n))
    for i in range(n):
        for j in range(n):
            if capacity[i, j] > 0:
                ratios[i, j] = available[i, j] / capacity[i, j]
    return ratios


@nb.njit(cache=True)
def utilisation_matrix(available, capacity):
    n = available.shape[0]
    load = np.zeros((n, n))
    for i in range(n):
        for j in range(n):
            if capacity[i, j] > 0:
                load[i, j] = 1.0 - available[i, j] / capacity[i, j]
    return load
