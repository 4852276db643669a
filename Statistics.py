from params import TABLE_COLUMN_WIDTH

SUMMARY_COLUMNS = ["Policy", "Total Calls", "Successful", "Success(%)",
                   "Blocked", "Blocked(%)", "Avg Hops", "Avg Delay"]


class PolicyStatistics:
    def __init__(self):
        self.total_calls = 0
        self.admitted = 0
        self.blocked = 0
        self.total_hops = 0
        self.total_delay = 0.0

    def record_admitted(self, route):
        self.total_calls += 1
        self.admitted += 1
        self.total_hops += route.hops
        self.total_delay += route.delay

    def record_blocked(self):
        self.total_calls += 1
        self.blocked += 1

    def summary(self):
        """Counts, percentages and per-admitted-call averages.

        Averages are 0.0 when nothing was admitted and percentages are 0.0
        when there were no calls at all.
        """
        total = self.total_calls
        return {
            "total_calls": total,
            "admitted": self.admitted,
            "admitted_pct": self.admitted / total * 100 if total else 0.0,
            "blocked": self.blocked,
            "blocked_pct": self.blocked / total * 100 if total else 0.0,
            "avg_hops": self.total_hops / self.admitted if self.admitted else 0.0,
            "avg_delay": self.total_delay / self.admitted if self.admitted else 0.0,
        }


def format_header(width=TABLE_COLUMN_WIDTH):
    titles = "\t".join(f"{title:<{width}}" for title in SUMMARY_COLUMNS)
    return titles + "\n" + "=" * ((width + 4) * len(SUMMARY_COLUMNS))


def format_row(policy, summary, width=TABLE_COLUMN_WIDTH):
    cells = [
        f"{policy:<{width}}",
        f"{summary['total_calls']:<{width}d}",
        f"{summary['admitted']:<{width}d}",
        f"{summary['admitted_pct']:<{width}.2f}",
        f"{summary['blocked']:<{width}d}",
        f"{summary['blocked_pct']:<{width}.2f}",
        f"{summary['avg_hops']:<{width}.4f}",
        f"{summary['avg_delay']:<{width}.4f}",
    ]
    return "\t".join(cells)
