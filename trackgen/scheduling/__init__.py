"""Schedule recurrence and due-schedule selection."""

from trackgen.scheduling.engine import (
    compute_next_run,
    find_due,
    initial_next_run,
    parse_run_time,
)

__all__ = ["compute_next_run", "find_due", "initial_next_run", "parse_run_time"]
