import time
from typing import Optional

from bribe_distributor.shared.exceptions import ValidationException


def get_previous_deadline(
    start_time: int, duration: int, now: Optional[int] = None
) -> int:
    """
    Get the most recent proposal deadline at or before ``now``.

    Deadlines fall every ``duration`` seconds starting at ``start_time``.
    """
    now = int(time.time()) if now is None else now

    if duration <= 0:
        raise ValidationException("Duration must be positive")
    if start_time > now:
        raise ValidationException("Start time is in the future")

    periods_since_start = (now - start_time) // duration
    return start_time + periods_since_start * duration
