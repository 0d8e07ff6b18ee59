"""Date windows for time-scoped naming records and snapshot look-ahead."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(frozen=True, slots=True)
class ValidityWindow:
    """Half-open ``[valid_from, valid_to)`` interval; ``None`` bounds are open."""

    valid_from: date | None = None
    valid_to: date | None = None

    def __post_init__(self) -> None:
        if (
            self.valid_from is not None
            and self.valid_to is not None
            and self.valid_to < self.valid_from
        ):
            raise ValueError(
                f"Validity window ends before it starts: {self.valid_from} > {self.valid_to}"
            )

    def contains(self, day: date) -> bool:
        if self.valid_from is not None and day < self.valid_from:
            return False
        return not (self.valid_to is not None and day >= self.valid_to)


def days_between(earlier: date, later: date) -> int:
    """Absolute distance in whole days."""

    return abs((later - earlier).days)


def within_lookahead(candidate: date, anchor: date, *, lookahead_days: int) -> bool:
    """Return whether ``candidate`` is on/before ``anchor`` or at most ``lookahead_days`` after."""

    if lookahead_days < 0:
        raise ValueError("Look-ahead duration must be non-negative")
    return candidate <= anchor + timedelta(days=lookahead_days)


__all__ = ["ValidityWindow", "days_between", "within_lookahead"]
