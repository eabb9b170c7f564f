from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from config import get_settings


@dataclass(frozen=True)
class Month:
    year: int
    month: int

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def label(self) -> str:
        return self.start.strftime("%b %y")

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return self.shift(1).start - date.resolution

    @property
    def days(self) -> int:
        return self.end.day

    def shift(self, count: int) -> "Month":
        index = (self.year * 12) + (self.month - 1) + count
        return Month(index // 12, (index % 12) + 1)

    @classmethod
    def of(cls, d: date) -> "Month":
        return cls(d.year, d.month)


def today() -> date:
    settings = get_settings()
    return datetime.now(ZoneInfo(settings.timezone)).date()


def parse_month(value: str) -> Month:
    """Parse a ``YYYY-MM`` string."""
    parts = value.strip().split("-")
    if len(parts) != 2 or len(parts[0]) != 4 or len(parts[1]) != 2:
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM")
    try:
        year = int(parts[0])
        month = int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM") from exc
    if not 1 <= month <= 12 or year < 1970:
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM")
    return Month(year, month)


def resolve_month(value: Optional[str], *, on: Optional[date] = None) -> Month:
    if not value:
        return Month.of(on or today())
    return parse_month(value)


def trailing_months(end: Month, count: int) -> list[Month]:
    """``count`` consecutive months ending with (and including) ``end``."""
    if count < 1:
        raise ValueError("count must be positive")
    return [end.shift(offset) for offset in range(-(count - 1), 1)]
