from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional
from dateutil.relativedelta import relativedelta, MO, SU


def format_long_date(value: datetime) -> str:
    """June 23, 2025"""
    return f"{value:%B} {value.day}, {value.year}"


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    @classmethod
    def current_week(cls, now: Optional[datetime] = None) -> "DateRange":
        """Monday 00:00 through Sunday 23:59:59.999 of the week containing `now`."""
        now = now or datetime.now()
        monday = datetime.combine((now + relativedelta(weekday=MO(-1))).date(), time.min)
        sunday = datetime.combine((monday + relativedelta(weekday=SU(+1))).date(), time.max)
        return cls(start=monday, end=sunday)

    @property
    def start_label(self) -> str:
        return format_long_date(self.start)

    @property
    def end_label(self) -> str:
        return format_long_date(self.end)

    def formatted(self) -> str:
        return f"{self.start_label} - {self.end_label}"

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end
