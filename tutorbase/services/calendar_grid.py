"""Month grid cells for the availability calendar.

Weeks run Sunday first. The grid is unpadded: it holds ``leading_blanks``
empty cells followed by exactly one cell per day of the month.
"""

from datetime import date, timedelta

from pydantic import BaseModel

from tutorbase.services.availability_aggregator import AvailabilitySlotView, MonthAvailabilityIndex, YearMonth


class DayCell(BaseModel):
    date: date
    is_past: bool
    is_today: bool
    is_writable: bool
    slots: list[AvailabilitySlotView]


class MonthGrid(BaseModel):
    month: str
    leading_blanks: int
    days: list[DayCell]

    @property
    def total_cells(self) -> int:
        return self.leading_blanks + len(self.days)


def sunday_first_weekday(day: date) -> int:
    """0 for Sunday through 6 for Saturday."""
    return (day.weekday() + 1) % 7


def is_date_writable(day: date, today: date) -> bool:
    return day >= today


def build_month_grid(month: YearMonth, index: MonthAvailabilityIndex, today: date | None = None) -> MonthGrid:
    today = today or date.today()

    days: list[DayCell] = []
    current_day = month.first_day
    while current_day <= month.last_day:
        days.append(
            DayCell(
                date=current_day,
                is_past=current_day < today,
                is_today=current_day == today,
                is_writable=is_date_writable(current_day, today),
                slots=list(index.get(current_day.isoformat(), [])),
            )
        )
        current_day += timedelta(days=1)

    return MonthGrid(
        month=str(month),
        leading_blanks=sunday_first_weekday(month.first_day),
        days=days,
    )
