"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month (Jan 31 + 1 -> Feb 28/29)"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def advance(from_date: date, frequency: str, steps: int) -> date:
    """Date of the installment `steps` periods after from_date for a plan frequency"""
    if frequency == "weekly":
        return from_date + timedelta(days=7 * steps)
    if frequency == "monthly":
        return add_months(from_date, steps)
    if frequency == "quarterly":
        return add_months(from_date, 3 * steps)
    if frequency == "biannual":
        return add_months(from_date, 6 * steps)
    if frequency == "annual":
        return add_months(from_date, 12 * steps)
    # one_time and custom have no cadence
    return from_date
