"""Slot and pricing rules for new bookings"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ...models import DAY_PERIODS, WEEKDAYS
from ...shared.validators import minutes_of_day


def duration_minutes(start: str, end: str) -> int:
    return minutes_of_day(end) - minutes_of_day(start)


def calculate_total(hourly_rate: float, minutes: int) -> float:
    """rate * minutes / 60, rounded half-up to a whole amount"""
    amount = Decimal(str(hourly_rate)) * Decimal(minutes) / Decimal(60)
    return float(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def windows_overlap(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    """Half-open [start, end) overlap"""
    return minutes_of_day(a_start) < minutes_of_day(b_end) and minutes_of_day(a_end) > minutes_of_day(b_start)


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def available_windows(availability: Iterable[str], day: date) -> list[tuple[int, int]]:
    """
    Bookable minute ranges for a date, built from "<Weekday> <Period>" slots.
    Adjacent periods (Morning + Afternoon) merge into one range.
    """
    weekday = weekday_name(day)
    ranges = []
    for slot in availability:
        slot_day, _, period = slot.partition(" ")
        if slot_day != weekday or period not in DAY_PERIODS:
            continue
        start, end = DAY_PERIODS[period]
        ranges.append((minutes_of_day(start), minutes_of_day(end)))

    merged: list[tuple[int, int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def is_within_availability(availability: Iterable[str], day: date, start: str, end: str) -> bool:
    start_min, end_min = minutes_of_day(start), minutes_of_day(end)
    return any(lo <= start_min and end_min <= hi for lo, hi in available_windows(availability, day))
