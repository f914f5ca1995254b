"""Fixed hourly booking grid shared by availability listing and validation"""

from datetime import date, datetime, time

FIRST_SLOT_HOUR = 8
# Exclusive: the last bookable slot starts at 16:00
CLOSING_HOUR = 17


def candidate_slots() -> tuple[str, ...]:
    """Ordered slot labels "08:00" .. "16:00" """
    return tuple(f"{hour:02d}:00" for hour in range(FIRST_SLOT_HOUR, CLOSING_HOUR))


def is_valid_slot(label: str) -> bool:
    return label in candidate_slots()


def slot_start(day: date, label: str) -> datetime:
    hour, minute = (int(part) for part in label.split(":"))
    return datetime.combine(day, time(hour, minute))
