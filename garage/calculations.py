"""Helper functions for speed, gauge and credential expiry calculations."""

import math
from datetime import date
from typing import Optional

from .status import CnhStatus

CNH_SOON_DAYS = 30


def clamp_speed(speed: float, max_speed: float) -> float:
    """Keep speed inside [0, max_speed]."""
    return min(max(speed, 0), max_speed)


def round_half_up(value: float) -> int:
    """Round .5 upwards, the way the dashboard always has (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def truck_increment(current_cargo: float, cargo_capacity: float) -> int:
    """
    Speed gained by one truck acceleration.

    - Load factor runs from 1.0 (empty) down to ~0.33 (full)
    - A zero capacity divides by 1 instead
    - Never less than 1
    """
    load_factor = 1 - current_cargo / (cargo_capacity * 1.5 or 1)
    return max(1, round_half_up(8 * load_factor))


def gauge_angle(speed: float, max_speed: float) -> float:
    """Needle angle in degrees: 0..max_speed mapped to -90..90."""
    angle = (speed / max_speed) * 180 - 90
    return min(90.0, max(-90.0, angle))


def progress_fraction(speed: float, max_speed: float) -> float:
    """Fraction of the acceleration bar to fill."""
    return speed / max_speed


def days_until(expiry: date, today: date) -> int:
    """Whole days from today to expiry (negative once expired)."""
    return expiry.toordinal() - today.toordinal()


def check_cnh_status(expiry: Optional[date], today: date) -> CnhStatus:
    """Determine credential status by comparing dates only (no time of day)."""
    if expiry is None:
        return CnhStatus.NONE
    remaining = days_until(expiry, today)
    if remaining < 0:
        return CnhStatus.EXPIRED
    if remaining <= CNH_SOON_DAYS:
        return CnhStatus.EXPIRING_SOON
    return CnhStatus.OK
