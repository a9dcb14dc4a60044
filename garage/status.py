"""CnhStatus enum for driving credential expiry levels."""

from enum import Enum


class CnhStatus(Enum):
    """Credential expiry categories. Lower value = more urgent."""

    EXPIRED = 1
    EXPIRING_SOON = 2
    OK = 3
    NONE = 4  # No expiry date recorded
