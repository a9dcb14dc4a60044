"""
Personal garage models and client-side state.

This package provides the garage domain and its sync layer:
- CnhStatus: Driver's license urgency levels (EXPIRED, EXPIRING_SOON, OK, NONE)
- MaintenanceRecord: Performed or scheduled service events
- Vehicle: Car, sports car or truck with its maintenance history
- GarageRepository: Vehicle collection synced with the persistence service
- SelectionState: Active vehicle and what the display shows for it
- GarageSession: Sign-in / sign-out lifecycle
- RemoteStore: HTTP client for the persistence service
"""

from .status import CnhStatus
from .errors import (
    GarageError,
    ValidationError,
    CapacityExceeded,
    InvalidState,
    PersistenceFailure,
    VehicleNotFound,
    AuthExpired,
)
from .events import ActionResult, RepositoryEvent
from .maintenance_record import MaintenanceRecord
from .vehicle import Variant, Vehicle
from .calculations import check_cnh_status, gauge_angle, truck_increment
from .loader import vehicle_from_dict, validate_record
from .repository import GarageRepository
from .selection import DisplayState, SelectionState, cnh_alerts
from .session import GarageSession
from .store import RemoteStore

__all__ = [
    "CnhStatus",
    "GarageError",
    "ValidationError",
    "CapacityExceeded",
    "InvalidState",
    "PersistenceFailure",
    "VehicleNotFound",
    "AuthExpired",
    "ActionResult",
    "RepositoryEvent",
    "MaintenanceRecord",
    "Variant",
    "Vehicle",
    "check_cnh_status",
    "gauge_angle",
    "truck_increment",
    "vehicle_from_dict",
    "validate_record",
    "GarageRepository",
    "DisplayState",
    "SelectionState",
    "cnh_alerts",
    "GarageSession",
    "RemoteStore",
]
