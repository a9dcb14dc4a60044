"""Vehicle class - the aggregate for one garage vehicle and its maintenance history."""

import copy
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from dateutil import parser as date_parser

from .calculations import clamp_speed, truck_increment
from .errors import CapacityExceeded, ValidationError
from .events import ActionResult
from .maintenance_record import MaintenanceRecord


class Variant(Enum):
    """Vehicle kinds. The value is the wire discriminator (variantTag)."""

    BASE = "base"
    SPORT = "sport"
    TRUCK = "truck"


@dataclass(frozen=True)
class VariantSpec:
    """Per-variant constants."""

    max_speed: int
    default_image: str
    label: str


VARIANTS = {
    Variant.BASE: VariantSpec(max_speed=180, default_image="default_car.png", label="Car"),
    Variant.SPORT: VariantSpec(max_speed=250, default_image="default_sport.png", label="Sports car"),
    Variant.TRUCK: VariantSpec(max_speed=140, default_image="default_truck.png", label="Truck"),
}

BASE_INCREMENT = 10
SPORT_INCREMENT = 15
SPORT_TURBO_INCREMENT = 25
BRAKE_STEP = 15

EARLIEST = datetime.min.replace(tzinfo=timezone.utc)

EDITABLE_FIELDS = ("model", "color", "plate", "year", "cnh_expiry", "image_ref")


def parse_year(value: Any) -> Optional[int]:
    """Year as int, or None for blank/unparseable input."""
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def parse_cnh_expiry(value: Any) -> Optional[date]:
    """
    Credential expiry as a calendar date, or None.

    Accepts date objects, datetimes, 'YYYY-MM-DD' strings and full ISO
    timestamps. Everything is read in UTC so the day never shifts.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            parsed = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.date()
    return None


def parse_amount(value: Any) -> Optional[Union[int, float]]:
    """Finite number from user input (int when integral), or None."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount):
        return None
    return int(amount) if amount.is_integer() else amount


class SportPayload:
    """State only sports cars have."""

    def __init__(self, turbo_on: bool = False):
        self.turbo_on = bool(turbo_on)


class TruckPayload:
    """State only trucks have. Capacity is fixed at creation."""

    def __init__(self, cargo_capacity: Any = 0, current_cargo: Any = 0):
        capacity = parse_amount(cargo_capacity)
        self._cargo_capacity = int(capacity) if capacity and capacity > 0 else 0
        cargo = parse_amount(current_cargo) or 0
        self.current_cargo = min(max(cargo, 0), self._cargo_capacity)

    @property
    def cargo_capacity(self) -> int:
        return self._cargo_capacity


def history_sort_key(record: MaintenanceRecord) -> datetime:
    return record.when or EARLIEST


class Vehicle:
    """A garage vehicle. Behavior differs per variant through the VARIANTS table."""

    def __init__(
        self,
        id: Any,
        model: Any,
        variant: Union[Variant, str] = Variant.BASE,
        color: Any = "",
        image_ref: Optional[str] = None,
        plate: Any = "",
        year: Any = None,
        cnh_expiry: Any = None,
        cargo_capacity: Any = 0,
    ):
        if id is None or not str(id).strip():
            raise ValidationError("ID and model are required to create a vehicle.")
        if model is None or not str(model).strip():
            raise ValidationError("ID and model are required to create a vehicle.")
        try:
            self.variant = Variant(variant)
        except ValueError:
            raise ValidationError(f"Unknown vehicle type: {variant}") from None

        self._id = str(id).strip()
        self.model = str(model).strip()
        self.color = str(color or "")
        self.image_ref = image_ref or self.spec.default_image
        self.plate = str(plate or "").strip().upper()
        self.year = parse_year(year)
        self.cnh_expiry = parse_cnh_expiry(cnh_expiry)
        self.is_on = False
        self.speed = 0
        self.maintenance_history: List[MaintenanceRecord] = []

        if self.variant is Variant.SPORT:
            self.payload = SportPayload()
        elif self.variant is Variant.TRUCK:
            self.payload = TruckPayload(cargo_capacity)
        else:
            self.payload = None

    def __repr__(self) -> str:
        return f"Vehicle(id={self.id!r}, model={self.model!r}, variant={self.variant.value})"

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def spec(self) -> VariantSpec:
        return VARIANTS[self.variant]

    @property
    def max_speed(self) -> int:
        return self.spec.max_speed

    @property
    def label(self) -> str:
        return self.spec.label

    @property
    def turbo_on(self) -> Optional[bool]:
        """Turbo state for sports cars, None for other variants."""
        if self.variant is Variant.SPORT:
            return self.payload.turbo_on
        return None

    @property
    def cargo_capacity(self) -> Optional[int]:
        if self.variant is Variant.TRUCK:
            return self.payload.cargo_capacity
        return None

    @property
    def current_cargo(self) -> Optional[Union[int, float]]:
        if self.variant is Variant.TRUCK:
            return self.payload.current_cargo
        return None

    # -------------------------------------------------------------------------
    # Driving
    # -------------------------------------------------------------------------

    def power_on(self) -> ActionResult:
        if self.is_on:
            return ActionResult.refused("power on", f"The {self.label.lower()} is already on.")
        self.is_on = True
        return ActionResult.success("powered on")

    def power_off(self) -> ActionResult:
        if not self.is_on:
            return ActionResult.refused("power off", f"The {self.label.lower()} is already off.")
        if self.speed > 0:
            return ActionResult.refused("power off", "Stop the vehicle before turning it off!")
        self.is_on = False
        return ActionResult.success("powered off")

    def _increment(self) -> float:
        if self.variant is Variant.SPORT:
            return SPORT_TURBO_INCREMENT if self.payload.turbo_on else SPORT_INCREMENT
        if self.variant is Variant.TRUCK:
            return truck_increment(self.payload.current_cargo, self.payload.cargo_capacity)
        return BASE_INCREMENT

    def accelerate(self) -> ActionResult:
        if not self.is_on:
            return ActionResult.refused(
                "accelerate", f"Turn the {self.label.lower()} on to accelerate!"
            )
        self.speed = clamp_speed(self.speed + self._increment(), self.max_speed)
        return ActionResult.success("accelerated")

    def brake(self) -> ActionResult:
        if self.speed <= 0:
            return ActionResult.success("braked", changed=False)
        self.speed = max(0, self.speed - BRAKE_STEP)
        return ActionResult.success("braked")

    def honk(self) -> ActionResult:
        return ActionResult.success("honked", f"{self.model} honked!", changed=False)

    def toggle_turbo(self) -> ActionResult:
        if self.variant is not Variant.SPORT:
            return ActionResult.refused("toggle turbo", f"{self.label} has no turbo.")
        if not self.is_on:
            return ActionResult.refused("toggle turbo", "Turn the car on to activate the turbo!")
        self.payload.turbo_on = not self.payload.turbo_on
        state = "on" if self.payload.turbo_on else "off"
        return ActionResult.success("turbo toggled", f"Turbo {state}.")

    def load_cargo(self, weight: Any) -> ActionResult:
        if self.variant is not Variant.TRUCK:
            return ActionResult.refused("load cargo", f"{self.label} cannot carry cargo.")
        amount = parse_amount(weight)
        if amount is None or amount <= 0:
            return ActionResult.refused(
                "load cargo",
                "Invalid weight to load. Use a positive number.",
                ValidationError,
            )
        if self.payload.current_cargo + amount > self.payload.cargo_capacity:
            return ActionResult.refused(
                "load cargo",
                f"Cannot load {amount}kg. Capacity ({self.payload.cargo_capacity}kg) exceeded!",
                CapacityExceeded,
            )
        self.payload.current_cargo += amount
        return ActionResult.success("cargo loaded")

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def add_maintenance(self, record: MaintenanceRecord) -> ActionResult:
        """Insert a valid record, keeping history newest first."""
        if not isinstance(record, MaintenanceRecord) or not record.is_valid():
            return ActionResult.refused(
                "add maintenance", "Invalid maintenance data.", ValidationError
            )
        self.maintenance_history = sorted(
            self.maintenance_history + [record], key=history_sort_key, reverse=True
        )
        return ActionResult.success("maintenance added")

    def clear_maintenance_history(self) -> ActionResult:
        self.maintenance_history = []
        return ActionResult.success("history cleared")

    # -------------------------------------------------------------------------
    # Editing and persistence support
    # -------------------------------------------------------------------------

    def apply_patch(self, patch: Dict[str, Any]) -> ActionResult:
        """
        Apply an edit form. Validates everything before touching state.

        Keys: model, color, plate, year, cnh_expiry, image_ref. A blank
        image_ref keeps the current image.
        """
        unknown = set(patch) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot edit field(s): {', '.join(sorted(unknown))}")
        if "model" in patch and (patch["model"] is None or not str(patch["model"]).strip()):
            raise ValidationError("Model is required.")

        if "model" in patch:
            self.model = str(patch["model"]).strip()
        if "color" in patch:
            self.color = str(patch["color"] or "")
        if "plate" in patch:
            self.plate = str(patch["plate"] or "").strip().upper()
        if "year" in patch:
            self.year = parse_year(patch["year"])
        if "cnh_expiry" in patch:
            self.cnh_expiry = parse_cnh_expiry(patch["cnh_expiry"])
        if patch.get("image_ref"):
            self.image_ref = patch["image_ref"]
        return ActionResult.success("edited", changed=bool(patch))

    def snapshot(self) -> "Vehicle":
        """Deep copy used to roll back a failed optimistic change."""
        return copy.deepcopy(self)

    def restore(self, snapshot: "Vehicle") -> None:
        """Return to a snapshot's state, in place (references stay valid)."""
        if snapshot.id != self.id:
            raise ValidationError("Snapshot belongs to another vehicle.")
        self.__dict__.update(copy.deepcopy(snapshot.__dict__))

    def serialize(self) -> Dict[str, Any]:
        """Wire record. Invalid maintenance records are left out."""
        history = [record.serialize() for record in self.maintenance_history]
        data: Dict[str, Any] = {
            "id": self.id,
            "model": self.model,
            "color": self.color,
            "imageRef": self.image_ref,
            "plate": self.plate,
            "year": self.year,
            "cnhExpiry": self.cnh_expiry.isoformat() if self.cnh_expiry else None,
            "isOn": self.is_on,
            "speed": self.speed,
            "maintenanceHistory": [h for h in history if h is not None],
            "variantTag": self.variant.value,
        }
        if self.variant is Variant.SPORT:
            data["turboOn"] = self.payload.turbo_on
        elif self.variant is Variant.TRUCK:
            data["cargoCapacity"] = self.payload.cargo_capacity
            data["currentCargo"] = self.payload.current_cargo
        return data
