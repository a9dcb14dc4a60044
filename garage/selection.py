"""Selection state - which vehicle is shown and what the display shows for it."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Tuple

from .calculations import check_cnh_status, days_until, gauge_angle, progress_fraction
from .events import RepositoryEvent
from .status import CnhStatus
from .vehicle import Variant, Vehicle

EMPTY_GARAGE = "Your garage is empty. Add a vehicle!"
NOTHING_SELECTED = "Select a vehicle from the menu."
NO_HISTORY = "No maintenance records found."
NO_PLATE = "S/P"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_cnh(expiry: Optional[date], today: date) -> Tuple[CnhStatus, Optional[int], str]:
    """Credential status, days left and the text shown next to it."""
    status = check_cnh_status(expiry, today)
    if status is CnhStatus.NONE:
        return status, None, "-"
    remaining = days_until(expiry, today)
    day = expiry.strftime("%d/%m/%Y")
    if status is CnhStatus.EXPIRED:
        return status, remaining, f"EXPIRED ({day})"
    if status is CnhStatus.EXPIRING_SOON:
        return status, remaining, f"Expires in {remaining}d ({day})"
    return status, remaining, day


def extra_info(vehicle: Vehicle) -> str:
    if vehicle.variant is Variant.SPORT:
        return f"Turbo: {'ON' if vehicle.turbo_on else 'Off'}"
    if vehicle.variant is Variant.TRUCK:
        return f"Cargo: {vehicle.current_cargo}kg / {vehicle.cargo_capacity}kg"
    return ""


def upcoming_appointments(vehicle: Vehicle, now: datetime) -> List[str]:
    """Future-dated records, soonest first, in the schedule format."""
    future = [r for r in vehicle.maintenance_history if r.when is not None and r.when > now]
    future.sort(key=lambda r: r.when)
    return [r.format_schedule_line() for r in future]


def cnh_alerts(vehicles: List[Vehicle], today: date) -> List[Tuple[Vehicle, CnhStatus, int]]:
    """
    Vehicles whose credential is expired or expiring soon.

    Sorted most urgent first (expired before expiring), then by days left.
    """
    alerts = []
    for vehicle in vehicles:
        status = check_cnh_status(vehicle.cnh_expiry, today)
        if status in (CnhStatus.EXPIRED, CnhStatus.EXPIRING_SOON):
            alerts.append((vehicle, status, days_until(vehicle.cnh_expiry, today)))
    alerts.sort(key=lambda a: (a[1].value, a[2]))
    return alerts


def menu_entries(vehicles: List[Vehicle]) -> List[Tuple[str, str]]:
    """(id, label) pairs for the vehicle menu, e.g. ("v1", "Civic (ABC1234)")."""
    return [(v.id, f"{v.model} ({v.plate or NO_PLATE})") for v in vehicles]


@dataclass(frozen=True)
class DisplayState:
    """Everything the presentation layer needs to draw one vehicle."""

    vehicle_id: str
    title: str
    image_ref: str
    status_text: str
    is_on: bool
    speed: float
    max_speed: int
    plate: str
    year: str
    cnh_status: CnhStatus
    cnh_days: Optional[int]
    cnh_text: str
    extra_info: str
    gauge_angle: float
    progress: float
    maintenance_lines: List[str] = field(default_factory=list)
    upcoming_lines: List[str] = field(default_factory=list)

    @classmethod
    def from_vehicle(cls, vehicle: Vehicle, today: date, now: datetime) -> "DisplayState":
        status, remaining, cnh_text = format_cnh(vehicle.cnh_expiry, today)
        history = [r.format_history_line() for r in vehicle.maintenance_history]
        return cls(
            vehicle_id=vehicle.id,
            title=f"{vehicle.model} ({vehicle.label})",
            image_ref=vehicle.image_ref,
            status_text="On" if vehicle.is_on else "Off",
            is_on=vehicle.is_on,
            speed=vehicle.speed,
            max_speed=vehicle.max_speed,
            plate=vehicle.plate or "-",
            year=str(vehicle.year) if vehicle.year else "-",
            cnh_status=status,
            cnh_days=remaining,
            cnh_text=cnh_text,
            extra_info=extra_info(vehicle),
            gauge_angle=gauge_angle(vehicle.speed, vehicle.max_speed),
            progress=progress_fraction(vehicle.speed, vehicle.max_speed),
            maintenance_lines=history or [NO_HISTORY],
            upcoming_lines=upcoming_appointments(vehicle, now),
        )


class SelectionState:
    """
    The active vehicle and its DisplayState.

    Subscribes to the repository and recomputes only when an event concerns
    the active vehicle. Removing the active vehicle, clearing the repository
    or a reload without it drops the selection. New vehicles are never
    selected automatically.
    """

    def __init__(
        self,
        repository,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = _utc_now,
    ):
        self.repository = repository
        self._today = today
        self._now = now
        self.active_id: Optional[str] = None
        self.display: Optional[DisplayState] = None
        repository.subscribe(self.handle_event)

    def detach(self) -> None:
        self.repository.unsubscribe(self.handle_event)

    @property
    def empty_state(self) -> Optional[str]:
        """Placeholder message when nothing is shown, otherwise None."""
        if self.active_id is not None:
            return None
        if len(self.repository) == 0:
            return EMPTY_GARAGE
        return NOTHING_SELECTED

    def select(self, vehicle_id: str) -> DisplayState:
        vehicle = self.repository.get(vehicle_id)
        self.active_id = vehicle.id
        self.refresh()
        return self.display

    def clear(self) -> None:
        self.active_id = None
        self.display = None

    def refresh(self) -> None:
        if self.active_id is None or self.active_id not in self.repository:
            self.clear()
            return
        vehicle = self.repository.get(self.active_id)
        self.display = DisplayState.from_vehicle(vehicle, self._today(), self._now())

    def handle_event(self, event: RepositoryEvent) -> None:
        if self.active_id is None:
            return
        if event.kind in ("cleared", "loaded"):
            self.refresh()
        elif event.vehicle_id == self.active_id:
            if event.kind == "removed":
                self.clear()
            else:
                self.refresh()
