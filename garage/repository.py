"""GarageRepository - in-memory vehicle collection synced with the persistence service."""

import uuid
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

from loguru import logger

from .errors import GarageError, InvalidState, ValidationError
from .events import ActionResult, RepositoryEvent
from .loader import vehicle_from_dict
from .maintenance_record import MaintenanceRecord
from .vehicle import Vehicle

Listener = Callable[[RepositoryEvent], None]

# Runtime operations applied locally, persisted with the next saved change.
# Each maps to the vehicle method and the names of its arguments.
ACTIONS = {
    "power_on": (Vehicle.power_on, ()),
    "power_off": (Vehicle.power_off, ()),
    "accelerate": (Vehicle.accelerate, ()),
    "brake": (Vehicle.brake, ()),
    "honk": (Vehicle.honk, ()),
    "toggle_turbo": (Vehicle.toggle_turbo, ()),
    "load_cargo": (Vehicle.load_cargo, ("weight",)),
}


def new_vehicle_id() -> str:
    return f"v{uuid.uuid4().hex[:12]}"


class GarageRepository:
    """
    The signed-in account's vehicles, keyed by id.

    The store (see RemoteStore) is the source of truth. Persisted changes
    are applied locally first and undone if the store rejects them;
    creation and deletion only touch the collection after the store
    confirms.
    """

    def __init__(self, store):
        self.store = store
        self._vehicles: Dict[str, Vehicle] = {}
        self._listeners: List[Listener] = []
        self._in_flight: Set[Tuple[str, str]] = set()
        self._generations: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._vehicles)

    def __contains__(self, vehicle_id: object) -> bool:
        return vehicle_id in self._vehicles

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, kind: str, vehicle_id: Optional[str] = None, action: Optional[str] = None):
        event = RepositoryEvent(kind, vehicle_id, action)
        for listener in list(self._listeners):
            listener(event)

    # -------------------------------------------------------------------------
    # Request bookkeeping
    # -------------------------------------------------------------------------

    @contextmanager
    def _request(self, target: str, operation: str) -> Iterator[int]:
        """
        Mark (target, operation) as in flight for the duration of the block.

        Yields the target's new generation number; a response is stale when
        another request for the same target was issued after it.
        """
        self._ensure_idle(target, operation)
        key = (target, operation)
        self._in_flight.add(key)
        generation = self._generations.get(target, 0) + 1
        self._generations[target] = generation
        try:
            yield generation
        finally:
            self._in_flight.discard(key)

    def _ensure_idle(self, target: str, operation: str) -> None:
        if (target, operation) in self._in_flight:
            raise InvalidState(f"A {operation} request for {target} is already in progress.")

    def _is_stale(self, target: str, generation: int) -> bool:
        return self._generations.get(target) != generation

    def is_busy(self, vehicle_id: str, operation: Optional[str] = None) -> bool:
        """True while a request for the vehicle (and operation, if given) is pending."""
        return any(
            target == vehicle_id and (operation is None or op == operation)
            for target, op in self._in_flight
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get(self, vehicle_id: str) -> Vehicle:
        try:
            return self._vehicles[vehicle_id]
        except KeyError:
            raise ValidationError(f"Vehicle '{vehicle_id}' not found.") from None

    def list_vehicles(self) -> List[Vehicle]:
        """Vehicles sorted by model (case-sensitive, ascending)."""
        return sorted(self._vehicles.values(), key=lambda v: v.model)

    # -------------------------------------------------------------------------
    # Sync operations
    # -------------------------------------------------------------------------

    def load_all(self) -> List[Vehicle]:
        """Replace the collection with the store's records."""
        records = self.store.list_vehicles()
        loaded: Dict[str, Vehicle] = {}
        for record in records:
            try:
                vehicle = vehicle_from_dict(record)
            except (GarageError, AttributeError, TypeError) as e:
                logger.warning(f"Skipping unreadable vehicle record: {e}")
                continue
            loaded[vehicle.id] = vehicle
        self._vehicles = loaded
        logger.info(f"Loaded {len(loaded)} of {len(records)} vehicles")
        self._emit("loaded")
        return self.list_vehicles()

    def create(self, draft: Dict[str, Any]) -> Vehicle:
        """
        Build a vehicle from a draft and save it.

        Draft keys: model, variant, color, image_ref, plate, year,
        cnh_expiry, cargo_capacity. The vehicle joins the collection only
        once the store accepts it, under the id the store returns.
        """
        vehicle = Vehicle(
            draft.get("id") or new_vehicle_id(),
            draft.get("model"),
            draft.get("variant") or "base",
            color=draft.get("color", ""),
            image_ref=draft.get("image_ref"),
            plate=draft.get("plate", ""),
            year=draft.get("year"),
            cnh_expiry=draft.get("cnh_expiry"),
            cargo_capacity=draft.get("cargo_capacity", 0),
        )
        with self._request("__new__", "create"):
            saved = self.store.create_vehicle(vehicle.serialize())

        saved_id = (saved or {}).get("id") or (saved or {}).get("_id") or vehicle.id
        if saved_id != vehicle.id:
            vehicle = vehicle_from_dict({**vehicle.serialize(), "id": saved_id})
        self._vehicles[vehicle.id] = vehicle
        logger.info(f"Created vehicle {vehicle.id} ({vehicle.model})")
        self._emit("created", vehicle.id)
        return vehicle

    def _commit(self, vehicle: Vehicle, operation: str, snapshot: Vehicle) -> bool:
        """
        Send the vehicle's full state. Rolls back to snapshot on failure.

        Returns False when the response was superseded by a newer request.
        """
        with self._request(vehicle.id, operation) as generation:
            try:
                self.store.update_vehicle(vehicle.id, vehicle.serialize())
            except GarageError:
                if self._is_stale(vehicle.id, generation):
                    logger.info(f"Ignoring superseded {operation} failure for {vehicle.id}")
                    return False
                vehicle.restore(snapshot)
                logger.warning(f"{operation} on {vehicle.id} failed, change rolled back")
                self._emit("changed", vehicle.id, "rolled back")
                raise
            if self._is_stale(vehicle.id, generation):
                logger.info(f"Ignoring superseded {operation} response for {vehicle.id}")
                return False
        return True

    def update(self, vehicle_id: str, patch: Dict[str, Any]) -> Vehicle:
        """Apply an edit locally, then save the full vehicle."""
        vehicle = self.get(vehicle_id)
        self._ensure_idle(vehicle.id, "update")
        snapshot = vehicle.snapshot()
        vehicle.apply_patch(patch)
        if self._commit(vehicle, "update", snapshot):
            self._emit("changed", vehicle.id, "edited")
        return vehicle

    def remove(self, vehicle_id: str, confirm: Callable[[Vehicle], bool]) -> bool:
        """
        Delete a vehicle after the caller confirms.

        Returns False (and does nothing) when confirm(vehicle) is falsy.
        """
        vehicle = self.get(vehicle_id)
        if not confirm(vehicle):
            return False
        with self._request(vehicle_id, "remove"):
            self.store.delete_vehicle(vehicle_id)
        self._vehicles.pop(vehicle_id, None)
        logger.info(f"Removed vehicle {vehicle_id}")
        self._emit("removed", vehicle_id)
        return True

    def add_maintenance(self, vehicle_id: str, record: MaintenanceRecord) -> ActionResult:
        vehicle = self.get(vehicle_id)
        self._ensure_idle(vehicle.id, "add_maintenance")
        snapshot = vehicle.snapshot()
        result = vehicle.add_maintenance(record)
        if not result.ok:
            return result
        if self._commit(vehicle, "add_maintenance", snapshot):
            self._emit("changed", vehicle.id, result.action)
        return result

    def clear_maintenance_history(self, vehicle_id: str) -> ActionResult:
        vehicle = self.get(vehicle_id)
        self._ensure_idle(vehicle.id, "clear_maintenance_history")
        snapshot = vehicle.snapshot()
        result = vehicle.clear_maintenance_history()
        if self._commit(vehicle, "clear_maintenance_history", snapshot):
            self._emit("changed", vehicle.id, result.action)
        return result

    def act(self, vehicle_id: str, action: str, *args: Any) -> ActionResult:
        """Run a driving/cargo operation on the local vehicle."""
        if action not in ACTIONS:
            raise ValidationError(f"Unknown action: {action}")
        method, params = ACTIONS[action]
        if len(args) != len(params):
            if params:
                raise ValidationError(f"{action} needs a {', '.join(params)}.")
            raise ValidationError(f"{action} takes no arguments.")
        vehicle = self.get(vehicle_id)
        result = method(vehicle, *args)
        if result.changed:
            self._emit("changed", vehicle.id, result.action)
        return result

    def clear(self) -> None:
        """Forget every local vehicle (persisted data is untouched)."""
        self._vehicles = {}
        self._in_flight.clear()
        self._generations.clear()
        self._emit("cleared")
