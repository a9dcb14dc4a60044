"""Shared fixtures: an in-memory stand-in for the persistence service."""

import copy

import pytest

from garage.errors import AuthExpired, VehicleNotFound


class FakeStore:
    """
    In-memory RemoteStore double.

    Call fail_with(exc) to make the next vehicle request raise exc.
    """

    def __init__(self, records=None):
        self.records = {r["id"]: copy.deepcopy(r) for r in records or []}
        self.token = None
        self.calls = []
        self._failure = None
        self.on_request = None

    def fail_with(self, exc):
        self._failure = exc

    def _start(self, name, *args):
        self.calls.append((name,) + args)
        if self.on_request is not None:
            hook, self.on_request = self.on_request, None
            hook()
        if self._failure is not None:
            exc, self._failure = self._failure, None
            raise exc
        if self.token is None:
            raise AuthExpired("Token is not valid.")

    def register(self, email, password):
        self.calls.append(("register", email))
        return "User registered successfully!"

    def login(self, email, password):
        self.calls.append(("login", email))
        self.token = "token-for-" + email
        return self.token

    def list_vehicles(self):
        self._start("list")
        return [copy.deepcopy(r) for r in self.records.values()]

    def create_vehicle(self, record):
        self._start("create", record["id"])
        self.records[record["id"]] = copy.deepcopy(record)
        return copy.deepcopy(record)

    def update_vehicle(self, vehicle_id, record):
        self._start("update", vehicle_id)
        if vehicle_id not in self.records:
            raise VehicleNotFound("Vehicle not found.", 404)
        self.records[vehicle_id] = copy.deepcopy(record)
        return copy.deepcopy(record)

    def delete_vehicle(self, vehicle_id):
        self._start("delete", vehicle_id)
        if vehicle_id not in self.records:
            raise VehicleNotFound("Vehicle not found.", 404)
        del self.records[vehicle_id]
        return {"message": "Vehicle deleted successfully."}


def make_record(vehicle_id, model, variant="base", **extra):
    record = {
        "id": vehicle_id,
        "model": model,
        "color": "",
        "imageRef": None,
        "plate": "",
        "year": None,
        "cnhExpiry": None,
        "isOn": False,
        "speed": 0,
        "maintenanceHistory": [],
        "variantTag": variant,
    }
    record.update(extra)
    return record


@pytest.fixture
def store():
    fake = FakeStore(
        [
            make_record("civic", "Civic", plate="ABC1234"),
            make_record("ferrari", "Ferrari", "sport", turboOn=False),
            make_record("scania", "Scania", "truck", cargoCapacity=1000, currentCargo=0),
        ]
    )
    fake.token = "valid"
    return fake
