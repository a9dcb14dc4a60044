"""GarageSession - sign-in / sign-out lifecycle around the repository."""

from datetime import date
from functools import wraps
from typing import Optional

from loguru import logger

from .errors import AuthExpired, InvalidState
from .repository import GarageRepository
from .selection import SelectionState


def _ends_session_on_auth_expired(method):
    """Reset the session when the store rejects the credential, then re-raise."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except AuthExpired:
            logger.warning("Session expired, signing out")
            self.sign_out()
            raise

    return wrapper


class GarageSession:
    """
    Owns the repository and selection for the signed-in account.

    Signing in builds both and loads the garage; signing out (or any
    AuthExpired) throws them away together with the token.
    """

    def __init__(self, store, today=date.today):
        self.store = store
        self._today = today
        self.repository: Optional[GarageRepository] = None
        self.selection: Optional[SelectionState] = None

    @property
    def signed_in(self) -> bool:
        return self.repository is not None

    def _require_repository(self) -> GarageRepository:
        if self.repository is None:
            raise InvalidState("Sign in to manage your garage.")
        return self.repository

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def register(self, email: str, password: str) -> str:
        return self.store.register(email, password)

    def sign_in(self, email: str, password: str) -> None:
        self.store.login(email, password)
        self._start()

    def resume(self, token: str) -> None:
        """Start a session from a token saved earlier."""
        self.store.token = token
        self._start()

    def _start(self) -> None:
        self.repository = GarageRepository(self.store)
        self.selection = SelectionState(self.repository, today=self._today)
        self.load_all()

    def sign_out(self) -> None:
        if self.repository is not None:
            self.repository.clear()
        if self.selection is not None:
            self.selection.detach()
        self.store.token = None
        self.repository = None
        self.selection = None
        logger.info("Signed out")

    # -------------------------------------------------------------------------
    # Repository operations
    # -------------------------------------------------------------------------

    @_ends_session_on_auth_expired
    def load_all(self):
        return self._require_repository().load_all()

    @_ends_session_on_auth_expired
    def create(self, draft):
        return self._require_repository().create(draft)

    @_ends_session_on_auth_expired
    def update(self, vehicle_id, patch):
        return self._require_repository().update(vehicle_id, patch)

    @_ends_session_on_auth_expired
    def remove(self, vehicle_id, confirm):
        return self._require_repository().remove(vehicle_id, confirm)

    @_ends_session_on_auth_expired
    def add_maintenance(self, vehicle_id, record):
        return self._require_repository().add_maintenance(vehicle_id, record)

    @_ends_session_on_auth_expired
    def clear_maintenance_history(self, vehicle_id):
        return self._require_repository().clear_maintenance_history(vehicle_id)

    def act(self, vehicle_id, action, *args):
        return self._require_repository().act(vehicle_id, action, *args)
