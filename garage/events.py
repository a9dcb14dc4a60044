"""Results returned by vehicle operations and events emitted by the repository."""

from dataclasses import dataclass
from typing import Optional, Type

from .errors import GarageError, InvalidState


@dataclass(frozen=True)
class ActionResult:
    """
    Outcome of a vehicle operation.

    Domain methods never talk to the UI. They return one of these and the
    presentation layer decides how to show `message`.

    - ok: the operation was accepted
    - action: tag describing what happened (e.g. "powered on")
    - changed: vehicle state was modified
    - error: exception class describing a refusal
    """

    ok: bool
    action: str
    message: Optional[str] = None
    changed: bool = False
    error: Optional[Type[GarageError]] = None

    @classmethod
    def success(cls, action: str, message: Optional[str] = None, changed: bool = True):
        return cls(ok=True, action=action, message=message, changed=changed)

    @classmethod
    def refused(
        cls, action: str, message: str, error: Type[GarageError] = InvalidState
    ):
        return cls(ok=False, action=action, message=message, error=error)

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_status(self) -> None:
        """Raise the refusal as an exception, if there was one."""
        if not self.ok:
            raise (self.error or InvalidState)(self.message or self.action)


@dataclass(frozen=True)
class RepositoryEvent:
    """
    Change notification published by GarageRepository.

    kind is one of: loaded, created, changed, removed, cleared.
    """

    kind: str
    vehicle_id: Optional[str] = None
    action: Optional[str] = None
