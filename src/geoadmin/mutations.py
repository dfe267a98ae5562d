"""Staged mutations - create/update/delete gated by an explicit confirmation.

    IDLE --stage_*--> STAGED --request_confirmation--> CONFIRMING
    CONFIRMING --confirm--> COMMITTING --> IDLE
    STAGED/CONFIRMING --cancel--> IDLE

The machine holds a single state and at most one pending intent. Staging
again before confirming replaces the pending intent. The network call is
only made from ``confirm()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, TYPE_CHECKING

from .errors import AdminError, InvalidTransition, classify_mutation_error

if TYPE_CHECKING:
    from .api.resources import ResourceAPI

logger = logging.getLogger(__name__)


class MutationState(Enum):
    IDLE = "idle"
    STAGED = "staged"
    CONFIRMING = "confirming"
    COMMITTING = "committing"


class IntentKind(Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


_PROMPT_VERBS = {IntentKind.CREATE: "add", IntentKind.UPDATE: "update", IntentKind.DELETE: "delete"}
_DONE_VERBS = {IntentKind.CREATE: "added", IntentKind.UPDATE: "updated", IntentKind.DELETE: "deleted"}


@dataclass(frozen=True)
class Intent:
    kind: IntentKind
    record_id: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class MutationOutcome:
    intent: Intent
    ok: bool
    message: str
    error: AdminError | None = None
    result: Any = None


class StagedMutationController:
    """Pending-intent state machine for one entity collection.

    Usage:
        mutations = StagedMutationController(api.cities, "city", refresh=reload)
        mutations.stage_delete("city_id")
        prompt = mutations.request_confirmation()   # show to the user
        outcome = await mutations.confirm()         # or mutations.cancel()
    """

    def __init__(
        self,
        api: "ResourceAPI",
        label: str,
        refresh: Callable[[], Awaitable[Any]] | None = None,
    ):
        self._api = api
        self.label = label
        self._refresh = refresh
        self._state = MutationState.IDLE
        self._intent: Intent | None = None

    @property
    def state(self) -> MutationState:
        return self._state

    @property
    def intent(self) -> Intent | None:
        return self._intent

    def _stage(self, intent: Intent) -> Intent:
        if self._state is MutationState.COMMITTING:
            raise InvalidTransition("Cannot stage a change while another is being committed")
        self._intent = intent
        self._state = MutationState.STAGED
        return intent

    def stage_create(self, form: dict[str, Any]) -> Intent:
        return self._stage(Intent(IntentKind.CREATE, payload=dict(form)))

    def stage_update(self, record_id: str, form: dict[str, Any]) -> Intent:
        return self._stage(Intent(IntentKind.UPDATE, record_id=record_id, payload=dict(form)))

    def stage_delete(self, record_id: str) -> Intent:
        return self._stage(Intent(IntentKind.DELETE, record_id=record_id))

    def confirmation_prompt(self, intent: Intent | None = None) -> str:
        intent = intent or self._intent
        if intent is None:
            raise InvalidTransition("Nothing is staged")
        return f"Are you sure you want to {_PROMPT_VERBS[intent.kind]} this {self.label}?"

    def request_confirmation(self) -> str:
        """STAGED -> CONFIRMING. Returns the text for the confirmation prompt."""
        if self._state is not MutationState.STAGED:
            raise InvalidTransition(f"Cannot request confirmation from {self._state.value}")
        self._state = MutationState.CONFIRMING
        return self.confirmation_prompt()

    def cancel(self) -> None:
        """Drop the pending intent without touching the network."""
        if self._state is MutationState.COMMITTING:
            raise InvalidTransition("Cannot cancel a change that is being committed")
        self._intent = None
        self._state = MutationState.IDLE

    async def _execute(self, intent: Intent) -> Any:
        if intent.kind is IntentKind.CREATE:
            return await self._api.create(intent.payload)
        if intent.kind is IntentKind.UPDATE:
            return await self._api.update(intent.record_id, intent.payload)
        return await self._api.delete(intent.record_id)

    async def confirm(self) -> MutationOutcome:
        """CONFIRMING -> COMMITTING -> IDLE, issuing exactly one request."""
        if self._state is not MutationState.CONFIRMING or self._intent is None:
            raise InvalidTransition(f"Cannot confirm from {self._state.value}")
        intent = self._intent
        self._state = MutationState.COMMITTING
        try:
            try:
                result = await self._execute(intent)
            except Exception as e:
                error = classify_mutation_error(e)
                logger.warning("%s %s failed: %s", intent.kind.value, self.label, error.message)
                return MutationOutcome(intent, ok=False, message=error.message, error=error)
            # Refetch only after the mutation resolved.
            if self._refresh is not None:
                await self._refresh()
            message = f"{self.label[:1].upper()}{self.label[1:]} {_DONE_VERBS[intent.kind]} successfully!"
            return MutationOutcome(intent, ok=True, message=message, result=result)
        finally:
            self._intent = None
            self._state = MutationState.IDLE
