"""Field Update Pipeline - Single-field request edits with ledger entries"""
from typing import Any, Dict, List, Optional, Tuple

from ..config.settings import settings
from ..domain.enums import ActivityAction, EntityType, PatchableField
from ..domain.errors import DomainError
from ..domain.models import RequestRecord
from ..engine.field_rules import coerce_field_value, describe_field_update
from ..utils.logger import get_logger
from .ledger import ActivityLedger
from .store import RequestStore

logger = get_logger(__name__)


class FieldUpdatePipeline:
    """
    validate -> PATCH one field -> append field_updated -> merge into store

    Each (request, field) pair gets increasing sequence numbers. With
    discard_stale_responses on, a response older than one already merged
    for the same pair is not merged. With it off the last response to
    arrive wins. Sequence bookkeeping for a pair is dropped as soon as
    none of its updates are in flight.

    No permission checks happen here; the collaborator enforces them.
    """

    def __init__(
        self,
        transport,
        identity,
        store: RequestStore,
        ledger: Optional[ActivityLedger] = None,
        discard_stale_responses: Optional[bool] = None
    ):
        self.transport = transport
        self.identity = identity
        self.store = store
        self.ledger = ledger if ledger is not None else ActivityLedger(transport, identity, store)
        if discard_stale_responses is None:
            discard_stale_responses = settings.discard_stale_responses
        self.discard_stale_responses = discard_stale_responses
        self._issued: Dict[Tuple[str, str], int] = {}
        self._applied: Dict[Tuple[str, str], int] = {}
        self._in_flight: Dict[Tuple[str, str], int] = {}

    def _next_sequence(self, key: Tuple[str, str]) -> int:
        seq = self._issued.get(key, 0) + 1
        self._issued[key] = seq
        return seq

    async def update_field(
        self,
        request_id: str,
        field_name: str,
        new_value: Any,
        expected_version: Optional[int] = None
    ) -> RequestRecord:
        """
        Change one field of a request.

        Raises ValidationError before anything is sent for unknown fields or
        enum values. Transport errors from the PATCH propagate and leave the
        store untouched. A failed ledger append does not undo the change.
        """
        field, value = coerce_field_value(field_name, new_value)
        # Both calls act as whoever was in session when the edit was issued
        state = self.identity.state
        key = (request_id, field.value)
        seq = self._next_sequence(key)
        self._in_flight[key] = self._in_flight.get(key, 0) + 1
        try:
            record = await self.transport.patch_request(
                state, request_id, field.value, value, expected_version=expected_version
            )
            await self._record_activity(state, request_id, field, value)

            latest = self._applied.get(key, 0)
            if self.discard_stale_responses and seq < latest:
                logger.info(
                    f"Discarding stale response #{seq} (#{latest} already applied)",
                    extra={"request_id": request_id, "field": field.value}
                )
                return self.store.get(request_id) or record

            self._applied[key] = max(seq, latest)
            return self.store.merge_field(request_id, record, field.value)
        finally:
            self._settle(key)

    def _settle(self, key: Tuple[str, str]) -> None:
        # Nothing left that could arrive stale once the last update settles
        remaining = self._in_flight.get(key, 0) - 1
        if remaining > 0:
            self._in_flight[key] = remaining
            return
        self._in_flight.pop(key, None)
        self._issued.pop(key, None)
        self._applied.pop(key, None)

    def pending_keys(self) -> List[Tuple[str, str]]:
        """(request_id, field) pairs with an update still awaiting its response"""
        return list(self._in_flight)

    async def _record_activity(self, state, request_id: str, field: PatchableField, value: Any) -> None:
        try:
            await self.ledger.append(
                request_id,
                ActivityAction.FIELD_UPDATED.value,
                description=describe_field_update(field.value, value),
                entity_type=EntityType.FIELD.value,
                state=state,
            )
            return
        except DomainError as e:
            logger.warning(
                f"Field saved but ledger append failed: {e.message}",
                extra={"request_id": request_id, "field": field.value, "error_code": e.error_code}
            )

        try:
            await self.ledger.refresh(request_id, state=state)
        except DomainError as e:
            logger.error(
                f"Ledger refresh failed after append error: {e.message}",
                extra={"request_id": request_id, "error_code": e.error_code}
            )
            self.store.mark_ledger_stale(request_id)
