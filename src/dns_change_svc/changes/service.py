"""Change service - listing and deciding on domain change requests."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from .errors import BadRequestError, ChangeError, ConflictError, NotFoundError
from .types import ActionStatus, Decision, DomainChange

if TYPE_CHECKING:
    from ..auth.authorizer import Authorizer
    from ..store.repository import ChangeStore, ChangeUnit
    from .codec import MutationCodec
    from .mutation import Mutation

logger = logging.getLogger(__name__)

# Seconds after which an unfinished accept may be taken over
DEFAULT_CLAIM_TIMEOUT = 300.0


class ChangeService:
    """
    Owns the approval state machine for change requests.

        PENDING --accept (provider ok, save ok)--> APPROVED
        PENDING --reject (save ok)---------------> REJECTED

    APPROVED and REJECTED are terminal. Decisions read and write the row in
    short store transactions. An accept first claims the row, then calls the
    provider with no database lock held, then writes APPROVED under that
    claim. Concurrent decisions on the same request see the claim and get
    ConflictError, so the provider is called at most once per approval.
    """

    def __init__(
        self,
        store: ChangeStore,
        authorizer: Authorizer,
        codec: MutationCodec,
        claim_timeout: float = DEFAULT_CLAIM_TIMEOUT,
    ) -> None:
        self._store = store
        self._authorizer = authorizer
        self._codec = codec
        self.claim_timeout = claim_timeout

    def list_mine(self, caller: int) -> list[DomainChange]:
        """Change requests submitted by the caller."""
        return self._store.list_requested_by(caller)

    def list_approvable(self, caller: int) -> list[DomainChange]:
        """Change requests on domains the caller owns."""
        return self._store.list_approvable_by(caller)

    def decide(self, caller: int, request_id: int, decision: Decision | str) -> DomainChange:
        """
        Accept or reject a pending change request.

        Order of checks: existence, ownership of the request's domain,
        pending status (and no accept in flight), then the decision itself.
        On accept the stored operation is decoded, restored and applied at
        the provider before the new status is written.

        Raises:
            NotFoundError: No such request.
            ForbiddenError: Caller is not an owner of the request's domain.
            ConflictError: Request is no longer pending or is being applied.
            BadRequestError: Decision is neither accept nor reject.
            DecodeError, RestoreError: Stored operation is unusable.
            ProviderError: Provider call failed; the request stays pending.
            StorageError: Store read or write failed.
        """
        with self._store.transaction() as unit:
            change = self._load_pending(unit, caller, request_id)

            try:
                choice = Decision(decision)
            except ValueError:
                raise BadRequestError(f"Invalid opt: {decision}") from None

            if choice is Decision.REJECT:
                change.action_status = ActionStatus.REJECTED
                unit.save(change, change.claim_token)
            else:
                mutation = self._codec.load(change, unit.get_domain)
                token = unit.claim(change)

        if choice is Decision.ACCEPT:
            self._apply(change, mutation, token)

        logger.info(f"Domain change {request_id} status -> {change.action_status.value} (by user {caller})")
        return change

    def _load_pending(self, unit: ChangeUnit, caller: int, request_id: int) -> DomainChange:
        change = unit.get_by_id(request_id)
        if change is None:
            raise NotFoundError(f"Domain change not found: {request_id}")

        self._authorizer.check_decision(caller, change)

        if change.action_status is not ActionStatus.PENDING:
            raise ConflictError(
                f"Domain change {request_id} is not pending "
                f"(current status: {change.action_status.value})"
            )
        if change.claim_token and not self._claim_expired(change):
            raise ConflictError(f"Domain change {request_id} is being applied")
        return change

    def _claim_expired(self, change: DomainChange) -> bool:
        if not change.claimed_at:
            return True
        claimed_at = datetime.fromisoformat(change.claimed_at)
        return datetime.now(timezone.utc) - claimed_at > timedelta(seconds=self.claim_timeout)

    def _apply(self, change: DomainChange, mutation: Mutation, token: str) -> None:
        """Run the provider call for a claimed change, then persist APPROVED."""
        try:
            mutation.apply()
        except Exception:
            self._release(change, token)
            raise

        change.action_status = ActionStatus.APPROVED
        try:
            self._store.save(change, token)
        except Exception:
            logger.error(
                f"Post-provider save failed: request_id={change.id} "
                f"action_type={change.action_type.value}; "
                f"provider state and stored status have diverged"
            )
            raise

    def _release(self, change: DomainChange, token: str) -> None:
        try:
            released = self._store.release_claim(change.id, token)
        except ChangeError as e:
            logger.warning(f"Could not release claim on domain change {change.id}: {e}")
            return
        if released:
            change.claim_token = None
            change.claimed_at = None
