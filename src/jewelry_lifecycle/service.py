"""Jewelry service — unified facade over the lifecycle registry.

This is the primary interface for programmatic access. It orchestrates:
- Deployment and one-time role assignment
- The lifecycle of each piece (create, polish, certify, stock, sell)
- Dispatch by external method name (``createJewelry``, ...)
- The audit trail (every mutation appends one event)
- Persistence (registry snapshot after each audited mutation)
- Anchoring the audit root on an Ethereum network
- Inclusion proofs for single events against that root

All operations return a ServiceResult; guard and input failures are
reported as errors, never raised. Audit events are never silently
dropped: if the event cannot be appended, the registry is restored to
its previous state and the operation fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from web3.exceptions import Web3Exception

from jewelry_lifecycle.crypto.anchor import HARDHAT_CHAIN_ID, anchor_to_chain
from jewelry_lifecycle.crypto.merkle import MerkleTree
from jewelry_lifecycle.engine import abi
from jewelry_lifecycle.engine.errors import LifecycleError, NotFound
from jewelry_lifecycle.engine.registry import LifecycleRegistry
from jewelry_lifecycle.identity.addresses import normalize_address
from jewelry_lifecycle.models.jewelry import JewelryRecord, JewelryStatus
from jewelry_lifecycle.persistence.event_log import EventKind, EventLog, EventRecord
from jewelry_lifecycle.persistence.state_store import StateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


_EVENT_ID_PREFIX = "EVT-"


def _highest_event_number(event_log: EventLog) -> int:
    """Largest numeric suffix among ``EVT-`` ids in ``event_log``, or 0."""
    numbers = [
        int(e.event_id[len(_EVENT_ID_PREFIX):])
        for e in event_log.events()
        if e.event_id.startswith(_EVENT_ID_PREFIX)
        and e.event_id[len(_EVENT_ID_PREFIX):].isdigit()
    ]
    return max(numbers, default=0)


def _record_payload(record: JewelryRecord, **extra: Any) -> dict[str, Any]:
    payload = record.to_dict()
    payload.update(extra)
    return payload


class JewelryService:
    """Lifecycle registry facade.

    Usage:
        service = JewelryService(event_log=EventLog())
        service.deploy(admin)
        service.set_roles(admin, mining, cutting, grading, maker)

        result = service.create_jewelry(mining, "Diamond")
        jewelry_id = result.data["jewelry_id"]
        service.update_status_to_polished(cutting, jewelry_id)
        service.generate_certificate(grading, jewelry_id, 12345)
        service.update_status_to_in_stock(maker, jewelry_id)
        service.transfer_ownership(maker, jewelry_id, buyer)

    Persistence (optional):
        service = JewelryService(event_log=log, state_store=store)
        # The registry is loaded from the store on construction and
        # saved after every audited mutation.
    """

    def __init__(
        self,
        registry: Optional[LifecycleRegistry] = None,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
    ) -> None:
        self._state_store = state_store
        if registry is None and state_store is not None:
            registry = state_store.load_registry()
        self._registry = registry
        self._event_log = event_log if event_log is not None else EventLog()

        # Continue numbering after the highest persisted id. A failed
        # append leaves a gap, so the count alone can fall behind.
        self._event_counter = _highest_event_number(self._event_log)

        # Set when a snapshot write fails after the audit event committed.
        # In-memory state is correct; the snapshot is stale.
        self._persistence_degraded = False

    @property
    def registry(self) -> Optional[LifecycleRegistry]:
        return self._registry

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def persistence_degraded(self) -> bool:
        return self._persistence_degraded

    # ------------------------------------------------------------------
    # Deployment and roles
    # ------------------------------------------------------------------

    def deploy(self, admin: str) -> ServiceResult:
        """Create a fresh registry administered by ``admin``."""
        if self._registry is not None:
            return ServiceResult(
                success=False,
                errors=[f"Registry already deployed (admin {self._registry.admin})"],
            )
        try:
            registry = LifecycleRegistry(admin=admin)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])

        self._registry = registry
        event, err = self._record_event(
            EventKind.REGISTRY_DEPLOYED, registry.admin, {"admin": registry.admin},
        )
        if err:
            self._registry = None
            return ServiceResult(success=False, errors=[err])

        logger.info("Registry deployed by %s", registry.admin)
        data: dict[str, Any] = {
            "admin": registry.admin,
            "deployment_hash": event.event_hash,
        }
        warning = self._safe_persist_post_audit()
        if warning:
            data["warning"] = warning
        return ServiceResult(success=True, data=data)

    def set_roles(
        self,
        caller: str,
        mining_company: str,
        cutting_company: str,
        grading_lab: str,
        jewelry_maker: str,
    ) -> ServiceResult:
        return self._execute(
            caller,
            EventKind.ROLES_ASSIGNED,
            lambda reg: reg.set_roles(
                caller, mining_company, cutting_company, grading_lab, jewelry_maker,
            ),
            lambda roles: roles.to_dict(),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_jewelry(self, caller: str, description: str) -> ServiceResult:
        return self._execute(
            caller,
            EventKind.JEWELRY_CREATED,
            lambda reg: reg.create_jewelry(caller, description),
            _record_payload,
        )

    def update_status_to_polished(self, caller: str, jewelry_id: int) -> ServiceResult:
        return self._execute(
            caller,
            EventKind.JEWELRY_POLISHED,
            lambda reg: reg.update_status_to_polished(caller, jewelry_id),
            lambda r: _record_payload(r, previous_status=JewelryStatus.MINED.name),
        )

    def generate_certificate(
        self, caller: str, jewelry_id: int, certificate_id: int,
    ) -> ServiceResult:
        return self._execute(
            caller,
            EventKind.CERTIFICATE_GENERATED,
            lambda reg: reg.generate_certificate(caller, jewelry_id, certificate_id),
            lambda r: _record_payload(r, previous_status=JewelryStatus.POLISHED.name),
        )

    def update_status_to_in_stock(self, caller: str, jewelry_id: int) -> ServiceResult:
        return self._execute(
            caller,
            EventKind.JEWELRY_IN_STOCK,
            lambda reg: reg.update_status_to_in_stock(caller, jewelry_id),
            lambda r: _record_payload(r, previous_status=JewelryStatus.GRADED.name),
        )

    def transfer_ownership(
        self, caller: str, jewelry_id: int, new_owner: str,
    ) -> ServiceResult:
        previous: dict[str, str] = {}

        def operation(reg: LifecycleRegistry) -> JewelryRecord:
            previous["owner"] = reg.jewelries(jewelry_id).current_owner
            return reg.transfer_ownership(caller, jewelry_id, new_owner)

        return self._execute(
            caller,
            EventKind.OWNERSHIP_TRANSFERRED,
            operation,
            lambda r: _record_payload(
                r,
                previous_status=JewelryStatus.IN_STOCK.name,
                previous_owner=previous["owner"],
            ),
        )

    def invoke(self, caller: str, method: str, args: Sequence[Any]) -> ServiceResult:
        """Dispatch by external method name, coercing textual arguments."""
        try:
            spec = abi.lookup(method)
            params = abi.coerce_args(spec, args)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])

        if not spec.mutating:
            registry = self._registry
            if registry is None:
                return ServiceResult(success=False, errors=["Registry not deployed"])
            try:
                view = abi.call(registry, caller, method, params)
            except (LifecycleError, ValueError) as e:
                return ServiceResult(success=False, errors=[str(e)])
            return ServiceResult(success=True, data=view)

        handler: Callable[..., ServiceResult] = getattr(self, spec.attribute)
        return handler(caller, *params)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_jewelry(self, jewelry_id: int) -> Optional[JewelryRecord]:
        if self._registry is None:
            return None
        try:
            return self._registry.jewelries(jewelry_id)
        except NotFound:
            return None

    def history(self, jewelry_id: int) -> list[EventRecord]:
        """Provenance trail of one piece, oldest first."""
        return self._event_log.events_for(jewelry_id)

    def status(self) -> dict[str, Any]:
        """Summary of the registry and its audit trail."""
        registry = self._registry
        counts: dict[str, int] = {s.name: 0 for s in JewelryStatus}
        if registry is not None:
            for record in registry.all_jewelries():
                counts[record.status.name] += 1
        last = self._event_log.last_event
        return {
            "deployed": registry is not None,
            "admin": registry.admin if registry is not None else None,
            "roles": (
                registry.roles.to_dict()
                if registry is not None and registry.roles is not None
                else None
            ),
            "jewelry_count": registry.jewelry_count if registry is not None else 0,
            "by_status": counts,
            "event_count": self._event_log.count,
            "last_event_hash": last.event_hash if last is not None else None,
            "persistence_degraded": self._persistence_degraded,
        }

    # ------------------------------------------------------------------
    # Anchoring
    # ------------------------------------------------------------------

    def audit_root(self) -> str:
        """Merkle root over every event hash, in log order."""
        return MerkleTree(self._event_log.event_hashes()).root

    def prove_event(self, event_id: str, anchored: bool = False) -> ServiceResult:
        """Merkle inclusion proof for one event.

        By default the proof is against the current audit root. With
        ``anchored`` it is against the root of the latest anchor, which
        only covers the events that existed when it was published.
        """
        events = self._event_log.events()
        index = next((i for i, e in enumerate(events) if e.event_id == event_id), None)
        if index is None:
            return ServiceResult(success=False, errors=[f"Event not found: {event_id}"])

        leaves = [e.event_hash for e in events]
        anchor_event: Optional[EventRecord] = None
        if anchored:
            anchors = self._event_log.events(EventKind.REGISTRY_ANCHORED)
            if not anchors:
                return ServiceResult(success=False, errors=["No anchor recorded"])
            anchor_event = anchors[-1]
            covered = anchor_event.payload["event_count"]
            if index >= covered:
                return ServiceResult(
                    success=False,
                    errors=[f"Event {event_id} is newer than the last anchor"],
                )
            leaves = leaves[:covered]

        proof = MerkleTree(leaves).inclusion_proof(index)
        verified = proof.verify()
        data: dict[str, Any] = {
            "event_id": event_id,
            "leaf_hash": proof.leaf_hash,
            "index": proof.index,
            "path": [[sibling, side] for sibling, side in proof.path],
            "root": proof.root,
        }
        if anchor_event is not None:
            verified = verified and proof.root == anchor_event.payload["root"]
            data["anchor_tx"] = anchor_event.payload["tx_hash"]
            data["anchor_chain_id"] = anchor_event.payload["chain_id"]
        data["verified"] = verified
        return ServiceResult(success=True, data=data)

    def anchor(
        self,
        rpc_url: str,
        private_key: str,
        chain_id: int = HARDHAT_CHAIN_ID,
    ) -> ServiceResult:
        """Publish the current audit root on chain and log the anchor."""
        if self._event_log.count == 0:
            return ServiceResult(success=False, errors=["Nothing to anchor: event log is empty"])

        root = self.audit_root()
        covered = self._event_log.count
        try:
            record = anchor_to_chain(root, rpc_url, private_key, chain_id=chain_id)
        except (OSError, ValueError, Web3Exception) as e:
            logger.error("Anchoring failed: %s", e)
            return ServiceResult(success=False, errors=[f"Anchoring failed: {e}"])

        payload = {
            "root": root,
            "event_count": covered,
            "tx_hash": record.tx_hash,
            "block_number": record.block_number,
            "chain_id": record.chain_id,
        }
        _, err = self._record_event(EventKind.REGISTRY_ANCHORED, record.sender, payload)
        if err:
            return ServiceResult(success=False, errors=[err], data=payload)
        if record.explorer_url:
            payload["explorer_url"] = record.explorer_url
        return ServiceResult(success=True, data=payload)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _execute(
        self,
        caller: str,
        kind: EventKind,
        operation: Callable[[LifecycleRegistry], Any],
        payload_of: Callable[[Any], dict[str, Any]],
    ) -> ServiceResult:
        """Run a registry mutation, audit it, then persist.

        The registry itself is atomic, so a rejected call needs no
        rollback. Only a failed audit append restores the prior state.
        """
        registry = self._registry
        if registry is None:
            return ServiceResult(success=False, errors=["Registry not deployed"])

        prior_state = registry.to_state()
        try:
            outcome = operation(registry)
        except (LifecycleError, ValueError) as e:
            logger.warning("Rejected %s from %s: %s", kind.value, caller, e)
            return ServiceResult(success=False, errors=[str(e)])

        payload = payload_of(outcome)
        _, err = self._record_event(kind, normalize_address(caller, "caller"), payload)
        if err:
            self._registry = LifecycleRegistry.from_state(prior_state)
            return ServiceResult(success=False, errors=[err])

        data = dict(payload)
        warning = self._safe_persist_post_audit()
        if warning:
            data["warning"] = warning
        return ServiceResult(success=True, data=data)

    def _next_event_id(self) -> str:
        """Generate a monotonically increasing unique event ID."""
        self._event_counter += 1
        return f"{_EVENT_ID_PREFIX}{self._event_counter:08d}"

    def _record_event(
        self,
        kind: EventKind,
        actor_id: str,
        payload: dict[str, Any],
    ) -> tuple[Optional[EventRecord], Optional[str]]:
        """Append an audit event. Returns (event, None) or (None, error)."""
        try:
            event = EventRecord.create(
                event_id=self._next_event_id(),
                event_kind=kind,
                actor_id=actor_id,
                payload=payload,
            )
            self._event_log.append(event)
        except (ValueError, OSError) as e:
            logger.error("Event log failure for %s: %s", kind.value, e)
            return None, f"Event log failure: {e}"
        return event, None

    def _safe_persist_post_audit(self) -> Optional[str]:
        """Persist the registry after its audit event has been committed.

        Never rolls back: the audit trail is already durable. On failure
        the degraded flag is set and a warning string is returned.
        """
        if self._state_store is None or self._registry is None:
            return None
        try:
            self._state_store.save_registry(self._registry)
            return None
        except OSError as e:
            self._persistence_degraded = True
            logger.error("Snapshot write failed: %s", e)
            return f"Persistence degraded: {e} — state committed in audit trail but snapshot is stale"
