"""
core/workflow.py — Shared Request/Approval Machinery
======================================================
Registration, sale and purchase requests share one state machine:

    Pending ──accept──▶ Accepted   (terminal)
       └────reject──▶ Rejected     (terminal)

The ledger owns the transition and rejects any decision on a terminal request
with INVALID_STATE. This module only gates on role, validates ids, dispatches
the transaction and surfaces whatever the ledger says.
"""

import logging
from typing import List, Optional, Type

from core.errors import LedgerUnavailable, ValidationError
from core.ledger import LedgerGateway
from core.models import LedgerModel, RequestStatus, TransactionReceipt
from core.normalizer import RecordSchema, normalize_records
from core.roles import Actor, require_admin

logger = logging.getLogger("landledger.workflow")


def require_id(value, field: str) -> int:
    """Ids are positive integers; anything else never reaches the ledger."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer.", {field: value})
    return value


async def fetch_records(
    ledger: LedgerGateway,
    method: str,
    args: tuple,
    schema: RecordSchema,
    model: Type[LedgerModel],
    timeout: Optional[float] = None,
) -> List:
    """Query a list of ledger records, normalize each one, keep ledger order."""
    raw = await ledger.query(method, args, timeout=timeout)
    if not isinstance(raw, (list, tuple)):
        raise LedgerUnavailable(
            f"Ledger returned an unexpected payload for '{method}'",
            {"method": method, "type": type(raw).__name__},
        )
    return [model.from_record(record) for record in normalize_records(raw, schema)]


async def fetch_requests(
    ledger: LedgerGateway,
    method: str,
    schema: RecordSchema,
    model: Type[LedgerModel],
    status: Optional[RequestStatus] = RequestStatus.PENDING,
    timeout: Optional[float] = None,
) -> List:
    requests = await fetch_records(ledger, method, (), schema, model, timeout=timeout)
    if status is None:
        return requests
    return [r for r in requests if r.status is status]


async def decide(
    ledger: LedgerGateway,
    actor: Actor,
    method: str,
    request_id: int,
    action: str,
    timeout: Optional[float] = None,
) -> TransactionReceipt:
    """Admin decision on a pending request. Failures propagate unchanged."""
    require_admin(actor, action)
    request_id = require_id(request_id, "requestId")
    receipt = await ledger.submit_transaction(method, [request_id], actor.account_id, timeout=timeout)
    logger.info(f"{action}: request #{request_id} by {actor.account_id} (tx {receipt.tx_hash[:18]}...)")
    return receipt
