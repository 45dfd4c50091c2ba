"""
modules/registration.py — Parcel Registration Workflow
========================================================
An owner submits a parcel draft; an administrator accepts (the ledger creates
the parcel) or rejects it (terminal, nothing created).

Drafts are validated HERE, before any transaction is sent. A malformed
draft never costs a ledger transaction.
"""

import logging
import time
from typing import List, Optional

from core.errors import ValidationError
from core.ledger import LedgerGateway
from core.models import ParcelDraft, RegistrationRequest, TransactionReceipt
from core.normalizer import REGISTRATION_REQUEST_SCHEMA
from core.roles import Actor
from core.workflow import decide, fetch_requests

logger = logging.getLogger("landledger.modules.registration")


def validate_draft(draft: ParcelDraft):
    """Collect every violation so the caller can fix them all in one go."""
    problems = {}
    if draft.area <= 0:
        problems["area"] = "must be greater than 0"
    if draft.price < 0:
        problems["price"] = "must not be negative"
    if not draft.property_id.strip():
        problems["propertyId"] = "must not be blank"
    if not draft.survey_number.strip():
        problems["surveyNumber"] = "must not be blank"
    if not draft.state.strip():
        problems["state"] = "must not be blank"
    if not draft.district.strip():
        problems["district"] = "must not be blank"
    if not draft.document_refs:
        problems["documentRefs"] = "at least one document is required"
    elif any(not ref.strip() for ref in draft.document_refs):
        problems["documentRefs"] = "document references must not be blank"

    if problems:
        raise ValidationError("Parcel draft is invalid.", problems)


async def submit(
    ledger: LedgerGateway,
    actor: Actor,
    draft: ParcelDraft,
    timeout: Optional[float] = None,
) -> int:
    """Submit a parcel for registration. Returns the registration request id."""
    validate_draft(draft)
    submitted_at = int(time.time() * 1000)

    receipt = await ledger.submit_transaction(
        "addLand",
        [
            draft.area,
            draft.location,
            draft.property_id.strip(),
            draft.survey_number.strip(),
            draft.price,
            list(draft.document_refs),
            submitted_at,
        ],
        actor.account_id,
        timeout=timeout,
    )
    logger.info(f"Registration #{receipt.result} submitted by {actor.account_id} for {draft.property_id}")
    return receipt.result


async def list_pending(ledger: LedgerGateway, timeout: Optional[float] = None) -> List[RegistrationRequest]:
    return await fetch_requests(
        ledger, "getSellRequest", REGISTRATION_REQUEST_SCHEMA, RegistrationRequest, timeout=timeout
    )


async def accept(
    ledger: LedgerGateway, actor: Actor, request_id: int, timeout: Optional[float] = None
) -> TransactionReceipt:
    """Admin accepts; receipt.result is the id of the newly created parcel."""
    return await decide(ledger, actor, "acceptReg", request_id, "accept registration", timeout=timeout)


async def reject(
    ledger: LedgerGateway, actor: Actor, request_id: int, timeout: Optional[float] = None
) -> TransactionReceipt:
    return await decide(ledger, actor, "rejectReg", request_id, "reject registration", timeout=timeout)
