"""
modules/sale.py — Sale Listing Workflow
=========================================
An owner asks to list a parcel; an administrator accepts (parcel becomes
forSale) or rejects (no change).

Ownership is checked by the ledger at transaction time, not here. A local
check on a possibly stale read would only give a false sense of safety.
"""

import logging
from typing import List, Optional

from core.ledger import LedgerGateway
from core.models import SaleRequest, TransactionReceipt
from core.normalizer import SALE_REQUEST_SCHEMA
from core.roles import Actor
from core.workflow import decide, fetch_requests, require_id

logger = logging.getLogger("landledger.modules.sale")


async def request_sale(
    ledger: LedgerGateway, actor: Actor, parcel_id: int, timeout: Optional[float] = None
) -> int:
    """Returns the sale request id. NotOwner / InvalidState come from the ledger."""
    parcel_id = require_id(parcel_id, "parcelId")
    receipt = await ledger.submit_transaction(
        "sellReq", [actor.account_id, parcel_id], actor.account_id, timeout=timeout
    )
    logger.info(f"Sale request #{receipt.result} for parcel #{parcel_id} by {actor.account_id}")
    return receipt.result


async def list_pending(ledger: LedgerGateway, timeout: Optional[float] = None) -> List[SaleRequest]:
    return await fetch_requests(ledger, "getSaleRequests", SALE_REQUEST_SCHEMA, SaleRequest, timeout=timeout)


async def accept(
    ledger: LedgerGateway, actor: Actor, request_id: int, timeout: Optional[float] = None
) -> TransactionReceipt:
    return await decide(ledger, actor, "acceptSale", request_id, "accept sale", timeout=timeout)


async def reject(
    ledger: LedgerGateway, actor: Actor, request_id: int, timeout: Optional[float] = None
) -> TransactionReceipt:
    return await decide(ledger, actor, "rejectSale", request_id, "reject sale", timeout=timeout)
