"""
modules/purchase.py — Purchase Workflow
=========================================
A buyer asks to acquire a listed parcel; an administrator accepts (ownership
moves to the buyer and the listing closes, in ONE ledger transaction) or
rejects (no change).

Double-spend of a listing is prevented by the ledger alone. If two purchase
requests for the same parcel are accepted concurrently, exactly one succeeds
and the other fails with AlreadySold.
"""

import logging
from typing import List, Optional

from core.errors import NotForSale
from core.ledger import LedgerGateway
from core.models import PurchaseRequest, TransactionReceipt
from core.normalizer import PURCHASE_REQUEST_SCHEMA
from core.roles import Actor
from core.workflow import decide, fetch_requests, require_id
from modules.catalog import get_parcel

logger = logging.getLogger("landledger.modules.purchase")


async def request_purchase(
    ledger: LedgerGateway,
    actor: Actor,
    parcel_id: int,
    check_listing: bool = True,
    timeout: Optional[float] = None,
) -> int:
    """
    Returns the purchase request id.

    check_listing does a quick read so an unlisted parcel fails fast with a
    friendly error. It is advisory only; the ledger re-checks atomically.
    """
    parcel_id = require_id(parcel_id, "parcelId")

    if check_listing:
        parcel = await get_parcel(ledger, parcel_id, timeout=timeout)
        if not parcel.for_sale:
            raise NotForSale(
                f"Parcel #{parcel_id} is not listed for sale.",
                {"parcelId": parcel_id},
            )

    receipt = await ledger.submit_transaction(
        "buyReq", [actor.account_id, parcel_id], actor.account_id, timeout=timeout
    )
    logger.info(f"Purchase request #{receipt.result} for parcel #{parcel_id} by {actor.account_id}")
    return receipt.result


async def list_pending(ledger: LedgerGateway, timeout: Optional[float] = None) -> List[PurchaseRequest]:
    return await fetch_requests(
        ledger, "getBuyRequest", PURCHASE_REQUEST_SCHEMA, PurchaseRequest, timeout=timeout
    )


async def accept(
    ledger: LedgerGateway, actor: Actor, request_id: int, timeout: Optional[float] = None
) -> TransactionReceipt:
    """Transfers ownership. AlreadySold if the listing closed since the request."""
    receipt = await decide(ledger, actor, "acceptBuy", request_id, "accept purchase", timeout=timeout)
    logger.info(f"Parcel #{receipt.result} transferred under purchase request #{request_id}")
    return receipt


async def reject(
    ledger: LedgerGateway, actor: Actor, request_id: int, timeout: Optional[float] = None
) -> TransactionReceipt:
    return await decide(ledger, actor, "rejectBuy", request_id, "reject purchase", timeout=timeout)
