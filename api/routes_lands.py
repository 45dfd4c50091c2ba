"""
api/routes_lands.py — Land Registry API Endpoints (owners & buyers)

Endpoints:
    GET  /lands                  → All registered parcels
    GET  /lands/mine             → Parcels held by the caller
    GET  /lands/for-sale         → Parcels currently listed
    GET  /lands/{parcel_id}      → One parcel
    POST /lands/register         → Submit a parcel for registration
    POST /lands/{parcel_id}/sell → Ask to list a parcel for sale
    POST /lands/{parcel_id}/buy  → Ask to buy a listed parcel

Every response is an OperationResult envelope: {success, data, message}.
Failures are raised as registry errors and rendered by main.py.
"""

from typing import Awaitable, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import RegistryError
from core.ledger import LedgerGateway, get_ledger
from core.models import OperationResult, Parcel, ParcelDraft, TransactionReceipt
from core.roles import Actor
from core.security import get_current_actor
from db.models import AuditLog
from db.session import get_db
from modules import catalog, purchase, registration, sale

router = APIRouter()


def request_deadline(
    timeout: Optional[float] = Query(default=None, gt=0, le=300, description="Ledger deadline in seconds"),
) -> Optional[float]:
    return timeout


async def run_audited(
    db: AsyncSession,
    actor: Actor,
    module: str,
    action: str,
    subject_id: Optional[int],
    call: Awaitable,
):
    """Await a workflow call and append the outcome, success or failure, to the audit trail."""
    try:
        result = await call
    except RegistryError as e:
        db.add(AuditLog(
            actor_id=actor.account_id, actor_role=actor.role.value,
            action=action, module=module, subject_id=subject_id,
            outcome=e.code, details=e.message,
        ))
        await db.commit()
        raise

    receipt = result if isinstance(result, TransactionReceipt) else None
    db.add(AuditLog(
        actor_id=actor.account_id, actor_role=actor.role.value,
        action=action, module=module,
        subject_id=subject_id if subject_id is not None else result,
        details=None if receipt else f"created request #{result}",
        tx_hash=receipt.tx_hash if receipt else None,
    ))
    return result


# ── Catalog ───────────────────────────────────────────────────────────────────
@router.get("", response_model=OperationResult[List[Parcel]])
async def list_all_lands(
    ledger: LedgerGateway = Depends(get_ledger),
    timeout: Optional[float] = Depends(request_deadline),
):
    return OperationResult(success=True, data=await catalog.list_all(ledger, timeout=timeout))


@router.get("/mine", response_model=OperationResult[List[Parcel]])
async def list_my_lands(
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    timeout: Optional[float] = Depends(request_deadline),
):
    parcels = await catalog.list_owned(ledger, actor.account_id, timeout=timeout)
    return OperationResult(success=True, data=parcels)


@router.get("/for-sale", response_model=OperationResult[List[Parcel]])
async def list_lands_for_sale(
    ledger: LedgerGateway = Depends(get_ledger),
    timeout: Optional[float] = Depends(request_deadline),
):
    return OperationResult(success=True, data=await catalog.list_for_sale(ledger, timeout=timeout))


@router.get("/{parcel_id}", response_model=OperationResult[Parcel])
async def get_land(
    parcel_id: int,
    ledger: LedgerGateway = Depends(get_ledger),
    timeout: Optional[float] = Depends(request_deadline),
):
    return OperationResult(success=True, data=await catalog.get_parcel(ledger, parcel_id, timeout=timeout))


# ── Owner / buyer actions ─────────────────────────────────────────────────────
@router.post("/register", response_model=OperationResult[int], status_code=201)
async def register_land(
    body: ParcelDraft,
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
    timeout: Optional[float] = Depends(request_deadline),
):
    """Submit a parcel; it appears in the catalog once an administrator accepts it."""
    request_id = await run_audited(
        db, actor, "registration", "SUBMIT", None,
        registration.submit(ledger, actor, body, timeout=timeout),
    )
    return OperationResult(success=True, data=request_id, message="land registration submitted")


@router.post("/{parcel_id}/sell", response_model=OperationResult[int], status_code=201)
async def sell_land(
    parcel_id: int,
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
    timeout: Optional[float] = Depends(request_deadline),
):
    request_id = await run_audited(
        db, actor, "sale", "REQUEST_SALE", parcel_id,
        sale.request_sale(ledger, actor, parcel_id, timeout=timeout),
    )
    return OperationResult(success=True, data=request_id, message="sale request submitted")


@router.post("/{parcel_id}/buy", response_model=OperationResult[int], status_code=201)
async def buy_land(
    parcel_id: int,
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
    timeout: Optional[float] = Depends(request_deadline),
):
    request_id = await run_audited(
        db, actor, "purchase", "REQUEST_PURCHASE", parcel_id,
        purchase.request_purchase(ledger, actor, parcel_id, timeout=timeout),
    )
    return OperationResult(success=True, data=request_id, message="purchase request submitted")
