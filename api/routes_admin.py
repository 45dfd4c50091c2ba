"""
api/routes_admin.py — Registry Administrator Endpoints

Endpoints:
    GET  /admin/registrations                → Pending registrations
    POST /admin/registrations/{id}/accept    → Create the parcel
    POST /admin/registrations/{id}/reject
    GET  /admin/sales                        → Pending sale requests
    POST /admin/sales/{id}/accept            → List the parcel for sale
    POST /admin/sales/{id}/reject
    GET  /admin/purchases                    → Pending purchase requests
    POST /admin/purchases/{id}/accept        → Transfer ownership to the buyer
    POST /admin/purchases/{id}/reject
    GET  /admin/audit                        → Recent audit trail

All routes require the admin role. Decisions are gated again inside the
workflow modules, so nothing can reach the ledger by bypassing this router.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.routes_lands import request_deadline, run_audited
from core.ledger import LedgerGateway, get_ledger
from core.models import (
    OperationResult,
    PurchaseRequest,
    RegistrationRequest,
    SaleRequest,
    TransactionReceipt,
)
from core.roles import Actor, require_admin
from core.security import get_current_actor
from db.models import recent_entries
from db.session import get_db
from modules import purchase, registration, sale

router = APIRouter()


# ── Registrations ─────────────────────────────────────────────────────────────
@router.get("/registrations", response_model=OperationResult[List[RegistrationRequest]])
async def pending_registrations(
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    timeout: Optional[float] = Depends(request_deadline),
):
    require_admin(actor, "list registrations")
    return OperationResult(success=True, data=await registration.list_pending(ledger, timeout=timeout))


@router.post("/registrations/{request_id}/accept", response_model=OperationResult[TransactionReceipt])
async def accept_registration(
    request_id: int,
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
    timeout: Optional[float] = Depends(request_deadline),
):
    receipt = await run_audited(
        db, actor, "registration", "ACCEPT", request_id,
        registration.accept(ledger, actor, request_id, timeout=timeout),
    )
    return OperationResult(success=True, data=receipt, message="land registered")


@router.post("/registrations/{request_id}/reject", response_model=OperationResult[TransactionReceipt])
async def reject_registration(
    request_id: int,
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
    timeout: Optional[float] = Depends(request_deadline),
):
    receipt = await run_audited(
        db, actor, "registration", "REJECT", request_id,
        registration.reject(ledger, actor, request_id, timeout=timeout),
    )
    return OperationResult(success=True, data=receipt, message="registration rejected")


# ── Sales ─────────────────────────────────────────────────────────────────────
@router.get("/sales", response_model=OperationResult[List[SaleRequest]])
async def pending_sales(
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    timeout: Optional[float] = Depends(request_deadline),
):
    require_admin(actor, "list sale requests")
    return OperationResult(success=True, data=await sale.list_pending(ledger, timeout=timeout))


@router.post("/sales/{request_id}/accept", response_model=OperationResult[TransactionReceipt])
async def accept_sale(
    request_id: int,
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
    timeout: Optional[float] = Depends(request_deadline),
):
    receipt = await run_audited(
        db, actor, "sale", "ACCEPT", request_id,
        sale.accept(ledger, actor, request_id, timeout=timeout),
    )
    return OperationResult(success=True, data=receipt, message="land listed for sale")


@router.post("/sales/{request_id}/reject", response_model=OperationResult[TransactionReceipt])
async def reject_sale(
    request_id: int,
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
    timeout: Optional[float] = Depends(request_deadline),
):
    receipt = await run_audited(
        db, actor, "sale", "REJECT", request_id,
        sale.reject(ledger, actor, request_id, timeout=timeout),
    )
    return OperationResult(success=True, data=receipt, message="sale request rejected")


# ── Purchases ─────────────────────────────────────────────────────────────────
@router.get("/purchases", response_model=OperationResult[List[PurchaseRequest]])
async def pending_purchases(
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    timeout: Optional[float] = Depends(request_deadline),
):
    require_admin(actor, "list purchase requests")
    return OperationResult(success=True, data=await purchase.list_pending(ledger, timeout=timeout))


@router.post("/purchases/{request_id}/accept", response_model=OperationResult[TransactionReceipt])
async def accept_purchase(
    request_id: int,
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
    timeout: Optional[float] = Depends(request_deadline),
):
    receipt = await run_audited(
        db, actor, "purchase", "ACCEPT", request_id,
        purchase.accept(ledger, actor, request_id, timeout=timeout),
    )
    return OperationResult(success=True, data=receipt, message="land purchased")


@router.post("/purchases/{request_id}/reject", response_model=OperationResult[TransactionReceipt])
async def reject_purchase(
    request_id: int,
    actor: Actor = Depends(get_current_actor),
    ledger: LedgerGateway = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
    timeout: Optional[float] = Depends(request_deadline),
):
    receipt = await run_audited(
        db, actor, "purchase", "REJECT", request_id,
        purchase.reject(ledger, actor, request_id, timeout=timeout),
    )
    return OperationResult(success=True, data=receipt, message="purchase request rejected")


# ── Audit ─────────────────────────────────────────────────────────────────────
@router.get("/audit")
async def get_audit_trail(
    limit: int = Query(default=50, ge=1, le=500),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Most recent workflow actions, newest first."""
    require_admin(actor, "read audit trail")
    entries = await recent_entries(db, limit)
    return OperationResult(success=True, data=[
        {
            "actor": entry.actor_id,
            "role": entry.actor_role,
            "action": entry.action,
            "module": entry.module,
            "subjectId": entry.subject_id,
            "outcome": entry.outcome,
            "details": entry.details,
            "txHash": entry.tx_hash,
            "timestamp": entry.timestamp.isoformat(),
        }
        for entry in entries
    ])
