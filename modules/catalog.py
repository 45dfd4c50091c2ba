"""
modules/catalog.py — Parcel Catalog
=====================================
Read model over registered land. Every record is normalized before it
leaves this module; ledger order is kept as-is. Nothing is cached. If the
ledger is down the caller gets LedgerUnavailable, not stale data.
"""

import logging
from typing import List, Optional

from core.ledger import LedgerGateway
from core.models import Parcel
from core.normalizer import PARCEL_SCHEMA, normalize_record
from core.workflow import fetch_records, require_id

logger = logging.getLogger("landledger.modules.catalog")


async def list_owned(ledger: LedgerGateway, owner_id: str, timeout: Optional[float] = None) -> List[Parcel]:
    """All parcels currently held by `owner_id`."""
    parcels = await fetch_records(ledger, "getMyLands", (owner_id,), PARCEL_SCHEMA, Parcel, timeout=timeout)
    logger.debug(f"{owner_id} holds {len(parcels)} parcels")
    return parcels


async def list_all(ledger: LedgerGateway, timeout: Optional[float] = None) -> List[Parcel]:
    return await fetch_records(ledger, "getAllLands", (), PARCEL_SCHEMA, Parcel, timeout=timeout)


async def list_for_sale(ledger: LedgerGateway, timeout: Optional[float] = None) -> List[Parcel]:
    """Marketplace view: parcels whose sale request was accepted."""
    return [p for p in await list_all(ledger, timeout=timeout) if p.for_sale]


async def get_parcel(ledger: LedgerGateway, parcel_id: int, timeout: Optional[float] = None) -> Parcel:
    parcel_id = require_id(parcel_id, "parcelId")
    raw = await ledger.query("getLand", (parcel_id,), timeout=timeout)
    return Parcel.from_record(normalize_record(raw, PARCEL_SCHEMA))
