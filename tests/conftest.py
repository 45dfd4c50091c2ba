"""Pytest configuration and fixtures."""

import os
import tempfile

# Settings are read at import time: point the audit DB and log file somewhere disposable.
_scratch = tempfile.mkdtemp(prefix="landledger-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_scratch}/audit.db")
os.environ.setdefault("LOG_FILE", os.path.join(_scratch, "landledger.log"))
os.environ.setdefault("ADMIN_ACCOUNTS", "[]")

import pytest  # noqa: E402

from core.ledger import SimulatedLedger  # noqa: E402
from core.models import ParcelDraft  # noqa: E402
from core.roles import Actor, Role  # noqa: E402
from modules import registration, sale  # noqa: E402


@pytest.fixture
def ledger() -> SimulatedLedger:
    """Fresh in-memory ledger per test."""
    return SimulatedLedger()


@pytest.fixture
def owner() -> Actor:
    return Actor(account_id="0xA11ce")


@pytest.fixture
def buyer() -> Actor:
    return Actor(account_id="0xB0b")


@pytest.fixture
def other_buyer() -> Actor:
    return Actor(account_id="0xCa401")


@pytest.fixture
def admin() -> Actor:
    return Actor(account_id="0xAd111", role=Role.ADMIN)


@pytest.fixture
def make_draft():
    """Factory for valid drafts; override any field."""

    def _make(**overrides) -> ParcelDraft:
        fields = {
            "state": "Maharashtra",
            "district": "Pune",
            "area": 100,
            "property_id": "P1",
            "survey_number": "S-42/1",
            "price": 5000,
            "document_refs": ["1712345678-deed.pdf"],
        }
        fields.update(overrides)
        return ParcelDraft(**fields)

    return _make


@pytest.fixture
def register_parcel(ledger, admin, make_draft):
    """Submit + accept a registration; returns the new parcel id."""

    async def _register(actor: Actor, **overrides) -> int:
        request_id = await registration.submit(ledger, actor, make_draft(**overrides))
        receipt = await registration.accept(ledger, admin, request_id)
        return receipt.result

    return _register


@pytest.fixture
def list_parcel(ledger, admin, register_parcel):
    """Register a parcel and get its sale request accepted; returns the parcel id."""

    async def _list(actor: Actor, **overrides) -> int:
        parcel_id = await register_parcel(actor, **overrides)
        sale_id = await sale.request_sale(ledger, actor, parcel_id)
        await sale.accept(ledger, admin, sale_id)
        return parcel_id

    return _list
