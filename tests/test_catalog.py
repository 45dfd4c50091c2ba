"""Tests for the parcel catalog read model."""

import pytest

from core.errors import LedgerUnavailable, NotFound, ValidationError
from modules import catalog


class TestCatalog:
    @pytest.mark.asyncio
    async def test_empty_ledger(self, ledger, owner):
        assert await catalog.list_all(ledger) == []
        assert await catalog.list_owned(ledger, owner.account_id) == []

    @pytest.mark.asyncio
    async def test_list_owned_filters_by_owner(self, ledger, owner, buyer, register_parcel):
        mine = await register_parcel(owner, property_id="P1")
        await register_parcel(buyer, property_id="P2")
        owned = await catalog.list_owned(ledger, owner.account_id)
        assert [p.id for p in owned] == [mine]
        assert owned[0].owner == owner.account_id

    @pytest.mark.asyncio
    async def test_list_all_keeps_ledger_order(self, ledger, owner, buyer, register_parcel):
        ids = [
            await register_parcel(owner, property_id="P1"),
            await register_parcel(buyer, property_id="P2"),
            await register_parcel(owner, property_id="P3"),
        ]
        assert [p.id for p in await catalog.list_all(ledger)] == ids

    @pytest.mark.asyncio
    async def test_list_owned_is_idempotent(self, ledger, owner, register_parcel):
        await register_parcel(owner, property_id="P1")
        await register_parcel(owner, property_id="P2")
        first = await catalog.list_owned(ledger, owner.account_id)
        second = await catalog.list_owned(ledger, owner.account_id)
        assert first == second

    @pytest.mark.asyncio
    async def test_get_parcel(self, ledger, owner, register_parcel):
        parcel_id = await register_parcel(owner)
        parcel = await catalog.get_parcel(ledger, parcel_id)
        assert parcel.id == parcel_id
        assert parcel.location == "Maharashtra , Pune"

    @pytest.mark.asyncio
    async def test_get_unknown_parcel(self, ledger):
        with pytest.raises(NotFound):
            await catalog.get_parcel(ledger, 404)

    @pytest.mark.asyncio
    async def test_get_parcel_rejects_bad_id_locally(self, ledger):
        with pytest.raises(ValidationError):
            await catalog.get_parcel(ledger, 0)

    @pytest.mark.asyncio
    async def test_for_sale_view(self, ledger, owner, register_parcel, list_parcel):
        await register_parcel(owner, property_id="P1")
        listed = await list_parcel(owner, property_id="P2")
        assert [p.id for p in await catalog.list_for_sale(ledger)] == [listed]

    @pytest.mark.asyncio
    async def test_oversized_ledger_values_are_flagged(self, ledger, owner, register_parcel):
        parcel_id = await register_parcel(owner)
        ledger._lands[parcel_id]["price"] = 2**80
        parcel = await catalog.get_parcel(ledger, parcel_id)
        assert parcel.price == 2**80
        assert parcel.unnormalized_fields == ["price"]

    @pytest.mark.asyncio
    async def test_non_canonical_strings_are_not_rewritten(self, ledger, owner, register_parcel):
        parcel_id = await register_parcel(owner)
        ledger._lands[parcel_id]["area"] = "0100"
        parcel = await catalog.get_parcel(ledger, parcel_id)
        assert parcel.area == "0100"
        assert parcel.unnormalized_fields == ["area"]

    @pytest.mark.asyncio
    async def test_ledger_failure_propagates(self, ledger, monkeypatch):
        async def broken(method, args):
            raise LedgerUnavailable("node down")

        monkeypatch.setattr(ledger, "_query", broken)
        with pytest.raises(LedgerUnavailable):
            await catalog.list_all(ledger)

    @pytest.mark.asyncio
    async def test_unexpected_payload(self, ledger, monkeypatch):
        async def odd(method, args):
            return {"not": "a list"}

        monkeypatch.setattr(ledger, "_query", odd)
        with pytest.raises(LedgerUnavailable):
            await catalog.list_all(ledger)
