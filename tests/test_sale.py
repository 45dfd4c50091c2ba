"""Tests for the sale listing workflow."""

import pytest

from core.errors import InvalidState, NotAuthorized, NotFound, NotOwner
from core.models import RequestStatus
from modules import catalog, sale


class TestSaleWorkflow:
    @pytest.mark.asyncio
    async def test_owner_request_is_pending(self, ledger, owner, register_parcel):
        parcel_id = await register_parcel(owner)
        request_id = await sale.request_sale(ledger, owner, parcel_id)
        pending = await sale.list_pending(ledger)
        assert len(pending) == 1
        assert pending[0].id == request_id
        assert pending[0].parcel_id == parcel_id
        assert pending[0].seller == owner.account_id
        assert pending[0].status is RequestStatus.PENDING

    @pytest.mark.asyncio
    async def test_accept_lists_parcel(self, ledger, owner, admin, register_parcel):
        parcel_id = await register_parcel(owner)
        request_id = await sale.request_sale(ledger, owner, parcel_id)
        await sale.accept(ledger, admin, request_id)
        parcel = await catalog.get_parcel(ledger, parcel_id)
        assert parcel.for_sale is True
        assert parcel.owner == owner.account_id

    @pytest.mark.asyncio
    async def test_reject_changes_nothing(self, ledger, owner, admin, register_parcel):
        parcel_id = await register_parcel(owner)
        request_id = await sale.request_sale(ledger, owner, parcel_id)
        await sale.reject(ledger, admin, request_id)
        assert (await catalog.get_parcel(ledger, parcel_id)).for_sale is False
        assert await sale.list_pending(ledger) == []
        with pytest.raises(InvalidState):
            await sale.accept(ledger, admin, request_id)

    @pytest.mark.asyncio
    async def test_non_owner_is_refused_by_ledger(self, ledger, owner, buyer, register_parcel):
        parcel_id = await register_parcel(owner)
        with pytest.raises(NotOwner):
            await sale.request_sale(ledger, buyer, parcel_id)
        assert await sale.list_pending(ledger) == []

    @pytest.mark.asyncio
    async def test_one_pending_request_per_parcel(self, ledger, owner, register_parcel):
        parcel_id = await register_parcel(owner)
        await sale.request_sale(ledger, owner, parcel_id)
        with pytest.raises(InvalidState):
            await sale.request_sale(ledger, owner, parcel_id)

    @pytest.mark.asyncio
    async def test_already_listed_parcel(self, ledger, owner, list_parcel):
        parcel_id = await list_parcel(owner)
        with pytest.raises(InvalidState):
            await sale.request_sale(ledger, owner, parcel_id)

    @pytest.mark.asyncio
    async def test_unknown_parcel(self, ledger, owner):
        with pytest.raises(NotFound):
            await sale.request_sale(ledger, owner, 12)

    @pytest.mark.asyncio
    async def test_only_admin_decides(self, ledger, owner, register_parcel):
        parcel_id = await register_parcel(owner)
        request_id = await sale.request_sale(ledger, owner, parcel_id)
        with pytest.raises(NotAuthorized):
            await sale.accept(ledger, owner, request_id)
        assert (await catalog.get_parcel(ledger, parcel_id)).for_sale is False
