"""Tests for the registration workflow."""

import pytest

from core.errors import InvalidState, NotAuthorized, NotFound, ValidationError
from core.models import RequestStatus
from modules import catalog, registration


class TestValidation:
    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"area": 0}, "area"),
            ({"area": -5}, "area"),
            ({"price": -1}, "price"),
            ({"property_id": "   "}, "propertyId"),
            ({"survey_number": ""}, "surveyNumber"),
            ({"state": ""}, "state"),
            ({"district": " "}, "district"),
            ({"document_refs": []}, "documentRefs"),
            ({"document_refs": ["deed.pdf", " "]}, "documentRefs"),
        ],
    )
    @pytest.mark.asyncio
    async def test_invalid_draft_never_reaches_ledger(self, ledger, owner, make_draft, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            await registration.submit(ledger, owner, make_draft(**overrides))
        assert field in exc_info.value.details
        assert ledger.blocks == []

    def test_all_problems_reported_together(self, make_draft):
        with pytest.raises(ValidationError) as exc_info:
            registration.validate_draft(make_draft(area=0, price=-1, document_refs=[]))
        assert set(exc_info.value.details) == {"area", "price", "documentRefs"}

    def test_zero_price_is_allowed(self, make_draft):
        registration.validate_draft(make_draft(price=0))


class TestRegistrationWorkflow:
    @pytest.mark.asyncio
    async def test_submit_creates_pending_request(self, ledger, owner, make_draft):
        request_id = await registration.submit(ledger, owner, make_draft())
        pending = await registration.list_pending(ledger)
        assert [r.id for r in pending] == [request_id]
        request = pending[0]
        assert request.status is RequestStatus.PENDING
        assert request.submitter == owner.account_id
        assert request.location == "Maharashtra , Pune"
        assert request.parcel_id is None
        assert request.submitted_at > 0

    @pytest.mark.asyncio
    async def test_accept_makes_parcel_visible(self, ledger, owner, admin, make_draft):
        draft = make_draft(area=250, price=7500, property_id="P9", document_refs=["a.pdf", "b.jpg"])
        request_id = await registration.submit(ledger, owner, draft)

        receipt = await registration.accept(ledger, admin, request_id)

        parcels = await catalog.list_all(ledger)
        assert len(parcels) == 1
        parcel = parcels[0]
        assert parcel.id == receipt.result
        assert parcel.owner == owner.account_id
        assert parcel.area == 250
        assert parcel.price == 7500
        assert parcel.property_id == "P9"
        assert parcel.survey_number == draft.survey_number
        assert parcel.document_refs == ["a.pdf", "b.jpg"]
        assert parcel.for_sale is False
        assert await registration.list_pending(ledger) == []

    @pytest.mark.asyncio
    async def test_reject_creates_nothing(self, ledger, owner, admin, make_draft):
        request_id = await registration.submit(ledger, owner, make_draft())
        await registration.reject(ledger, admin, request_id)
        assert await catalog.list_all(ledger) == []
        assert await registration.list_pending(ledger) == []

    @pytest.mark.asyncio
    async def test_second_decision_is_invalid_state(self, ledger, owner, admin, make_draft):
        accepted = await registration.submit(ledger, owner, make_draft(property_id="P1"))
        rejected = await registration.submit(ledger, owner, make_draft(property_id="P2"))
        await registration.accept(ledger, admin, accepted)
        await registration.reject(ledger, admin, rejected)

        with pytest.raises(InvalidState):
            await registration.accept(ledger, admin, accepted)
        with pytest.raises(InvalidState):
            await registration.reject(ledger, admin, accepted)
        with pytest.raises(InvalidState):
            await registration.accept(ledger, admin, rejected)
        assert len(await catalog.list_all(ledger)) == 1

    @pytest.mark.asyncio
    async def test_unknown_request(self, ledger, admin):
        with pytest.raises(NotFound):
            await registration.accept(ledger, admin, 77)

    @pytest.mark.asyncio
    async def test_only_admin_decides(self, ledger, owner, make_draft):
        request_id = await registration.submit(ledger, owner, make_draft())
        blocks_before = len(ledger.blocks)
        with pytest.raises(NotAuthorized):
            await registration.accept(ledger, owner, request_id)
        with pytest.raises(NotAuthorized):
            await registration.reject(ledger, owner, request_id)
        assert len(ledger.blocks) == blocks_before
