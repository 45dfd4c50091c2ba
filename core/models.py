"""
core/models.py — Land Registry Domain Models
==============================================
Read models materialized from (normalized) ledger records.
Ledger records use camelCase keys; every model aliases to camelCase so
`Parcel.model_validate(record)` works directly and API output matches the
ledger vocabulary.
"""

from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator
from pydantic.alias_generators import to_camel

from core.normalizer import NormalizedRecord

# A ledger integer after normalization: a safe int, or the untouched value
# (oversized int or digit string) that unnormalized_fields names.
LedgerInt = Union[StrictInt, StrictStr]


class LedgerModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    unnormalized_fields: List[str] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: NormalizedRecord):
        """Build a model from a normalized ledger record, carrying its flags."""
        return cls.model_validate({**record.values, "unnormalizedFields": record.flagged})


# ── Request lifecycle ─────────────────────────────────────────────────────────
class RequestStatus(str, Enum):
    """Pending → Accepted | Rejected. Both outcomes are terminal."""

    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"

    @classmethod
    def from_ledger(cls, value: Any) -> "RequestStatus":
        # the contract stores the enum as uint8: 0 Pending, 1 Accepted, 2 Rejected
        if isinstance(value, int) and not isinstance(value, bool):
            if not 0 <= value < len(LEDGER_STATUS_CODES):
                raise ValueError(f"Unknown ledger status code: {value}")
            return LEDGER_STATUS_CODES[value]
        return cls(value)


LEDGER_STATUS_CODES = (RequestStatus.PENDING, RequestStatus.ACCEPTED, RequestStatus.REJECTED)


class WorkflowRequest(LedgerModel):
    id: LedgerInt
    status: RequestStatus

    @field_validator("status", mode="before")
    @classmethod
    def _status_from_ledger(cls, value):
        return RequestStatus.from_ledger(value)


# ── Parcel ────────────────────────────────────────────────────────────────────
class Parcel(LedgerModel):
    id: LedgerInt
    owner: str
    area: LedgerInt
    location: str
    property_id: str
    survey_number: str
    price: LedgerInt
    document_refs: List[str]
    registered_at: LedgerInt
    for_sale: bool = False


class ParcelDraft(BaseModel):
    """What an owner submits for registration. Checked by registration.validate_draft."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    state: str
    district: str
    area: int
    property_id: str
    survey_number: str
    price: int
    document_refs: List[str] = Field(default_factory=list)

    @property
    def location(self) -> str:
        return f"{self.state.strip()} , {self.district.strip()}"


# ── Requests ──────────────────────────────────────────────────────────────────
class RegistrationRequest(WorkflowRequest):
    submitter: str
    area: LedgerInt
    location: str
    property_id: str
    survey_number: str
    price: LedgerInt
    document_refs: List[str]
    submitted_at: LedgerInt
    parcel_id: Optional[LedgerInt] = None

    @field_validator("parcel_id", mode="before")
    @classmethod
    def _zero_means_unset(cls, value):
        return None if value == 0 else value


class SaleRequest(WorkflowRequest):
    parcel_id: LedgerInt
    seller: str


class PurchaseRequest(WorkflowRequest):
    parcel_id: LedgerInt
    buyer: str
    seller: str


# ── Ledger receipts & API envelope ────────────────────────────────────────────
class TransactionReceipt(LedgerModel):
    tx_hash: str
    block_number: LedgerInt
    method: str
    signer: str
    result: Optional[Any] = None


T = TypeVar("T")


class OperationResult(BaseModel, Generic[T]):
    """Envelope every API response is wrapped in."""

    success: bool
    data: Optional[T] = None
    message: Optional[str] = None
    code: Optional[str] = None
    details: Optional[dict] = None
