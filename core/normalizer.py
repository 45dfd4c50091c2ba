"""
core/normalizer.py — Ledger Numeric Normalizer
================================================
Ledger values arrive as arbitrary-precision integers (uint256 on the
contract side, sometimes stringified by the client). The HTTP layer hands
them to JavaScript/JSON consumers, so only integers inside the IEEE-754
safe range are converted to plain ints.

Anything outside that range is passed through UNCHANGED and flagged.
It is never truncated or rounded.

Fields to convert are declared up front with a RecordSchema per ledger
record type. Unknown keys are copied as-is, never probed.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from core.errors import NormalizationWarning

logger = logging.getLogger("landledger.normalizer")

MAX_SAFE_INTEGER = 2**53 - 1
MIN_SAFE_INTEGER = -MAX_SAFE_INTEGER

_INTEGER_TEXT = re.compile(r"-?[0-9]+")


@dataclass(frozen=True)
class RecordSchema:
    """
    Which fields of a ledger record are numeric.

    numeric — scalar integer fields
    nested  — field name → schema of a nested record (or list of records)
    """

    name: str
    numeric: Tuple[str, ...] = ()
    nested: Mapping[str, "RecordSchema"] = field(default_factory=dict)


@dataclass
class NormalizedRecord:
    values: Dict[str, Any]
    flagged: List[str] = field(default_factory=list)


class _Unnormalizable:
    pass


_UNNORMALIZABLE = _Unnormalizable()


def _to_safe_int(value: Any):
    if isinstance(value, bool):
        return _UNNORMALIZABLE
    if isinstance(value, int):
        candidate = value
    elif isinstance(value, str):
        text = value.strip()
        if not _INTEGER_TEXT.fullmatch(text):
            return _UNNORMALIZABLE
        candidate = int(text)
        if str(candidate) != text:
            # leading zeros / "+" — re-encoding would not reproduce the input
            return _UNNORMALIZABLE
    else:
        return _UNNORMALIZABLE
    if MIN_SAFE_INTEGER <= candidate <= MAX_SAFE_INTEGER:
        return candidate
    return _UNNORMALIZABLE


def is_normalizable(value: Any) -> bool:
    return _to_safe_int(value) is not _UNNORMALIZABLE


def normalize_value(value: Any) -> Any:
    """Return `value` as a native int if exactly representable, else unchanged."""
    converted = _to_safe_int(value)
    if converted is _UNNORMALIZABLE:
        return value
    return converted


def normalize_record(raw: Mapping[str, Any], schema: RecordSchema, _path: str = "") -> NormalizedRecord:
    values = dict(raw)
    flagged: List[str] = []

    for name in schema.numeric:
        if name not in values or values[name] is None:
            continue
        original = values[name]
        converted = _to_safe_int(original)
        if converted is _UNNORMALIZABLE:
            flagged.append(f"{_path}{name}")
        else:
            values[name] = converted

    for name, child in schema.nested.items():
        value = values.get(name)
        if isinstance(value, Mapping):
            result = normalize_record(value, child, f"{_path}{name}.")
            values[name] = result.values
            flagged.extend(result.flagged)
        elif isinstance(value, (list, tuple)):
            items = []
            for index, item in enumerate(value):
                result = normalize_record(item, child, f"{_path}{name}[{index}].")
                items.append(result.values)
                flagged.extend(result.flagged)
            values[name] = items

    if flagged and not _path:
        logger.warning(
            f"{NormalizationWarning.__name__}: {schema.name} record id={values.get('id')} "
            f"has values outside the safe integer range, passed through unchanged: {flagged}"
        )
    return NormalizedRecord(values=values, flagged=flagged)


def normalize_records(raws: Sequence[Mapping[str, Any]], schema: RecordSchema) -> List[NormalizedRecord]:
    """Normalize every record, preserving the ledger's order."""
    return [normalize_record(raw, schema) for raw in raws]


# ── Ledger record schemas ─────────────────────────────────────────────────────
PARCEL_SCHEMA = RecordSchema(
    name="Parcel",
    numeric=("id", "area", "price", "registeredAt"),
)

REGISTRATION_REQUEST_SCHEMA = RecordSchema(
    name="RegistrationRequest",
    numeric=("id", "area", "price", "submittedAt", "status", "parcelId"),
)

SALE_REQUEST_SCHEMA = RecordSchema(
    name="SaleRequest",
    numeric=("id", "parcelId", "status"),
)

PURCHASE_REQUEST_SCHEMA = RecordSchema(
    name="PurchaseRequest",
    numeric=("id", "parcelId", "status"),
)

RECEIPT_SCHEMA = RecordSchema(
    name="TransactionReceipt",
    numeric=("blockNumber", "result"),
)
