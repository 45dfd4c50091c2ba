"""
core/errors.py — Registry Error Taxonomy
==========================================
Every failure path in the workflow engine raises one of these.
The HTTP layer (main.py) maps `status_code` to a response; nothing below
the API ever decides transport details beyond that attribute.

    ValidationError                       → bad input, caught before the ledger
    NotOwner / NotForSale / AlreadySold /
    InvalidState / NotFound               → ledger-enforced business rules
    NotAuthorized / Unauthenticated       → role gate / bad credentials
    LedgerUnavailable / LedgerTimeout     → transient infrastructure failures
"""

from typing import Optional


class RegistryError(Exception):
    """Base exception for all land-registry failures."""

    code = "REGISTRY_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(RegistryError):
    """Malformed input. Raised locally — the ledger is never called."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotAuthorized(RegistryError):
    """Caller's role does not permit the operation."""

    code = "NOT_AUTHORIZED"
    status_code = 403


class Unauthenticated(RegistryError):
    """Missing, expired or forged caller credentials."""

    code = "UNAUTHENTICATED"
    status_code = 401


# ── Ledger-enforced business rules ────────────────────────────────────────────
class NotOwner(RegistryError):
    code = "NOT_OWNER"
    status_code = 403


class NotForSale(RegistryError):
    code = "NOT_FOR_SALE"
    status_code = 409


class AlreadySold(RegistryError):
    code = "ALREADY_SOLD"
    status_code = 409


class InvalidState(RegistryError):
    """Request is not Pending (or the parcel is not in a state that allows it)."""

    code = "INVALID_STATE"
    status_code = 409


class NotFound(RegistryError):
    code = "NOT_FOUND"
    status_code = 404


# ── Infrastructure ────────────────────────────────────────────────────────────
class LedgerError(RegistryError):
    """Transient ledger failure. Safe to retry at the caller's discretion."""

    code = "LEDGER_ERROR"
    status_code = 503


class LedgerUnavailable(LedgerError):
    code = "LEDGER_UNAVAILABLE"
    status_code = 503


class LedgerTimeout(LedgerError):
    """
    The deadline passed before the ledger answered.
    The transaction may or may not have committed — re-query before retrying.
    """

    code = "LEDGER_TIMEOUT"
    status_code = 504


class NormalizationWarning(UserWarning):
    """A ledger value could not be represented natively and was passed through."""


# Revert reasons emitted by the registry contract → error class
REVERT_REASONS = {
    "NOT_OWNER": NotOwner,
    "NOT_FOR_SALE": NotForSale,
    "ALREADY_SOLD": AlreadySold,
    "INVALID_STATE": InvalidState,
    "NOT_FOUND": NotFound,
}


def error_for_revert(reason: str, method: str) -> RegistryError:
    """Translate a contract revert reason into the matching registry error."""
    key = (reason or "").strip().upper()
    # web3 prefixes reasons, e.g. "execution reverted: NOT_OWNER"
    if ":" in key:
        key = key.rsplit(":", 1)[1].strip()
    error_class = REVERT_REASONS.get(key)
    if error_class is None:
        return LedgerUnavailable(
            f"Ledger reverted '{method}': {reason or 'no reason given'}",
            {"method": method, "reason": reason},
        )
    return error_class(f"Ledger rejected '{method}': {key}", {"method": method, "reason": key})
