"""
core/ledger.py — Ledger Gateway
=================================
The ONLY component allowed to query or mutate ground-truth land state.
Two backends share one contract:

  1. "simulation" — in-memory registry contract, no external dependencies (start here)
  2. "ethereum"   — the deployed LandRegistry contract via web3.py

Set LEDGER_BACKEND in .env to switch.
All workflows receive the gateway explicitly; the API gets it via get_ledger().

    receipt = await ledger.submit_transaction("acceptReg", [7], signer_id="0xAdmin")
    lands   = await ledger.query("getMyLands", ["0xOwner"])

Every call takes a deadline. On expiry the call is abandoned and LedgerTimeout
is raised. The transaction may still commit, so callers must re-query.
"""

import asyncio
import copy
import hashlib
import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from config import settings
from core.errors import (
    LedgerTimeout,
    LedgerUnavailable,
    ValidationError,
    error_for_revert,
)
from core.models import TransactionReceipt
from core.normalizer import RECEIPT_SCHEMA, normalize_record

logger = logging.getLogger("landledger.ledger")

# Contract-side request status codes (uint8 enum)
PENDING, ACCEPTED, REJECTED = 0, 1, 2


class ContractRevert(Exception):
    """Raised inside the simulated contract; carries the revert reason string."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


# ── Gateway contract ──────────────────────────────────────────────────────────
class LedgerGateway:
    """
    Request/response interface to the ledger.
    Backends implement _submit() and _query(); deadlines, signer checks,
    receipt shaping and logging live here.
    """

    backend = "base"

    def __init__(self, default_timeout: Optional[float] = None):
        self.default_timeout = (
            settings.LEDGER_TIMEOUT_SECONDS if default_timeout is None else default_timeout
        )

    async def connect(self):
        pass

    async def disconnect(self):
        pass

    async def ping(self) -> str:
        return "ok"

    async def submit_transaction(
        self,
        method: str,
        args: Sequence[Any],
        signer_id: str,
        timeout: Optional[float] = None,
    ) -> TransactionReceipt:
        """Send a state-changing transaction signed by `signer_id`."""
        if not signer_id or not str(signer_id).strip():
            raise ValidationError("A signer account is required for ledger transactions.")

        raw = await self._with_deadline(
            self._submit(method, tuple(args), signer_id), method, timeout
        )
        receipt = TransactionReceipt.from_record(normalize_record(raw, RECEIPT_SCHEMA))
        logger.info(
            f"Tx {method} by {signer_id} mined in block #{receipt.block_number} "
            f"hash={receipt.tx_hash[:18]}..."
        )
        return receipt

    async def query(
        self,
        method: str,
        args: Sequence[Any] = (),
        timeout: Optional[float] = None,
    ) -> Any:
        """Read-only contract call. Returns the raw (un-normalized) result."""
        return await self._with_deadline(self._query(method, tuple(args)), method, timeout)

    async def _with_deadline(self, call, method: str, timeout: Optional[float]):
        deadline = self.default_timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(call, timeout=deadline)
        except asyncio.TimeoutError:
            logger.warning(f"Ledger call '{method}' exceeded {deadline}s — outcome unknown")
            raise LedgerTimeout(
                f"Ledger call '{method}' timed out after {deadline}s. "
                "It may still commit; re-query state before retrying.",
                {"method": method, "timeout": deadline},
            )

    async def _submit(self, method: str, args: tuple, signer_id: str) -> dict:
        raise NotImplementedError

    async def _query(self, method: str, args: tuple) -> Any:
        raise NotImplementedError


# ── Simulated Ledger (default — works with zero setup) ────────────────────────
class SimulatedLedger(LedgerGateway):
    """
    In-memory registry contract.
    Perfect for development and tests: no node, no contract deployment.
    Transactions are serialized through one lock, the same ordering guarantee
    a real chain gives. Data resets when the process restarts.
    """

    backend = "simulation"

    def __init__(self, latency: float = 0.0, default_timeout: Optional[float] = None):
        super().__init__(default_timeout)
        self.latency = latency       # seconds of fake network delay per call
        self.blocks = []
        self.block_number = 0
        self._lock = asyncio.Lock()

        self._lands: Dict[int, dict] = {}
        self._registrations: Dict[int, dict] = {}
        self._sales: Dict[int, dict] = {}
        self._purchases: Dict[int, dict] = {}

        self._transactions = {
            "addLand": self._add_land,
            "acceptReg": self._accept_reg,
            "rejectReg": self._reject_reg,
            "sellReq": self._sell_req,
            "acceptSale": self._accept_sale,
            "rejectSale": self._reject_sale,
            "buyReq": self._buy_req,
            "acceptBuy": self._accept_buy,
            "rejectBuy": self._reject_buy,
        }
        self._queries = {
            "getMyLands": self._get_my_lands,
            "getAllLands": self._get_all_lands,
            "getLand": self._get_land,
            "getSellRequest": lambda: list(self._registrations.values()),
            "getSaleRequests": lambda: list(self._sales.values()),
            "getBuyRequest": lambda: list(self._purchases.values()),
        }

    async def connect(self):
        logger.info("SimulatedLedger: ready (in-memory mode)")
        if not self.blocks:
            self._mine_block("GENESIS", "0x0", {"message": "LandLedger genesis block"})

    async def disconnect(self):
        logger.info("SimulatedLedger: disconnected")

    async def ping(self) -> str:
        return f"ok — simulated ledger, {len(self.blocks)} blocks"

    def _mine_block(self, method: str, signer_id: str, data: dict) -> dict:
        prev_hash = self.blocks[-1]["hash"] if self.blocks else "0" * 64
        timestamp = datetime.utcnow().isoformat()
        payload = json.dumps({
            "block_number": self.block_number,
            "method": method,
            "signer": signer_id,
            "data": data,
            "prev_hash": prev_hash,
            "timestamp": timestamp,
        }, sort_keys=True, default=str)
        block = {
            "block_number": self.block_number,
            "method": method,
            "signer": signer_id,
            "data": data,
            "prev_hash": prev_hash,
            "hash": hashlib.sha3_256(payload.encode()).hexdigest(),
            "timestamp": timestamp,
        }
        self.blocks.append(block)
        self.block_number += 1
        return block

    async def _submit(self, method: str, args: tuple, signer_id: str) -> dict:
        handler = self._transactions.get(method)
        if handler is None:
            raise LedgerUnavailable(f"Unknown contract method '{method}'", {"method": method})

        async with self._lock:
            if self.latency:
                await asyncio.sleep(self.latency)
            try:
                result = handler(signer_id, *args)
            except ContractRevert as revert:
                logger.info(f"SimulatedLedger: {method} reverted ({revert.reason})")
                raise error_for_revert(revert.reason, method)
            block = self._mine_block(method, signer_id, {"args": list(args), "result": result})

        return {
            "txHash": "0x" + block["hash"],
            "blockNumber": block["block_number"],
            "method": method,
            "signer": signer_id,
            "result": result,
        }

    async def _query(self, method: str, args: tuple) -> Any:
        handler = self._queries.get(method)
        if handler is None:
            raise LedgerUnavailable(f"Unknown contract method '{method}'", {"method": method})
        if self.latency:
            await asyncio.sleep(self.latency)
        try:
            result = handler(*args)
        except ContractRevert as revert:
            raise error_for_revert(revert.reason, method)
        # callers get copies; contract storage is never shared
        return copy.deepcopy(result)

    # ── contract storage helpers ──────────────────────────────────────────
    @staticmethod
    def _pending(queue: Dict[int, dict], request_id: int) -> dict:
        request = queue.get(request_id)
        if request is None:
            raise ContractRevert("NOT_FOUND")
        if request["status"] != PENDING:
            raise ContractRevert("INVALID_STATE")
        return request

    def _land(self, parcel_id: int) -> dict:
        land = self._lands.get(parcel_id)
        if land is None:
            raise ContractRevert("NOT_FOUND")
        return land

    # ── queries ───────────────────────────────────────────────────────────
    def _get_my_lands(self, owner: str) -> list:
        return [land for land in self._lands.values() if land["owner"] == owner]

    def _get_all_lands(self) -> list:
        return list(self._lands.values())

    def _get_land(self, parcel_id: int) -> dict:
        return self._land(parcel_id)

    # ── registration ──────────────────────────────────────────────────────
    def _add_land(self, signer, area, location, property_id, survey_number, price, document_refs, submitted_at):
        request_id = len(self._registrations) + 1
        self._registrations[request_id] = {
            "id": request_id,
            "submitter": signer,
            "area": area,
            "location": location,
            "propertyId": property_id,
            "surveyNumber": survey_number,
            "price": price,
            "documentRefs": list(document_refs),
            "submittedAt": submitted_at,
            "status": PENDING,
            "parcelId": 0,
        }
        return request_id

    def _accept_reg(self, signer, request_id):
        request = self._pending(self._registrations, request_id)
        parcel_id = len(self._lands) + 1
        self._lands[parcel_id] = {
            "id": parcel_id,
            "owner": request["submitter"],
            "area": request["area"],
            "location": request["location"],
            "propertyId": request["propertyId"],
            "surveyNumber": request["surveyNumber"],
            "price": request["price"],
            "documentRefs": list(request["documentRefs"]),
            "registeredAt": request["submittedAt"],
            "forSale": False,
        }
        request["status"] = ACCEPTED
        request["parcelId"] = parcel_id
        return parcel_id

    def _reject_reg(self, signer, request_id):
        self._pending(self._registrations, request_id)["status"] = REJECTED
        return request_id

    # ── sale ──────────────────────────────────────────────────────────────
    def _sell_req(self, signer, seller, parcel_id):
        land = self._land(parcel_id)
        if land["owner"] != seller or signer != seller:
            raise ContractRevert("NOT_OWNER")
        if land["forSale"]:
            raise ContractRevert("INVALID_STATE")
        if any(s["parcelId"] == parcel_id and s["status"] == PENDING for s in self._sales.values()):
            raise ContractRevert("INVALID_STATE")
        request_id = len(self._sales) + 1
        self._sales[request_id] = {
            "id": request_id,
            "parcelId": parcel_id,
            "seller": seller,
            "status": PENDING,
        }
        return request_id

    def _accept_sale(self, signer, request_id):
        request = self._pending(self._sales, request_id)
        land = self._land(request["parcelId"])
        if land["owner"] != request["seller"]:
            raise ContractRevert("NOT_OWNER")
        land["forSale"] = True
        request["status"] = ACCEPTED
        return request["parcelId"]

    def _reject_sale(self, signer, request_id):
        self._pending(self._sales, request_id)["status"] = REJECTED
        return request_id

    # ── purchase ──────────────────────────────────────────────────────────
    def _buy_req(self, signer, buyer, parcel_id):
        land = self._land(parcel_id)
        if not land["forSale"]:
            raise ContractRevert("NOT_FOR_SALE")
        if land["owner"] == buyer:
            raise ContractRevert("INVALID_STATE")
        if any(
            p["parcelId"] == parcel_id and p["buyer"] == buyer and p["status"] == PENDING
            for p in self._purchases.values()
        ):
            raise ContractRevert("INVALID_STATE")
        request_id = len(self._purchases) + 1
        self._purchases[request_id] = {
            "id": request_id,
            "parcelId": parcel_id,
            "buyer": buyer,
            "seller": land["owner"],
            "status": PENDING,
        }
        return request_id

    def _accept_buy(self, signer, request_id):
        request = self._pending(self._purchases, request_id)
        land = self._land(request["parcelId"])
        if land["owner"] != request["seller"] or not land["forSale"]:
            raise ContractRevert("ALREADY_SOLD")
        land["owner"] = request["buyer"]
        land["forSale"] = False
        request["status"] = ACCEPTED
        return request["parcelId"]

    def _reject_buy(self, signer, request_id):
        self._pending(self._purchases, request_id)["status"] = REJECTED
        return request_id


# ── Ethereum Backend ──────────────────────────────────────────────────────────
def _decode_abi_value(abi_output: dict, value: Any) -> Any:
    """Turn web3's positional tuples into dicts keyed by the ABI component names."""
    abi_type = abi_output.get("type", "")
    if abi_type.endswith("[]"):
        item_abi = {**abi_output, "type": abi_type[:-2]}
        return [_decode_abi_value(item_abi, item) for item in value]
    components = abi_output.get("components")
    if components:
        return {
            component["name"]: _decode_abi_value(component, item)
            for component, item in zip(components, value)
        }
    return value


class EthereumLedger(LedgerGateway):
    """
    Talks to the deployed LandRegistry contract on an Ethereum node
    (local Ganache/Hardhat or a testnet).
    Requires: WEB3_PROVIDER_URL, CONTRACT_ADDRESS and CONTRACT_ABI_PATH in .env.
    Signer accounts must be unlocked on the node — each call names its signer
    explicitly, nothing is taken from process-wide wallet state.
    """

    backend = "ethereum"

    def __init__(self, default_timeout: Optional[float] = None):
        super().__init__(default_timeout)
        self.w3 = None
        self.contract = None
        self._outputs: Dict[str, list] = {}

    async def connect(self):
        try:
            from web3 import Web3
        except ImportError:
            raise ImportError("web3 not installed. Run: pip install web3")

        if not settings.CONTRACT_ADDRESS:
            raise ValueError("CONTRACT_ADDRESS is not set in .env!")

        w3 = Web3(Web3.HTTPProvider(settings.WEB3_PROVIDER_URL))
        if not w3.is_connected():
            raise LedgerUnavailable(f"Cannot connect to {settings.WEB3_PROVIDER_URL}")

        with open(settings.CONTRACT_ABI_PATH, encoding="utf-8") as fh:
            abi = json.load(fh)
        contract = w3.eth.contract(address=Web3.to_checksum_address(settings.CONTRACT_ADDRESS), abi=abi)
        self.attach(w3, contract, abi)
        logger.info(f"Ethereum connected — block #{w3.eth.block_number}, contract {settings.CONTRACT_ADDRESS}")

    def attach(self, w3, contract, abi: list):
        """Bind an already-built web3 client and contract."""
        self.w3 = w3
        self.contract = contract
        self._outputs = {
            entry["name"]: entry.get("outputs", [])
            for entry in abi
            if entry.get("type") == "function"
        }

    async def disconnect(self):
        self.w3 = None
        self.contract = None

    async def ping(self) -> str:
        if self.w3 and self.w3.is_connected():
            return f"ok — Ethereum block #{self.w3.eth.block_number}"
        return "disconnected"

    def _decode(self, method: str, value: Any) -> Any:
        outputs = self._outputs.get(method, [])
        if len(outputs) != 1:
            return value
        return _decode_abi_value(outputs[0], value)

    def _guarded(self, fn, method: str, *args):
        """Run a blocking web3 call, translating web3 failures into registry errors."""
        from web3.exceptions import ContractLogicError, Web3Exception

        try:
            return fn(method, *args)
        except ContractLogicError as e:
            raise error_for_revert(getattr(e, "message", None) or str(e), method) from e
        except (Web3Exception, OSError, ValueError) as e:
            raise LedgerUnavailable(f"Ledger call '{method}' failed: {e}", {"method": method}) from e

    def _revert_reason(self, fn, tx_params: dict, method: str, tx_hash: str, block_number: int):
        """Replay a failed transaction at its block to recover the revert reason."""
        from web3.exceptions import ContractLogicError

        try:
            fn.call(tx_params, block_identifier=block_number)
        except ContractLogicError as e:
            reason = getattr(e, "message", None) or str(e)
            if reason:
                logger.info(f"Tx {method} {tx_hash} reverted on-chain ({reason})")
                return error_for_revert(reason, method)
        return LedgerUnavailable(
            f"Transaction '{method}' reverted on-chain without a reason",
            {"method": method, "tx_hash": tx_hash},
        )

    def _submit_sync(self, method: str, args: tuple, signer_id: str) -> dict:
        fn = getattr(self.contract.functions, method)(*args)
        tx_params = {
            "from": self.w3.to_checksum_address(signer_id),
            "chainId": settings.CHAIN_ID,
        }
        # dry run first: surfaces the revert reason and the return value
        result = fn.call(tx_params)
        tx_hash = fn.transact(tx_params)
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash)
        if receipt["status"] != 1:
            # state moved between the dry run and mining (e.g. a competing acceptBuy)
            raise self._revert_reason(fn, tx_params, method, tx_hash.hex(), receipt["blockNumber"])
        return {
            "txHash": tx_hash.hex(),
            "blockNumber": receipt["blockNumber"],
            "method": method,
            "signer": signer_id,
            "result": self._decode(method, result),
        }

    def _query_sync(self, method: str, args: tuple) -> Any:
        value = getattr(self.contract.functions, method)(*args).call()
        return self._decode(method, value)

    def _require_connected(self):
        if self.contract is None:
            raise LedgerUnavailable("Not connected to Ethereum")

    async def _submit(self, method: str, args: tuple, signer_id: str) -> dict:
        self._require_connected()
        return await asyncio.to_thread(self._guarded, self._submit_sync, method, args, signer_id)

    async def _query(self, method: str, args: tuple) -> Any:
        self._require_connected()
        return await asyncio.to_thread(self._guarded, self._query_sync, method, args)


# ── Factory — picks the right backend from .env ───────────────────────────────
def _create_ledger() -> LedgerGateway:
    backend = settings.LEDGER_BACKEND.lower()
    if backend == "ethereum":
        logger.info("Using Ethereum ledger backend")
        return EthereumLedger()
    logger.info("Using Simulated ledger backend (development mode)")
    return SimulatedLedger()


# Singleton — the API reaches it through get_ledger()
ledger = _create_ledger()


def get_ledger() -> LedgerGateway:
    """FastAPI dependency — override in tests with app.dependency_overrides."""
    return ledger
