"""
ChainPay Directory REST API Server
==================================
HTTP front end for the phone-number registry.

The server is the registry's execution context: it supplies the caller
identity (X-Caller header), the value attached to a transfer, and runs one
registry call at a time.

Usage:
    python server.py                          # uses config.py / CHAINPAY_* env
    CHAINPAY_DB_PATH=:memory: python server.py

API Docs: http://localhost:8443/docs
"""

import logging
import threading
import time
from contextlib import asynccontextmanager
from typing import Optional, List, Dict

from fastapi import FastAPI, Depends, HTTPException, Header, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, field_validator
import uvicorn

from config import CONFIG
from core.database import open_store
from registry.errors import AuthorizationError, TransferFailure
from registry.models import MAX_PHONE_NUMBER, ProfileRecord
from registry.registry import Registry

# ── Logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s"
)
logger = logging.getLogger("chainpay.server")

API_VERSION = "1.0.0"


# =============================================================================
# REQUEST / RESPONSE MODELS
# =============================================================================

def _check_phone(v: int) -> int:
    if v < 0 or v > MAX_PHONE_NUMBER:
        raise ValueError("Phone number must be an unsigned 256-bit integer")
    return v


# ── Profile Models ────────────────────────────────────────────────────────────

class ProfileRequest(BaseModel):
    name: str = Field(max_length=128)
    phone_number: int = 0

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v):
        return _check_phone(v)


class ProfileOut(BaseModel):
    address: str
    name: str
    phone_number: str     # decimal string, 256-bit safe
    last_updated: float

    @classmethod
    def from_record(cls, record: ProfileRecord) -> "ProfileOut":
        return cls(
            address=record.address,
            name=record.name,
            phone_number=str(record.phone_number),
            last_updated=record.last_updated,
        )


class SuccessResponse(BaseModel):
    success: bool


class CountResponse(BaseModel):
    count: int


class LookupResponse(BaseModel):
    found: bool
    profile: Optional[ProfileOut] = None


class ProfilesResponse(BaseModel):
    count: int
    profiles: List[ProfileOut]


# ── Payment Models ────────────────────────────────────────────────────────────

class TransferRequest(BaseModel):
    phone_number: int
    amount: int = 0

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v):
        return _check_phone(v)

    @field_validator("amount")
    @classmethod
    def amount_not_negative(cls, v):
        if v < 0:
            raise ValueError("Amount must not be negative")
        return v


class TransferResponse(BaseModel):
    found: bool
    name: str


class CreditRequest(BaseModel):
    address: str
    amount: int

    @field_validator("address")
    @classmethod
    def address_not_empty(cls, v):
        if not v.strip():
            raise ValueError("Address must not be empty")
        return v.strip()

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v):
        if v <= 0:
            raise ValueError("Amount must be positive")
        return v


class BalanceResponse(BaseModel):
    address: str
    balance: int


class EventsResponse(BaseModel):
    events: List[Dict]


# =============================================================================
# IDENTITY DEPENDENCY
# =============================================================================

def require_caller(x_caller: Optional[str] = Header(default=None)) -> str:
    """Caller identity as supplied by the client; no verification is performed."""
    if not x_caller or not x_caller.strip():
        raise HTTPException(status_code=401, detail="X-Caller header required")
    return x_caller.strip()


# =============================================================================
# APP FACTORY
# =============================================================================

def build_registry(cfg: dict = CONFIG) -> Registry:
    store = open_store(cfg.get("db_path"))
    return Registry(owner=cfg["owner"], address=cfg["registry_address"], store=store)


def create_app(registry: Optional[Registry] = None) -> FastAPI:
    registry = registry if registry is not None else build_registry()
    call_lock = threading.Lock()

    def run_call(fn, *args):
        """One registry call at a time; domain errors become HTTP errors."""
        with call_lock:
            try:
                return fn(*args)
            except AuthorizationError as e:
                raise HTTPException(status_code=403, detail=str(e))
            except TransferFailure as e:
                raise HTTPException(status_code=409, detail=str(e))
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

    def lookup(record: Optional[ProfileRecord]) -> dict:
        if record is None or not record.registered:
            return {"found": False, "profile": None}
        return {"found": True, "profile": ProfileOut.from_record(record)}

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        logger.info(f"ChainPay Directory started. Owner: {registry.owner}, "
                    f"registry account: {registry.address}, profiles: {registry.count()}")
        yield
        registry.store.close()

    app = FastAPI(
        title="ChainPay Directory API",
        version=API_VERSION,
        description="Phone-number registry with pay-by-phone REST API",
        lifespan=lifespan,
    )
    app.state.registry = registry

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],     # Restrict to your domain in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {
            "status":   "ok",
            "version":  API_VERSION,
            "time":     time.time(),
            "owner":    registry.owner,
            "registry": registry.address,
            "count":    run_call(registry.count),
        }

    # ── Self-service routes ───────────────────────────────────────────────────

    @app.post("/api/v1/registry/register", response_model=SuccessResponse)
    def register(req: ProfileRequest, caller: str = Depends(require_caller)):
        return {"success": run_call(registry.register, caller, req.name, req.phone_number)}

    @app.put("/api/v1/registry/profile", response_model=SuccessResponse)
    def update_profile(req: ProfileRequest, caller: str = Depends(require_caller)):
        return {"success": run_call(registry.update, caller, req.name, req.phone_number)}

    @app.delete("/api/v1/registry/profile", response_model=SuccessResponse)
    def delete_profile(caller: str = Depends(require_caller)):
        return {"success": run_call(registry.delete, caller)}

    # ── Admin routes ──────────────────────────────────────────────────────────

    @app.put("/api/v1/admin/profiles/{address}", response_model=SuccessResponse)
    def admin_update(address: str, req: ProfileRequest,
                     caller: str = Depends(require_caller)):
        return {"success": run_call(registry.admin_update, caller, address,
                                    req.name, req.phone_number)}

    @app.delete("/api/v1/admin/profiles/{address}", response_model=SuccessResponse)
    def admin_delete(address: str, caller: str = Depends(require_caller)):
        return {"success": run_call(registry.admin_delete, caller, address)}

    @app.post("/api/v1/admin/ledger/credit", response_model=BalanceResponse)
    def admin_credit(req: CreditRequest, caller: str = Depends(require_caller)):
        balance = run_call(registry.credit, caller, req.address, req.amount)
        return {"address": req.address, "balance": balance}

    # ── Query routes ──────────────────────────────────────────────────────────

    @app.get("/api/v1/registry/count", response_model=CountResponse)
    def count():
        return {"count": run_call(registry.count)}

    @app.get("/api/v1/registry/profiles", response_model=ProfilesResponse)
    def list_profiles():
        records = run_call(registry.records)
        return {"count": len(records),
                "profiles": [ProfileOut.from_record(r) for r in records]}

    @app.get("/api/v1/registry/index/{index}", response_model=LookupResponse)
    def get_by_index(index: int):
        return lookup(run_call(registry.get_by_index, index))

    @app.get("/api/v1/registry/address/{address}", response_model=LookupResponse)
    def get_by_address(address: str):
        record = run_call(registry.get_by_address, address)
        result = lookup(record)
        if not result["found"]:
            # Unregistered identities still answer with their sentinel record
            result["profile"] = ProfileOut.from_record(record)
        return result

    @app.get("/api/v1/registry/phone/{phone_number}", response_model=LookupResponse)
    def get_by_phone_number(phone_number: int):
        return lookup(run_call(registry.get_by_phone_number, phone_number))

    @app.get("/api/v1/registry/events", response_model=EventsResponse)
    def events(limit: int = Query(50, ge=1, le=1000)):
        recent = run_call(registry.events.recent, limit)
        return {"events": [e.to_dict() for e in recent]}

    # ── Payment routes ────────────────────────────────────────────────────────

    @app.post("/api/v1/registry/transfer", response_model=TransferResponse)
    def transfer(req: TransferRequest, caller: str = Depends(require_caller)):
        name = run_call(registry.transfer, caller, req.phone_number, req.amount)
        return {"found": name != "", "name": name}

    @app.get("/api/v1/ledger/balance/{address}", response_model=BalanceResponse)
    def balance(address: str):
        return {"address": address, "balance": run_call(registry.ledger.balance_of, address)}

    return app


# =============================================================================
# ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    HOST = CONFIG["host"]
    PORT = CONFIG["port"]

    print("\n" + "="*60)
    print(f"  {CONFIG['app_name']} API Server v{API_VERSION}")
    print("="*60)
    print(f"  Owner            : {CONFIG['owner']}")
    print(f"  Registry account : {CONFIG['registry_address']}")
    print(f"  Database         : {CONFIG['db_path'] or ':memory:'}")
    print(f"  URL              : http://localhost:{PORT}")
    print(f"  Docs             : http://localhost:{PORT}/docs")
    print("="*60 + "\n")

    uvicorn.run("server:create_app", factory=True, host=HOST, port=PORT,
                reload=False, workers=1, log_level=CONFIG["log_level"])
