"""
ChainPay Directory API Client
=============================
Thin wrapper over the registry REST API.

The caller identity is module-level state sent as the X-Caller header.
All methods raise RuntimeError on API failure; callers catch and display.
"""

import json
import urllib.request
import urllib.error
import urllib.parse
from typing import Optional

from config import CONFIG, get_api_url


# ── Module-level state ────────────────────────────────────────────────────────
_caller: Optional[str] = None


def _request(method: str, path: str, body: dict = None,
             identified: bool = True) -> dict:
    """
    Core HTTP request helper using stdlib urllib only.
    Raises RuntimeError with a human-readable message on any failure.
    """
    url = get_api_url(path)
    headers = {"Content-Type": "application/json"}
    if identified and _caller:
        headers["X-Caller"] = _caller

    data = json.dumps(body).encode("utf-8") if body is not None else None
    req  = urllib.request.Request(url, data=data, headers=headers, method=method)

    try:
        with urllib.request.urlopen(req, timeout=15) as resp:
            return json.loads(resp.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        try:
            err_body = json.loads(e.read().decode("utf-8"))
            detail   = err_body.get("detail", str(e))
        except (ValueError, AttributeError):
            detail = str(e)
        raise RuntimeError(detail)
    except urllib.error.URLError as e:
        raise RuntimeError(
            f"Cannot connect to server at {CONFIG['api_base_url']}.\n"
            f"Make sure the server is running.\n({e.reason})"
        )


def _get(path: str) -> dict:
    return _request("GET", path, identified=False)


def _post(path: str, body: dict) -> dict:
    return _request("POST", path, body=body)


def _put(path: str, body: dict) -> dict:
    return _request("PUT", path, body=body)


def _delete(path: str) -> dict:
    return _request("DELETE", path)


def _quote(address: str) -> str:
    return urllib.parse.quote(address, safe="")


# ── Identity ──────────────────────────────────────────────────────────────────

def set_caller(identity: Optional[str]):
    """Act as `identity` for subsequent calls (None to clear)."""
    global _caller
    _caller = identity


def get_caller() -> Optional[str]:
    return _caller


# ── Self-service ──────────────────────────────────────────────────────────────

def register(name: str, phone_number: int) -> bool:
    """Register (or, with an empty name, unregister) the current caller."""
    return _post("api/v1/registry/register",
                 {"name": name, "phone_number": phone_number})["success"]


def update(name: str, phone_number: int) -> bool:
    return _put("api/v1/registry/profile",
                {"name": name, "phone_number": phone_number})["success"]


def delete() -> bool:
    return _delete("api/v1/registry/profile")["success"]


def transfer(phone_number: int, amount: int) -> str:
    """Pay whoever holds phone_number. Returns their name, or "" if nobody does."""
    return _post("api/v1/registry/transfer",
                 {"phone_number": phone_number, "amount": amount})["name"]


# ── Owner only ────────────────────────────────────────────────────────────────

def admin_update(target: str, name: str, phone_number: int) -> bool:
    return _put(f"api/v1/admin/profiles/{_quote(target)}",
                {"name": name, "phone_number": phone_number})["success"]


def admin_delete(target: str) -> bool:
    return _delete(f"api/v1/admin/profiles/{_quote(target)}")["success"]


def credit(address: str, amount: int) -> int:
    """Mint funds into an account. Returns the new balance."""
    return _post("api/v1/admin/ledger/credit",
                 {"address": address, "amount": amount})["balance"]


# ── Queries ───────────────────────────────────────────────────────────────────

def count() -> int:
    return _get("api/v1/registry/count")["count"]


def list_profiles() -> list:
    """Returns list of {address, name, phone_number, last_updated} in registration order."""
    return _get("api/v1/registry/profiles")["profiles"]


def get_by_index(index: int) -> Optional[dict]:
    return _get(f"api/v1/registry/index/{index}")["profile"]


def get_by_address(address: str) -> dict:
    """Always returns a profile dict; an empty name means unregistered."""
    return _get(f"api/v1/registry/address/{_quote(address)}")["profile"]


def get_by_phone_number(phone_number: int) -> Optional[dict]:
    return _get(f"api/v1/registry/phone/{phone_number}")["profile"]


def get_balance(address: str) -> int:
    return _get(f"api/v1/ledger/balance/{_quote(address)}")["balance"]


def get_events(limit: int = 50) -> list:
    return _get(f"api/v1/registry/events?limit={limit}")["events"]


def health() -> dict:
    return _get("health")
