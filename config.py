"""
ChainPay Directory Configuration
================================
Central config for the registry server and the API client.

Resolution order (later wins):
    1. Defaults below
    2. chainpay_registry_config.json next to this file
    3. Environment variables (CHAINPAY_*)

For local testing only:    CHAINPAY_API_BASE_URL = "http://127.0.0.1:8443"
For an ephemeral registry: CHAINPAY_DB_PATH = ":memory:"
"""

import os
import json
import logging

logger = logging.getLogger("chainpay.config")

# ── Default configuration ──────────────────────────────────────────────────────
DEFAULT_API_BASE_URL = "http://127.0.0.1:8443"
DEFAULT_OWNER = "owner"
DEFAULT_REGISTRY_ADDRESS = "registry"
DEFAULT_DB_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "chainpay_registry.db")

# Config file sits next to the module
_CONFIG_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "chainpay_registry_config.json")

# env var -> (config key, type)
_ENV_OVERRIDES = {
    "CHAINPAY_OWNER":            ("owner", str),
    "CHAINPAY_REGISTRY_ADDRESS": ("registry_address", str),
    "CHAINPAY_DB_PATH":          ("db_path", str),
    "CHAINPAY_HOST":             ("host", str),
    "CHAINPAY_PORT":             ("port", int),
    "CHAINPAY_API_BASE_URL":     ("api_base_url", str),
    "CHAINPAY_LOG_LEVEL":        ("log_level", str),
}


def default_config() -> dict:
    return {
        "api_base_url":     DEFAULT_API_BASE_URL,
        "owner":            DEFAULT_OWNER,
        "registry_address": DEFAULT_REGISTRY_ADDRESS,
        "db_path":          DEFAULT_DB_PATH,
        "host":             "0.0.0.0",
        "port":             8443,
        "log_level":        "info",
        "app_name":         "ChainPay Directory",
        "app_version":      "1.0.0",
    }


def load_config(path: str = _CONFIG_FILE, environ=None) -> dict:
    """Load config from JSON file if it exists, then apply environment overrides."""
    environ = os.environ if environ is None else environ
    cfg = default_config()
    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                cfg.update(json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load {path}: {e}; using defaults")

    for env_name, (key, cast) in _ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            cfg[key] = cast(raw)
        except ValueError:
            logger.warning(f"Ignoring invalid {env_name}={raw!r}")
    return cfg


def save_config(cfg: dict, path: str = _CONFIG_FILE):
    """Persist config changes to disk."""
    with open(path, "w") as f:
        json.dump(cfg, f, indent=2)


# Global config object, imported everywhere
CONFIG = load_config()


def get_api_url(path: str) -> str:
    """Build a full API URL from a path fragment."""
    base = CONFIG["api_base_url"].rstrip("/")
    path = path.lstrip("/")
    return f"{base}/{path}"
