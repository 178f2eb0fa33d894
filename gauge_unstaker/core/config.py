import json
import os
from pathlib import Path
from typing import Any

_CONFIG_ENV_KEYS = ("GAUGE_UNSTAKER_CONFIG_PATH", "GAUGE_UNSTAKER_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"
_DEFAULT_IPFS_GATEWAY = "https://ipfs.io/ipfs/"


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except Exception:
        return {}


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def get_rpc_urls() -> dict[str, Any]:
    return CONFIG.get("rpc_urls", {})


def get_contract_overrides() -> dict[str, str]:
    contracts = CONFIG.get("contracts") or {}
    return {k: str(v).strip() for k, v in contracts.items() if v}


def get_depositor_address() -> str | None:
    value = CONFIG.get("depositor")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def get_safe_config() -> dict[str, Any]:
    return CONFIG.get("safe", {})


def get_safe_tx_service_url() -> str | None:
    url = get_safe_config().get("tx_service_url")
    if url:
        return str(url).strip().rstrip("/")
    return None


def get_wallet_config() -> dict[str, Any]:
    return CONFIG.get("wallet", {})


def get_wallet_private_key() -> str | None:
    key = get_wallet_config().get("private_key")
    if key:
        return str(key).strip()
    return os.environ.get("GAUGE_UNSTAKER_PRIVATE_KEY")


def get_wallet_rpc_url() -> str | None:
    url = get_wallet_config().get("rpc_url")
    if url:
        return str(url).strip()
    return None


def get_ipfs_gateway() -> str:
    gateway = CONFIG.get("ipfs_gateway")
    if gateway:
        gateway = str(gateway).strip()
        return gateway if gateway.endswith("/") else f"{gateway}/"
    return _DEFAULT_IPFS_GATEWAY


def get_safe_address() -> str | None:
    value = get_safe_config().get("address")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def get_wallet_address() -> str | None:
    value = get_wallet_config().get("address")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
