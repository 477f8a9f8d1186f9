from __future__ import annotations
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from shared.log import get_logger

logger = get_logger(__name__)

DEFAULT_URI = "wss://s1.ripple.com:51233"
DEFAULT_ACCOUNT = "genesis"

# Well-known public accounts, always available as aliases
BUILTIN_CONTACTS: Dict[str, str] = {
    "genesis": "rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh",
    "bitstamp": "rvYAfWj5gh67oV6fW32ZzP3Aw4Eubs59B",
}


def default_config_path() -> Path:
    return Path(os.getenv("RIPPLER_CONFIG", "~/.rippler/config.yaml")).expanduser()


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings threaded through Dispatcher and LedgerClient.

    open_timeout is None by default: no limit on the initial handshake.
    Callers that want one pass it explicitly or wrap the call in
    asyncio.wait_for.
    """
    uri: str = DEFAULT_URI
    default_account: str = DEFAULT_ACCOUNT
    contacts: Mapping[str, str] = field(default_factory=lambda: dict(BUILTIN_CONTACTS))
    open_timeout: Optional[float] = None
    ping_interval: Optional[float] = 15.0
    ping_timeout: Optional[float] = 45.0


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Load the YAML config file. Missing file means no settings."""
    if not path.exists():
        logger.debug("No config file at %s; using defaults", path)
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    return data


def load_config(path: Optional[Path] = None, **overrides: Any) -> ClientConfig:
    """
    Build a ClientConfig.

    Precedence: defaults < YAML file < RIPPLER_URI / RIPPLER_ACCOUNT < overrides.
    Overrides set to None are ignored so CLI options can be passed straight in.
    """
    data = _read_yaml(path or default_config_path())

    contacts = dict(BUILTIN_CONTACTS)
    file_contacts = data.get("contacts") or {}
    if not isinstance(file_contacts, dict):
        raise ValueError("'contacts' must be a mapping of alias -> address")
    contacts.update({str(k): str(v) for k, v in file_contacts.items()})

    config = ClientConfig(contacts=contacts)
    for key in ("uri", "default_account", "open_timeout", "ping_interval", "ping_timeout"):
        if key in data:
            config = replace(config, **{key: data[key]})

    if os.getenv("RIPPLER_URI"):
        config = replace(config, uri=os.environ["RIPPLER_URI"])
    if os.getenv("RIPPLER_ACCOUNT"):
        config = replace(config, default_account=os.environ["RIPPLER_ACCOUNT"])

    explicit = {k: v for k, v in overrides.items() if v is not None}
    if explicit:
        config = replace(config, **explicit)
    return config
