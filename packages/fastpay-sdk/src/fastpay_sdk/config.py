"""Configuration from environment variables and an optional YAML file.

Resolution order for the config file:

1. ``FASTPAY_CONFIG`` env var (explicit path)
2. ``FASTPAY_DATA_DIR / "fastpay.yaml"`` (convention)

Environment variables always win over values from the file.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

log = logging.getLogger(__name__)

DATA_DIR = Path(os.environ.get("FASTPAY_DATA_DIR", "."))

DEFAULT_API_URL = "https://agregateur-rest.onrender.com"
DEFAULT_PAGE_SIZE = 10


@dataclass
class FastPayConfig:
    api_url: str = DEFAULT_API_URL
    data_dir: Path = DATA_DIR
    timeout: float = 30.0
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def state_path(self) -> Path:
        return self.data_dir / ".fastpay-state.json"

    @property
    def audit_path(self) -> Path:
        return self.data_dir / ".audit.jsonl"


def _resolve_config_path() -> Path | None:
    """Find the config file, or return None if it doesn't exist."""
    explicit = os.environ.get("FASTPAY_CONFIG")
    if explicit:
        p = Path(explicit)
        return p if p.is_file() else None
    default = Path(os.environ.get("FASTPAY_DATA_DIR", ".")) / "fastpay.yaml"
    return default if default.is_file() else None


def _load_file() -> dict[str, Any]:
    path = _resolve_config_path()
    if path is None:
        return {}

    log.info("Loading config from %s", path)
    with open(path) as f:
        cfg = yaml.safe_load(f) or {}

    if not isinstance(cfg, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    return cfg


def get_config() -> FastPayConfig:
    """Build the SDK configuration.

    Env vars: FASTPAY_API_URL, FASTPAY_DATA_DIR, FASTPAY_TIMEOUT,
    FASTPAY_PAGE_SIZE. The YAML file may set ``api_url``, ``data_dir``,
    ``timeout`` and ``page_size``.
    """
    cfg = _load_file()

    api_url = os.environ.get("FASTPAY_API_URL", cfg.get("api_url", DEFAULT_API_URL))
    data_dir = os.environ.get("FASTPAY_DATA_DIR", cfg.get("data_dir", "."))
    timeout = os.environ.get("FASTPAY_TIMEOUT", cfg.get("timeout", 30.0))
    page_size = os.environ.get(
        "FASTPAY_PAGE_SIZE", cfg.get("page_size", DEFAULT_PAGE_SIZE)
    )

    config = FastPayConfig(
        api_url=str(api_url),
        data_dir=Path(data_dir),
        timeout=float(timeout),
        page_size=int(page_size),
    )

    if config.page_size < 1:
        raise ValueError("page_size must be a positive integer")

    return config
