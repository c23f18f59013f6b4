"""Shared fixtures for the SDK test suite."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastpay_client import FastPayApiClient

from fastpay_sdk.config import FastPayConfig
from fastpay_sdk.registry import StoreRegistry
from fastpay_sdk.storage import StateStorage


@pytest.fixture
def api() -> AsyncMock:
    """An API client whose every remote call is an AsyncMock."""
    return AsyncMock(spec=FastPayApiClient)


@pytest.fixture
def storage(tmp_path: Path) -> StateStorage:
    return StateStorage(tmp_path / ".fastpay-state.json")


@pytest.fixture
def registry() -> StoreRegistry:
    return StoreRegistry()


@pytest.fixture
def config(tmp_path: Path) -> FastPayConfig:
    return FastPayConfig(api_url="https://api.test", data_dir=tmp_path)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep tests away from a developer's real config file and env."""
    for var in (
        "FASTPAY_API_URL",
        "FASTPAY_TIMEOUT",
        "FASTPAY_PAGE_SIZE",
        "FASTPAY_CONFIG",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("FASTPAY_DATA_DIR", str(tmp_path))
