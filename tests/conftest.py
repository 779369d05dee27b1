from __future__ import annotations

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest


@pytest.fixture(params=["asyncio"])
def anyio_backend(request):
    """Restrict anyio tests to asyncio only (trio is not installed)."""
    return request.param


@pytest.fixture(autouse=True)
def _clear_safenest_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "SAFENEST_API_KEY",
        "SAFENEST_TIMEOUT_MS",
        "SAFENEST_MAX_RETRIES",
        "SAFENEST_RETRY_DELAY_MS",
        "SAFENEST_BASE_URL",
        "SAFENEST_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
