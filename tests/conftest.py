"""
Pytest configuration and shared fixtures for Entropy Sorter tests.
"""

import threading
import time
from pathlib import Path

import pytest

from app.models.schemas import RoutingConfig
from app.utils.suggestion_client import SuggestionClient, SuggestionServiceError


class FakeSuggestionClient(SuggestionClient):
    """Returns a canned answer (or raises) and records every call."""

    name = "fake"

    def __init__(self, answer: str = "", error: str = None):
        super().__init__()
        self.answer = answer
        self.error = error
        self.calls: list[tuple[str, str]] = []
        self.call_times: list[float] = []
        self.lock = threading.Lock()

    def suggest(self, model: str, prompt: str) -> str:
        with self.lock:
            self.calls.append((model, prompt))
            self.call_times.append(time.monotonic())
        if self.error is not None:
            raise SuggestionServiceError(self.error)
        return self.answer


@pytest.fixture
def fake_client_factory():
    """Build fake suggestion clients."""
    return FakeSuggestionClient


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """Watched root directory."""
    watched = tmp_path / "entropy"
    watched.mkdir()
    return watched


@pytest.fixture
def invoice_config() -> RoutingConfig:
    """Rules file with the invoice rule and suggestions disabled."""
    return RoutingConfig.model_validate(
        {
            "ignore": {"os_defaults": True, "extensions": [".log"]},
            "rules": [
                {"pattern": r".*invoice.*\.pdf$", "target": "Documents/Finance/Invoices"},
            ],
        }
    )
