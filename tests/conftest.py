"""
Pytest configuration and fixtures for aidispatch tests.
"""

import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from typer.testing import CliRunner

from aidispatch.config import ModelPrice, ProviderConfig

SHARED_MODEL = "shared-model-X"


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def isolated_env(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point AIDISPATCH_HOME at an empty directory and clear provider keys."""
    monkeypatch.setenv("AIDISPATCH_HOME", str(temp_dir))
    for key in ("OPENROUTER_API_KEY", "ANTHROPIC_API_KEY", "AIDISPATCH_CONFIG"):
        monkeypatch.delenv(key, raising=False)
    return temp_dir


# =============================================================================
# HTTP helpers
# =============================================================================


def json_response(status_code: int = 200, body: Any = None) -> httpx.Response:
    """Build a real httpx response with a JSON body."""
    return httpx.Response(status_code, json=body)


def text_response(status_code: int, text: str) -> httpx.Response:
    """Build a real httpx response with a raw text body."""
    return httpx.Response(status_code, text=text)


def openrouter_body(content: Any = "Hi there", usage: dict | None = None) -> dict:
    body: dict[str, Any] = {
        "choices": [{"message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }
    if usage is not None:
        body["usage"] = usage
    return body


def anthropic_body(text: Any = "Hello", usage: dict | None = None) -> dict:
    body: dict[str, Any] = {
        "content": [{"type": "text", "text": text}],
        "stop_reason": "end_turn",
    }
    if usage is not None:
        body["usage"] = usage
    return body


def make_client(*results: Any) -> MagicMock:
    """
    Mock httpx.AsyncClient whose post() returns (or raises) each result in turn.
    """
    client = MagicMock(spec=httpx.AsyncClient)
    client.post = AsyncMock(side_effect=list(results))
    client.aclose = AsyncMock()
    return client


# =============================================================================
# Provider fixtures
# =============================================================================


@pytest.fixture
def openrouter_config() -> ProviderConfig:
    return ProviderConfig(
        id="openrouter",
        name="OpenRouter",
        style="chat_completions",
        api_key="sk-or-test",
        base_url="https://openrouter.test/api/v1",
        models=(SHARED_MODEL, "openai/gpt-4o", "openai/unpriced"),
        pricing={
            SHARED_MODEL: ModelPrice(input_per_1k=0.001, output_per_1k=0.002),
            "openai/gpt-4o": ModelPrice(input_per_1k=0.005, output_per_1k=0.015),
        },
        priority=1,
        timeout_seconds=30.0,
        headers={"X-Title": "aidispatch tests"},
    )


@pytest.fixture
def anthropic_config() -> ProviderConfig:
    return ProviderConfig(
        id="anthropic",
        name="Anthropic",
        style="messages",
        api_key="sk-ant-test",
        base_url="https://anthropic.test/v1",
        models=(SHARED_MODEL, "claude-3-haiku"),
        pricing={
            SHARED_MODEL: ModelPrice(input_per_1k=0.003, output_per_1k=0.015),
            "claude-3-haiku": ModelPrice(input_per_1k=0.00025, output_per_1k=0.00125),
        },
        priority=2,
        timeout_seconds=60.0,
        model_map={"claude-3-haiku": "claude-3-haiku-20240307"},
    )

