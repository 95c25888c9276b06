"""Pytest configuration and fixtures for reviewgen tests."""

import asyncio
import json
import random
import sys
from collections.abc import Callable, Generator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reviewgen import config as config_module
from reviewgen.config import (
    ABTestingConfig,
    CacheConfig,
    HybridConfig,
    MonitoringConfig,
    ProviderConfig,
    ProxyConfig,
)
from reviewgen.models import GenerationRequest

TEST_PROXY_URL = "http://proxy.test/api/llm-proxy"

ENV_VARS = (
    "REVIEWGEN_PROXY_URL",
    "REVIEWGEN_CACHE_ENABLED",
    "REVIEWGEN_AB_ENABLED",
    "REVIEWGEN_AB_PERCENTAGE",
    "REVIEWGEN_MONITORING_ENABLED",
)


@pytest.fixture(autouse=True)
def isolate_config(tmp_path, monkeypatch) -> Generator[Path]:
    """Point the config file at a temp dir and clear env overrides for every test."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr(config_module, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config_module, "CONFIG_PATH", config_dir / "config.toml")
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config_module.reset_config_cache()
    yield config_dir / "config.toml"
    config_module.reset_config_cache()


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def chat_completion(text: str, tokens: int = 42, model: str = "stub-model") -> dict:
    return {
        "model": model,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": text}}],
        "usage": {"total_tokens": tokens},
    }


@dataclass
class ProviderBehaviour:
    """How the stub proxy answers for one provider."""

    text: str = "A lovely stay."
    tokens: int = 42
    status: int = 200
    delay: float = 0.0
    probe_status: int = 200
    body: Any = None


class ProxyStub:
    """Stands in for the network boundary, routing on the payload's provider name."""

    def __init__(self) -> None:
        self.behaviours: dict[str, ProviderBehaviour] = {}
        self.calls: list[dict[str, Any]] = []

    def set(self, provider: str, **kwargs: Any) -> ProviderBehaviour:
        behaviour = ProviderBehaviour(**kwargs)
        self.behaviours[provider] = behaviour
        return behaviour

    async def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        provider = payload["provider"]
        behaviour = self.behaviours.get(provider)
        if behaviour is None:
            return httpx.Response(404, json={"error": f"unknown provider {provider}"})

        is_probe = payload.get("max_tokens") == 5
        self.calls.append({"url": str(request.url), "probe": is_probe, **payload})

        if is_probe:
            return httpx.Response(
                behaviour.probe_status, json=chat_completion("pong", tokens=1)
            )

        if behaviour.delay:
            await asyncio.sleep(behaviour.delay)
        if behaviour.body is not None:
            return httpx.Response(behaviour.status, json=behaviour.body)
        return httpx.Response(
            behaviour.status, json=chat_completion(behaviour.text, behaviour.tokens)
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def generation_calls(self, provider: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["provider"] == provider and not c["probe"]]


@pytest.fixture
def proxy() -> ProxyStub:
    return ProxyStub()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def make_config() -> Callable[..., HybridConfig]:
    """Factory for test configs: openai primary, groq fallback, monitoring off."""

    def factory(
        primary_timeout: float = 3.0,
        fallback_timeout: float = 1.0,
        providers_enabled: bool = True,
        cache: CacheConfig | None = None,
        ab_testing: ABTestingConfig | None = None,
        monitoring: MonitoringConfig | None = None,
    ) -> HybridConfig:
        return HybridConfig(
            cache=cache or CacheConfig(),
            ab_testing=ab_testing or ABTestingConfig(),
            monitoring=monitoring or MonitoringConfig(enabled=False),
            proxy=ProxyConfig(url=TEST_PROXY_URL),
            providers=(
                ProviderConfig(
                    name="openai",
                    model="gpt-4o-mini",
                    timeout=primary_timeout,
                    cost_per_1k_tokens=0.00015,
                    cost_per_request=0.0001,
                    enabled=providers_enabled,
                ),
                ProviderConfig(
                    name="groq",
                    model="mixtral-8x7b-32768",
                    timeout=fallback_timeout,
                    enabled=providers_enabled,
                ),
            ),
        )

    return factory


@pytest.fixture
def grand_hotel() -> GenerationRequest:
    return GenerationRequest(
        subject_name="Grand Hotel",
        rating=5,
        trip_type="leisure",
        highlights=("pool", "breakfast"),
        stay_length=3,
    )
