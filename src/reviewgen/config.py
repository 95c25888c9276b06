"""Configuration management for reviewgen.

Loads configuration from ~/.config/reviewgen/config.toml.
Priority chain: CLI flags > env vars > config file > built-in defaults.

ConfigManager wraps a validated HybridConfig and tracks which providers
answered their last availability probe.
"""

import asyncio
import logging
import os
import sys
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import httpx

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "reviewgen"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_PROXY_URL = "http://localhost:3000/api/llm-proxy"

DEFAULT_CONFIG = """\
# reviewgen configuration

[proxy]
# Network boundary that holds provider credentials and forwards calls
url = "http://localhost:3000/api/llm-proxy"

[cache]
enabled = true
# Seconds an entry stays valid
ttl = 3600
max_size = 100
# Seconds between sweeps of expired entries
cleanup_interval = 3600

[ab_testing]
enabled = false
# Percentage of requests routed to providers (the rest go to templates)
llm_percentage = 50
tracking_enabled = true

[monitoring]
enabled = true
# Seconds between metric reports
report_interval = 60

[monitoring.alert_threshold]
error_rate = 0.1   # fraction of recent requests with a failed tier
latency = 5.0      # seconds, average request latency
cost = 1.0         # USD per day

# Providers are tried in order: the first is primary, the second fallback.
# endpoint defaults to "<proxy.url>/<name>" when omitted.

[[providers]]
name = "openai"
model = "gpt-4o-mini"
timeout = 3.0
cost_per_1k_tokens = 0.00015
cost_per_request = 0.0001
enabled = true

[[providers]]
name = "groq"
model = "mixtral-8x7b-32768"
timeout = 1.0
cost_per_1k_tokens = 0.0
cost_per_request = 0.0
enabled = true
"""


@dataclass(frozen=True)
class CacheConfig:
    """Response cache configuration."""

    enabled: bool = True
    ttl: float = 3600.0
    max_size: int = 100
    cleanup_interval: float = 3600.0

    def __post_init__(self) -> None:
        if self.ttl <= 0:
            raise ValueError(f"cache.ttl must be positive, got {self.ttl}")
        if self.max_size < 1:
            raise ValueError(f"cache.max_size must be at least 1, got {self.max_size}")
        if self.cleanup_interval <= 0:
            raise ValueError(
                f"cache.cleanup_interval must be positive, got {self.cleanup_interval}"
            )


@dataclass(frozen=True)
class ABTestingConfig:
    """A/B routing between providers and templates."""

    enabled: bool = False
    llm_percentage: float = 50.0
    tracking_enabled: bool = True

    def __post_init__(self) -> None:
        if not 0 <= self.llm_percentage <= 100:
            raise ValueError(
                f"ab_testing.llm_percentage must be between 0 and 100, got {self.llm_percentage}"
            )


@dataclass(frozen=True)
class AlertThresholds:
    """Limits that trigger a monitoring alert when exceeded."""

    error_rate: float = 0.1
    latency: float = 5.0
    cost: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.error_rate <= 1.0:
            raise ValueError(
                f"alert_threshold.error_rate must be between 0.0 and 1.0, got {self.error_rate}"
            )
        if self.latency <= 0:
            raise ValueError(
                f"alert_threshold.latency must be positive, got {self.latency}"
            )
        if self.cost < 0:
            raise ValueError(f"alert_threshold.cost cannot be negative, got {self.cost}")


@dataclass(frozen=True)
class MonitoringConfig:
    """Metrics reporting and alerting configuration."""

    enabled: bool = True
    report_interval: float = 60.0
    alert_threshold: AlertThresholds = field(default_factory=AlertThresholds)

    def __post_init__(self) -> None:
        if self.report_interval <= 0:
            raise ValueError(
                f"monitoring.report_interval must be positive, got {self.report_interval}"
            )


@dataclass(frozen=True)
class ProxyConfig:
    """Network boundary configuration."""

    url: str = DEFAULT_PROXY_URL


@dataclass(frozen=True)
class ProviderConfig:
    """Descriptor for one external generation backend.

    Args:
        name: Provider name sent to the network boundary (e.g., "openai")
        model: Model id requested from the provider
        endpoint: URL to POST to; "" means "<proxy url>/<name>"
        timeout: Seconds allowed for one call before it is cancelled
        cost_per_1k_tokens: USD price per 1000 tokens (0 for free tiers)
        cost_per_request: Static per-request cost estimate for dashboards
        enabled: Disabled providers are never probed nor called
    """

    name: str
    model: str
    endpoint: str = ""
    timeout: float = 3.0
    cost_per_1k_tokens: float = 0.0
    cost_per_request: float = 0.0
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("provider name cannot be empty")
        if not self.model or not self.model.strip():
            raise ValueError(f"provider {self.name!r} model cannot be empty")
        if self.timeout <= 0:
            raise ValueError(
                f"provider {self.name!r} timeout must be positive, got {self.timeout}"
            )
        if self.cost_per_1k_tokens < 0 or self.cost_per_request < 0:
            raise ValueError(f"provider {self.name!r} costs cannot be negative")


def _default_providers() -> tuple[ProviderConfig, ...]:
    return (
        ProviderConfig(
            name="openai",
            model="gpt-4o-mini",
            timeout=3.0,
            cost_per_1k_tokens=0.00015,
            cost_per_request=0.0001,
        ),
        ProviderConfig(
            name="groq",
            model="mixtral-8x7b-32768",
            timeout=1.0,
        ),
    )


@dataclass(frozen=True)
class HybridConfig:
    """Top-level reviewgen configuration."""

    cache: CacheConfig = field(default_factory=CacheConfig)
    ab_testing: ABTestingConfig = field(default_factory=ABTestingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    providers: tuple[ProviderConfig, ...] = field(default_factory=_default_providers)

    def __post_init__(self) -> None:
        providers = tuple(self.providers)
        if len(providers) > 2:
            raise ValueError(
                f"at most two providers (primary, fallback) are supported, got {len(providers)}"
            )
        names = [p.name for p in providers]
        if len(set(names)) != len(names):
            raise ValueError(f"provider names must be unique, got {names}")
        object.__setattr__(self, "providers", providers)

    def endpoint_for(self, provider: ProviderConfig) -> str:
        """Resolve the URL a provider's calls are POSTed to."""
        if provider.endpoint:
            return provider.endpoint
        return f"{self.proxy.url.rstrip('/')}/{provider.name}"


_SECTIONS: dict[str, type] = {
    "cache": CacheConfig,
    "ab_testing": ABTestingConfig,
    "monitoring": MonitoringConfig,
    "proxy": ProxyConfig,
}


def _build(cls: type, data: Mapping[str, Any], section: str) -> Any:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown {section} option(s): {', '.join(unknown)}")
    return cls(**data)


def config_from_dict(data: Mapping[str, Any]) -> HybridConfig:
    """Build a validated HybridConfig from a nested mapping.

    Missing sections and options fall back to defaults.

    Raises:
        ValueError: If a section or option is unknown or a value is invalid
    """
    unknown = sorted(set(data) - set(_SECTIONS) - {"providers"})
    if unknown:
        raise ValueError(f"Unknown config section(s): {', '.join(unknown)}")

    kwargs: dict[str, Any] = {}
    for name, cls in _SECTIONS.items():
        section = dict(data.get(name, {}))
        if cls is MonitoringConfig and "alert_threshold" in section:
            section["alert_threshold"] = _build(
                AlertThresholds, section["alert_threshold"], "monitoring.alert_threshold"
            )
        kwargs[name] = _build(cls, section, name)

    if "providers" in data:
        kwargs["providers"] = tuple(
            _build(ProviderConfig, p, "providers") for p in data["providers"]
        )

    return HybridConfig(**kwargs)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def apply_env_overrides(config: HybridConfig) -> HybridConfig:
    """Return a copy of config with REVIEWGEN_* environment overrides applied."""
    proxy_url = os.getenv("REVIEWGEN_PROXY_URL")
    ab_percentage = os.getenv("REVIEWGEN_AB_PERCENTAGE")

    return replace(
        config,
        proxy=replace(config.proxy, url=proxy_url) if proxy_url else config.proxy,
        cache=replace(
            config.cache,
            enabled=_env_bool("REVIEWGEN_CACHE_ENABLED", config.cache.enabled),
        ),
        ab_testing=replace(
            config.ab_testing,
            enabled=_env_bool("REVIEWGEN_AB_ENABLED", config.ab_testing.enabled),
            llm_percentage=float(ab_percentage)
            if ab_percentage
            else config.ab_testing.llm_percentage,
        ),
        monitoring=replace(
            config.monitoring,
            enabled=_env_bool(
                "REVIEWGEN_MONITORING_ENABLED", config.monitoring.enabled
            ),
        ),
    )


_cached_config: HybridConfig | None = None


def generate_config() -> Path:
    """Generate default config file at ~/.config/reviewgen/config.toml."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(DEFAULT_CONFIG)
    return CONFIG_PATH


def reset_config_cache() -> None:
    """Forget the process-wide loaded config (used by tests)."""
    global _cached_config
    _cached_config = None


def load_config(path: Path | None = None) -> HybridConfig:
    """Load configuration from config file with env var overrides.

    On first run, generates the config file and exits so the user
    can review it before proceeding.

    Args:
        path: Config file to read (defaults to CONFIG_PATH)

    Returns:
        Loaded and validated HybridConfig.

    Raises:
        SystemExit: If config is missing (after generating) or invalid.
    """
    global _cached_config
    if _cached_config is not None and path is None:
        return _cached_config

    config_path = path or CONFIG_PATH
    if not config_path.exists():
        if path is not None:
            print(f"Config file not found: {config_path}", file=sys.stderr)
            raise SystemExit(1)
        created = generate_config()
        print(
            f"No config found. Generated {created}, review it and run again.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        config = apply_env_overrides(config_from_dict(data))
    except (tomllib.TOMLDecodeError, ValueError, TypeError) as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        print(f"Edit {config_path} or delete it to regenerate.", file=sys.stderr)
        raise SystemExit(1) from None

    if path is None:
        _cached_config = config
    return config


class ConfigManager:
    """Typed access to a HybridConfig plus provider availability tracking.

    Availability is only refreshed by an explicit probe. Until the first
    probe completes, no provider is considered available.
    """

    PRIMARY = "primary"
    FALLBACK = "fallback"

    def __init__(
        self,
        config: HybridConfig | Mapping[str, Any] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize with a config (defaults if None) and optional HTTP client.

        Args:
            config: HybridConfig instance or nested mapping accepted by config_from_dict
            http_client: Client used for availability probes; one is created per probe
                run when omitted
        """
        if config is None:
            config = HybridConfig()
        elif not isinstance(config, HybridConfig):
            config = config_from_dict(config)
        self.config: HybridConfig = config
        self._http_client = http_client
        self._availability: dict[str, bool] | None = None

    def get_cache_config(self) -> CacheConfig:
        return self.config.cache

    def get_ab_testing_config(self) -> ABTestingConfig:
        return self.config.ab_testing

    def get_monitoring_config(self) -> MonitoringConfig:
        return self.config.monitoring

    def get_proxy_config(self) -> ProxyConfig:
        return self.config.proxy

    @property
    def primary(self) -> ProviderConfig | None:
        providers = self.config.providers
        return providers[0] if providers else None

    @property
    def fallback(self) -> ProviderConfig | None:
        providers = self.config.providers
        return providers[1] if len(providers) > 1 else None

    def get_provider_config(self, provider: str) -> ProviderConfig | None:
        """Look up a provider by role ("primary"/"fallback") or by name."""
        if provider == self.PRIMARY:
            return self.primary
        if provider == self.FALLBACK:
            return self.fallback
        for candidate in self.config.providers:
            if candidate.name == provider:
                return candidate
        return None

    def get_endpoint(self, provider: ProviderConfig) -> str:
        return self.config.endpoint_for(provider)

    async def check_availability(self) -> dict[str, bool]:
        """Probe every enabled provider once and cache the outcome.

        Returns:
            Mapping of provider name to availability, plus "template": True
        """
        targets = [p for p in self.config.providers if p.enabled]
        availability = {p.name: False for p in self.config.providers}

        if targets:
            client = self._http_client or httpx.AsyncClient()
            try:
                results = await asyncio.gather(
                    *(self._probe(client, p) for p in targets)
                )
            finally:
                if self._http_client is None:
                    await client.aclose()
            for provider, ok in zip(targets, results):
                availability[provider.name] = ok

        availability["template"] = True
        self._availability = availability
        logger.info(f"Provider availability: {availability}")
        return dict(availability)

    async def refresh_availability(self) -> dict[str, bool]:
        return await self.check_availability()

    async def _probe(self, client: httpx.AsyncClient, provider: ProviderConfig) -> bool:
        payload = {
            "provider": provider.name,
            "model": provider.model,
            "messages": [{"role": "user", "content": "ping"}],
            "max_tokens": 5,
        }
        try:
            response = await asyncio.wait_for(
                client.post(
                    self.get_endpoint(provider),
                    json=payload,
                    timeout=provider.timeout,
                ),
                timeout=provider.timeout,
            )
        except (TimeoutError, httpx.TimeoutException):
            logger.warning(
                f"Availability probe for {provider.name} timed out after {provider.timeout}s"
            )
            return False
        except Exception as e:
            logger.warning(f"Availability probe for {provider.name} failed: {e}")
            return False

        if not response.is_success:
            logger.warning(
                f"Availability probe for {provider.name} returned HTTP {response.status_code}"
            )
            return False

        logger.debug(f"Availability probe for {provider.name} succeeded")
        return True

    def is_provider_available(self, provider: str) -> bool:
        """Return whether a provider (by role or name) passed its last probe."""
        if self._availability is None:
            return False
        config = self.get_provider_config(provider)
        if config is None or not config.enabled:
            return False
        return self._availability.get(config.name, False)

    def get_availability(self) -> dict[str, bool] | None:
        if self._availability is None:
            return None
        return dict(self._availability)
