"""Core orchestration for reviewgen - the tiered review generation pipeline."""

import asyncio
import logging
import random
import time
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

import httpx

from .cache.manager import CacheManager
from .config import ConfigManager, HybridConfig
from .metrics import LATENCY_METRIC, Alert, MetricsManager
from .models import GenerationRequest, GenerationResult, Source
from .providers import LLMProvider
from .templates import TemplateGenerator

logger = logging.getLogger(__name__)


def generate_request_id() -> str:
    """Return "req_<epoch ms>_<9 hex chars>" (unique with high probability)."""
    return f"req_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class HybridGenerator:
    """Produces review text by walking an ordered chain of tiers.

    Tiers, first success wins: cache, A/B routing decision, primary
    provider, fallback provider, template, emergency text. generate()
    never raises for a valid request; faults at a tier are logged and the
    next tier is tried.

    Example:
        async with HybridGenerator(config) as generator:
            result = await generator.generate(
                GenerationRequest("Grand Hotel", rating=5, highlights=("pool",))
            )
            print(result.source, result.text)
    """

    def __init__(
        self,
        config: HybridConfig | Mapping[str, Any] | None = None,
        *,
        config_manager: ConfigManager | None = None,
        cache_manager: CacheManager | None = None,
        metrics_manager: MetricsManager | None = None,
        template_generator: TemplateGenerator | None = None,
        llm_provider: LLMProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        on_alert: Callable[[Alert], None] | None = None,
    ) -> None:
        """Initialize generator and its collaborators.

        Any collaborator left as None is built from the configuration.

        Args:
            config: HybridConfig or nested mapping (defaults if None); ignored
                when config_manager is given
            config_manager: Pre-built configuration/availability tracker
            cache_manager: Review cache
            metrics_manager: Metrics and alerting
            template_generator: Offline template generator
            llm_provider: Provider call wrapper
            http_client: Client shared by probes and provider calls
            rng: Random source for the A/B draw and template choice
            clock: Time source handed to a cache built here
            on_alert: Callback for alerts raised by a metrics manager built here
        """
        self._http_client = http_client
        self._rng = rng or random.Random()
        self._clock = clock

        self.config_manager = config_manager or ConfigManager(config, http_client)
        self.cache_manager = cache_manager or CacheManager(self.config_manager, clock)
        self.metrics_manager = metrics_manager or MetricsManager(
            self.config_manager, on_alert=on_alert
        )
        self.template_generator = template_generator or TemplateGenerator(self._rng)
        self.llm_provider = llm_provider or LLMProvider(self.config_manager, http_client)

        self._initialized = False
        self._destroyed = False
        self._init_lock = asyncio.Lock()

    async def __aenter__(self) -> "HybridGenerator":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.destroy()

    def _ensure_active(self) -> None:
        if self._destroyed:
            raise RuntimeError("HybridGenerator has been destroyed")

    async def initialize(self) -> None:
        """Probe provider availability and start background tasks.

        Safe to call more than once; generate() calls it on first use.
        """
        self._ensure_active()
        async with self._init_lock:
            if self._initialized:
                return

            try:
                await self.config_manager.check_availability()
            except Exception as e:
                # Leaves every provider unavailable, so requests use templates
                logger.error(f"Availability check failed: {e}")

            if self.config_manager.get_cache_config().enabled:
                self.cache_manager.start_cleanup()
            self.metrics_manager.start_monitoring()

            self._initialized = True
            logger.info("HybridGenerator initialized")

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate review text for a request.

        Args:
            request: Validated generation request

        Returns:
            GenerationResult whose source names the tier that produced the text

        Raises:
            RuntimeError: If the generator has been destroyed
        """
        self._ensure_active()
        start = time.perf_counter()
        request_id = generate_request_id()

        if not self._initialized:
            await self.initialize()

        failures: list[str] = []
        provider: str | None = None
        cost = 0.0

        try:
            self.metrics_manager.record_metric("requests.total")
        except Exception as e:
            logger.error(f"[{request_id}] Failed to record metrics: {e}")

        try:
            source, text, provider, cost = await self._run_tiers(
                request, request_id, failures
            )
        except Exception as e:
            source, text = "emergency", self._emergency(request, request_id, e)
            provider, cost = None, 0.0
            failures.append("emergency")

        latency_ms = (time.perf_counter() - start) * 1000

        try:
            self.metrics_manager.record_metric(LATENCY_METRIC, latency_ms)
            self.metrics_manager.record_outcome(bool(failures))
            self.metrics_manager.check_alert_thresholds()
        except Exception as e:
            logger.error(f"[{request_id}] Failed to record metrics: {e}")

        logger.debug(
            f"[{request_id}] Generated via {source} in {latency_ms:.0f}ms"
        )
        return GenerationResult(
            text=text,
            source=source,
            latency_ms=int(round(latency_ms)),
            cost=cost,
            request_id=request_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
            cached=source == "cache",
            provider=provider,
        )

    async def _run_tiers(
        self,
        request: GenerationRequest,
        request_id: str,
        failures: list[str],
    ) -> tuple[Source, str, str | None, float]:
        metrics = self.metrics_manager

        cached = await self.cache_manager.check_cache(request)
        if cached is not None:
            metrics.record_metric("cache.hits")
            logger.debug(f"[{request_id}] Served from cache")
            return "cache", cached, None, 0.0
        if self.config_manager.get_cache_config().enabled:
            metrics.record_metric("cache.misses")

        use_providers = self._use_providers(request_id)
        if use_providers:
            for role in (ConfigManager.PRIMARY, ConfigManager.FALLBACK):
                outcome = await self._try_provider(role, request, request_id, failures)
                if outcome is not None:
                    return outcome

        text = self.template_generator.generate(request)
        if use_providers:
            metrics.record_metric("fallback.template")
        logger.debug(f"[{request_id}] Using template generation")
        return "template", text, None, 0.0

    def _use_providers(self, request_id: str) -> bool:
        ab = self.config_manager.get_ab_testing_config()
        if not ab.enabled:
            return True

        use_llm = self._rng.random() * 100 < ab.llm_percentage
        variant = "llm" if use_llm else "template"
        self.metrics_manager.record_ab_test_result(variant, request_id)
        return use_llm

    async def _try_provider(
        self,
        role: str,
        request: GenerationRequest,
        request_id: str,
        failures: list[str],
    ) -> tuple[Source, str, str | None, float] | None:
        if not self.config_manager.is_provider_available(role):
            logger.debug(f"[{request_id}] Skipping unavailable {role} provider")
            return None

        call = (
            self.llm_provider.call_primary
            if role == ConfigManager.PRIMARY
            else self.llm_provider.call_fallback
        )
        try:
            response = await call(request)
        except Exception as e:
            self.metrics_manager.record_metric(f"llm.{role}.errors")
            self.metrics_manager.log_error(f"{role} provider failed", e, request_id)
            failures.append(role)
            return None

        await self.cache_manager.cache_result(request, response.text)
        self.metrics_manager.record_metric(f"llm.{role}.success")
        self.metrics_manager.track_cost(response.provider, response.tokens)

        cost = 0.0
        if role == ConfigManager.PRIMARY:
            cost = self.llm_provider.estimate_cost(response.text)
        source: Source = "primary" if role == ConfigManager.PRIMARY else "fallback"
        return source, response.text, response.provider, cost

    def _emergency(
        self, request: GenerationRequest, request_id: str, error: Exception
    ) -> str:
        metrics = self.metrics_manager
        try:
            metrics.record_metric("errors.total")
            metrics.record_metric("fallback.emergency")
            metrics.log_error("all generation tiers failed", error, request_id)
            metrics.send_alert(
                "exhaustion",
                f"[{request_id}] Emergency fallback used: {type(error).__name__}: {error}",
                level=logging.ERROR,
            )
        except Exception as e:
            logger.error(f"[{request_id}] Failed to report emergency fallback: {e}")
        return self.llm_provider.get_emergency_fallback(request)

    def get_metrics(self) -> dict[str, Any]:
        self._ensure_active()
        summary = self.metrics_manager.get_metrics_summary()
        summary["cache"] = self.cache_manager.get_cache_stats()
        return summary

    def get_cache_stats(self) -> dict[str, Any]:
        self._ensure_active()
        return self.cache_manager.get_cache_stats()

    def get_availability(self) -> dict[str, bool] | None:
        self._ensure_active()
        return self.config_manager.get_availability()

    def get_config(self) -> HybridConfig:
        self._ensure_active()
        return self.config_manager.config

    def clear_cache(self) -> None:
        self._ensure_active()
        self.cache_manager.clear_cache()

    async def refresh_availability(self) -> dict[str, bool]:
        self._ensure_active()
        return await self.config_manager.refresh_availability()

    async def update_config(self, new_config: HybridConfig | Mapping[str, Any]) -> None:
        """Replace the configuration.

        Rebuilds the config manager, provider wrapper and cache (dropping
        cached entries) while keeping metrics history. Availability is
        re-probed on next use.

        Raises:
            ValueError: If new_config is invalid (the current config is kept)
        """
        self._ensure_active()
        config_manager = ConfigManager(new_config, self._http_client)

        await self._stop_background()
        await self.llm_provider.aclose()

        self.config_manager = config_manager
        self.cache_manager = CacheManager(config_manager, self._clock)
        self.llm_provider = LLMProvider(config_manager, self._http_client)
        self.metrics_manager.config_manager = config_manager
        self._initialized = False
        logger.info("Configuration updated")

    async def _stop_background(self) -> None:
        await self.cache_manager.stop_cleanup()
        await self.metrics_manager.stop_monitoring()

    async def destroy(self) -> None:
        """Stop background tasks and release cache, metrics and HTTP state.

        The instance cannot be used afterwards. Calling destroy() again is a
        no-op.
        """
        if self._destroyed:
            return
        await self._stop_background()
        self.cache_manager.clear_cache()
        await self.metrics_manager.destroy()
        await self.llm_provider.aclose()
        self._destroyed = True
        self._initialized = False
        logger.info("HybridGenerator destroyed")
