"""Metrics, cost tracking and alerting for the hybrid generator.

All state lives in memory for the lifetime of the process.
"""

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from .config import ConfigManager, MonitoringConfig
from .tasks import PeriodicTask

logger = logging.getLogger(__name__)

LATENCY_METRIC = "latency.ms"
OUTCOME_WINDOW = 100
MAX_ALERTS = 100


@dataclass
class Alert:
    """A raised monitoring alert."""

    kind: str
    message: str
    level: int = logging.WARNING
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )


@dataclass
class LatencyStats:
    """Running latency aggregate in milliseconds."""

    count: int = 0
    average: float = 0.0
    max: float = 0.0
    min: float | None = None

    def add(self, sample: float) -> None:
        self.count += 1
        n = self.count
        self.average = (self.average * (n - 1) + sample) / n
        self.max = max(self.max, sample)
        self.min = sample if self.min is None else min(self.min, sample)


class MetricsManager:
    """Counters, latency, cost and alert thresholds.

    Counters are keyed by dotted names such as "requests.total" or
    "llm.primary.errors". The name "latency.ms" feeds the running latency
    mean instead of a counter.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        on_alert: Callable[[Alert], None] | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize empty metrics.

        Args:
            config_manager: Source of monitoring, A/B and provider settings
            on_alert: Optional callback invoked for every raised alert
            today: Date source for per-day cost buckets (injectable for tests)
        """
        self.config_manager = config_manager
        self.on_alert = on_alert
        self._today = today
        self._monitoring_task: PeriodicTask | None = None
        self.reset()

    def reset(self) -> None:
        """Drop all recorded state."""
        self.counters: dict[str, float] = {}
        self.latency = LatencyStats()
        self.daily_cost: dict[str, float] = {}
        self.total_cost = 0.0
        self.total_tokens: dict[str, int] = {}
        self._outcomes: deque[bool] = deque(maxlen=OUTCOME_WINDOW)
        self.alerts: deque[Alert] = deque(maxlen=MAX_ALERTS)

    @property
    def monitoring(self) -> MonitoringConfig:
        return self.config_manager.get_monitoring_config()

    def record_metric(self, name: str, value: float = 1) -> None:
        """Add value to a counter, or a latency sample for "latency.ms"."""
        if name == LATENCY_METRIC:
            self.latency.add(value)
            return
        self.counters[name] = self.counters.get(name, 0) + value

    def get_counter(self, name: str) -> float:
        return self.counters.get(name, 0)

    def record_outcome(self, failed: bool) -> None:
        """Remember whether a completed request hit any failing tier."""
        self._outcomes.append(failed)

    def record_ab_test_result(self, variant: str, request_id: str) -> None:
        if not self.config_manager.get_ab_testing_config().tracking_enabled:
            return
        self.record_metric(f"ab_testing.{variant}")
        logger.debug(f"[{request_id}] A/B variant: {variant}")

    def track_cost(self, provider: str, tokens: int) -> float:
        """Accumulate the cost of a provider call.

        Args:
            provider: Provider role or name
            tokens: Total tokens reported by the provider

        Returns:
            Cost added in USD (0.0 for zero-cost or unknown providers)
        """
        config = self.config_manager.get_provider_config(provider)
        if config is None:
            return 0.0

        self.total_tokens[config.name] = self.total_tokens.get(config.name, 0) + tokens
        if config.cost_per_1k_tokens == 0:
            return 0.0

        cost = (tokens / 1000) * config.cost_per_1k_tokens
        today = self._today().isoformat()
        self.daily_cost[today] = self.daily_cost.get(today, 0.0) + cost
        self.total_cost += cost
        return cost

    def cost_today(self) -> float:
        return self.daily_cost.get(self._today().isoformat(), 0.0)

    def error_rate(self) -> float:
        """Fraction of the recent request window that hit a failing tier."""
        if not self._outcomes:
            return 0.0
        return sum(self._outcomes) / len(self._outcomes)

    def log_error(self, context: str, error: BaseException, request_id: str) -> None:
        logger.warning(
            f"[{request_id}] {context}: {type(error).__name__}: {error}"
        )

    def check_alert_thresholds(self) -> list[Alert]:
        """Raise an alert for every configured limit currently exceeded.

        Returns:
            Alerts raised by this check (empty when monitoring is disabled)
        """
        monitoring = self.monitoring
        if not monitoring.enabled:
            return []

        thresholds = monitoring.alert_threshold
        raised = []

        error_rate = self.error_rate()
        if error_rate > thresholds.error_rate:
            raised.append(
                self.send_alert(
                    "error_rate",
                    f"Error rate {error_rate * 100:.1f}% exceeds threshold "
                    f"{thresholds.error_rate * 100:.1f}%",
                )
            )

        avg_latency = self.latency.average
        if self.latency.count and avg_latency > thresholds.latency * 1000:
            raised.append(
                self.send_alert(
                    "latency",
                    f"Average latency {avg_latency:.0f}ms exceeds threshold "
                    f"{thresholds.latency * 1000:.0f}ms",
                )
            )

        daily = self.cost_today()
        if daily > thresholds.cost:
            raised.append(
                self.send_alert(
                    "cost",
                    f"Daily cost ${daily:.2f} exceeds threshold ${thresholds.cost:.2f}",
                )
            )

        return raised

    def send_alert(
        self, kind: str, message: str, level: int = logging.WARNING
    ) -> Alert:
        alert = Alert(kind=kind, message=message, level=level)
        self.alerts.append(alert)
        logger.log(level, f"Alert [{kind}]: {message}")
        if self.on_alert is not None:
            try:
                self.on_alert(alert)
            except Exception as e:
                logger.error(f"Alert callback failed: {e}")
        return alert

    def get_metrics_summary(self) -> dict[str, Any]:
        """Snapshot of counters, rates, latency, cost and availability."""
        total = self.get_counter("requests.total")
        emergencies = self.get_counter("errors.total")
        hits = self.get_counter("cache.hits")
        lookups = hits + self.get_counter("cache.misses")
        ab_enabled = self.config_manager.get_ab_testing_config().enabled

        return {
            "requests": {
                "total": int(total),
                "errors": int(emergencies),
            },
            "success_rate": (total - emergencies) / total if total else 0.0,
            "error_rate": self.error_rate(),
            "cache_hit_rate": hits / lookups if lookups else 0.0,
            "avg_latency_ms": round(self.latency.average, 1),
            "max_latency_ms": round(self.latency.max, 1),
            "min_latency_ms": round(self.latency.min, 1)
            if self.latency.min is not None
            else None,
            "cost": {
                "daily": self.cost_today(),
                "total": self.total_cost,
            },
            "tokens": dict(self.total_tokens),
            "providers": {
                role: {
                    "success": int(self.get_counter(f"llm.{role}.success")),
                    "errors": int(self.get_counter(f"llm.{role}.errors")),
                }
                for role in (ConfigManager.PRIMARY, ConfigManager.FALLBACK)
            },
            "fallbacks": {
                "template": int(self.get_counter("fallback.template")),
                "emergency": int(self.get_counter("fallback.emergency")),
            },
            "ab_testing": {
                "llm": int(self.get_counter("ab_testing.llm")),
                "template": int(self.get_counter("ab_testing.template")),
            }
            if ab_enabled
            else None,
            "alerts": len(self.alerts),
            "availability": self.config_manager.get_availability(),
        }

    def report_metrics(self) -> None:
        """Log the current summary and re-check alert thresholds."""
        summary = self.get_metrics_summary()
        logger.info(
            f"Metrics: {summary['requests']['total']} requests, "
            f"cache hit rate {summary['cache_hit_rate'] * 100:.1f}%, "
            f"avg latency {summary['avg_latency_ms']:.0f}ms, "
            f"cost today ${summary['cost']['daily']:.4f}"
        )
        self.check_alert_thresholds()

    def start_monitoring(self) -> None:
        """Start periodic reporting on the running loop when monitoring is enabled."""
        monitoring = self.monitoring
        if not monitoring.enabled:
            return
        if self._monitoring_task is None:
            self._monitoring_task = PeriodicTask(
                "reviewgen-monitoring",
                monitoring.report_interval,
                self.report_metrics,
            )
        self._monitoring_task.start()

    async def stop_monitoring(self) -> None:
        if self._monitoring_task is not None:
            await self._monitoring_task.stop()
            self._monitoring_task = None

    async def destroy(self) -> None:
        await self.stop_monitoring()
        self.reset()
