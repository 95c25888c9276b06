"""Timeout-bounded calls to generation providers through the network boundary."""

import asyncio
import logging
from typing import Any

import httpx

from ..config import ConfigManager, ProviderConfig
from ..models import GenerationRequest, ProviderResponse
from .errors import ProviderAPIError, ProviderError, ProviderTimeoutError
from .prompts import SYSTEM_PROMPT, build_prompt

logger = logging.getLogger(__name__)

# Rough heuristic used for cost estimation
CHARS_PER_TOKEN = 4


class LLMProvider:
    """Issues review-generation calls to the primary and fallback providers.

    Every call is a single POST to the provider's endpoint on the network
    boundary, which owns credentials and provider-side rate limiting. Calls
    are bounded by the provider's own timeout and never retried here.

    Example:
        provider = LLMProvider(ConfigManager())
        try:
            response = await provider.call_primary(request)
        except ProviderError:
            response = await provider.call_fallback(request)
        finally:
            await provider.aclose()
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize provider wrapper.

        Args:
            config_manager: Source of provider descriptors and endpoints
            http_client: Shared client; when omitted an owned client is created
                lazily and closed by aclose()
        """
        self.config_manager = config_manager
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient()
        return self._http_client

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def build_prompt(self, request: GenerationRequest) -> str:
        return build_prompt(request)

    async def call_primary(self, request: GenerationRequest) -> ProviderResponse:
        """Generate review text with the primary provider.

        Raises:
            ProviderTimeoutError: If the call exceeds the provider timeout
            ProviderAPIError: If the call fails or returns unusable data
            ProviderError: If no primary provider is configured
        """
        provider = self._require(ConfigManager.PRIMARY)
        prompt = self.build_prompt(request)
        body = {
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.8,
            "max_tokens": 300,
            "presence_penalty": 0.6,
            "frequency_penalty": 0.3,
        }
        return await self._call(provider, body)

    async def call_fallback(self, request: GenerationRequest) -> ProviderResponse:
        """Generate review text with the fallback provider.

        Raises:
            ProviderTimeoutError: If the call exceeds the provider timeout
            ProviderAPIError: If the call fails or returns unusable data
            ProviderError: If no fallback provider is configured
        """
        provider = self._require(ConfigManager.FALLBACK)
        prompt = self.build_prompt(request)
        body = {
            "messages": [
                {"role": "user", "content": f"Write a natural hotel review. {prompt}"},
            ],
            "temperature": 0.7,
            "max_tokens": 250,
            "stream": False,
        }
        return await self._call(provider, body)

    def _require(self, role: str) -> ProviderConfig:
        provider = self.config_manager.get_provider_config(role)
        if provider is None:
            raise ProviderError(f"No {role} provider configured")
        return provider

    async def _call(
        self, provider: ProviderConfig, body: dict[str, Any]
    ) -> ProviderResponse:
        endpoint = self.config_manager.get_endpoint(provider)
        payload = {"provider": provider.name, "model": provider.model, **body}

        logger.debug(
            f"Calling {provider.name} ({provider.model}) at {endpoint} "
            f"with timeout {provider.timeout}s"
        )

        try:
            # wait_for cancels the in-flight request when the budget runs out
            response = await asyncio.wait_for(
                self.client.post(endpoint, json=payload, timeout=provider.timeout),
                timeout=provider.timeout,
            )
        except (TimeoutError, httpx.TimeoutException) as e:
            raise ProviderTimeoutError(
                f"{provider.name} timed out after {provider.timeout}s",
                provider.name,
                e,
            ) from e
        except httpx.HTTPError as e:
            raise ProviderAPIError(
                f"{provider.name} request failed: {e}", provider.name, None, e
            ) from e

        if not response.is_success:
            raise ProviderAPIError(
                f"{provider.name} returned HTTP {response.status_code}",
                provider.name,
                response.status_code,
            )

        try:
            data = response.json()
            text = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderAPIError(
                f"{provider.name} returned a malformed response: {e}",
                provider.name,
                response.status_code,
                e,
            ) from e

        if not isinstance(text, str) or not text.strip():
            raise ProviderAPIError(
                f"{provider.name} returned empty text",
                provider.name,
                response.status_code,
            )

        usage = data.get("usage") or {}
        tokens = usage.get("total_tokens") or 0

        return ProviderResponse(
            text=text.strip(),
            tokens=int(tokens),
            model=data.get("model") or provider.model,
            provider=provider.name,
        )

    def get_emergency_fallback(self, request: GenerationRequest) -> str:
        """Return minimal literal text used when every other tier failed."""
        name = getattr(request, "subject_name", None) or "this hotel"
        rating = getattr(request, "rating", 3)
        try:
            verdict = (
                "We had a wonderful experience."
                if rating >= 4
                else "Our stay was satisfactory."
            )
        except TypeError:
            verdict = "Our stay was satisfactory."
        return (
            f"Thank you for staying at {name}. {verdict} "
            "We appreciate the hospitality and service provided."
        )

    def estimate_cost(self, text: str, provider: str = ConfigManager.PRIMARY) -> float:
        """Approximate USD cost of generating text with a provider.

        Args:
            text: Generated text
            provider: Provider role or name (defaults to the primary)

        Returns:
            Estimated cost; always 0.0 for zero-cost or unknown providers
        """
        config = self.config_manager.get_provider_config(provider)
        if config is None or config.cost_per_1k_tokens == 0:
            return 0.0
        estimated_tokens = len(text) / CHARS_PER_TOKEN
        return (estimated_tokens / 1000) * config.cost_per_1k_tokens
