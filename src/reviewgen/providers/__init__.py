"""Provider access for review generation.

All provider traffic goes through a single network-boundary endpoint that
holds credentials; this package only knows each provider's URL, timeout and
pricing metadata.
"""

from .client import LLMProvider
from .errors import ProviderAPIError, ProviderError, ProviderTimeoutError

__all__ = [
    "LLMProvider",
    "ProviderAPIError",
    "ProviderError",
    "ProviderTimeoutError",
]
