"""
GIF Search Proxy - forwards searches to Giphy with a short-lived cache.

The provider key stays server-side; clients only see the provider JSON.
An empty query maps to the trending endpoint.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from config import RuntimeConfig, runtime_config
from errors import UpstreamProxyError
from logging_config import log_gif
from services.gif_cache import GifCache

logger = logging.getLogger(__name__)

SERVICE_NAME = "giphy"


def normalize_query(query: Optional[str]) -> str:
    """Trim, lower-case and collapse internal whitespace."""
    if not query:
        return ""
    return " ".join(query.lower().split())


class GifProxy:
    """Cached pass-through to the GIF provider's search and trending endpoints."""

    def __init__(
        self,
        config: RuntimeConfig = runtime_config,
        cache: Optional[GifCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.cache = cache or GifCache(
            ttl_seconds=config.gif_cache_ttl_s,
            max_entries=config.gif_cache_max_entries,
        )
        self._transport = transport

    def _request_for(self, key: str) -> tuple:
        base = self.config.gif_base_url.rstrip("/")
        params: Dict[str, Any] = {
            "api_key": self.config.gif_api_key,
            "limit": self.config.gif_result_limit,
            "rating": self.config.gif_rating,
        }
        if key:
            params["q"] = key
            return f"{base}/search", params
        return f"{base}/trending", params

    async def search(self, query: Optional[str]) -> Any:
        """Return provider JSON for query, from cache when fresh.

        Raises:
            UpstreamProxyError: key not configured, network failure,
                non-2xx status or a non-JSON body
        """
        if not self.config.gif_api_key:
            raise UpstreamProxyError("GIF provider key is not configured", service=SERVICE_NAME, not_configured=True)

        key = normalize_query(query)
        cached = self.cache.get(key)
        if cached is not None:
            log_gif(logger, key, cached=True)
            return cached

        url, params = self._request_for(key)
        try:
            async with httpx.AsyncClient(timeout=self.config.gif_timeout_s, transport=self._transport) as client:
                resp = await client.get(url, params=params)
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"GIF provider returned {e.response.status_code} for '{key}'")
            raise UpstreamProxyError(
                "GIF provider returned an error",
                service=SERVICE_NAME,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"GIF provider request failed for '{key}': {type(e).__name__}: {e}")
            raise UpstreamProxyError("GIF provider request failed", details=type(e).__name__, service=SERVICE_NAME) from e
        except ValueError as e:
            logger.warning(f"GIF provider sent invalid JSON for '{key}'")
            raise UpstreamProxyError("GIF provider sent an invalid response", service=SERVICE_NAME) from e

        self.cache.set(key, payload)
        log_gif(logger, key, cached=False)
        return payload
