"""
Shared async HTTP client for third-party providers.
Network errors and 5xx answers are retried with a linear backoff; 4xx answers are never retried.
"""

from typing import Any, Dict, Optional
from inmobi.config import settings
from inmobi.utils.exceptions import ExternalServiceError
import asyncio
import httpx
import logging

logger = logging.getLogger(__name__)


class ExternalServiceClient:
    """
    Base class for provider clients.

    Subclasses set ``service_name`` and call ``request`` with paths relative to
    ``base_url``. Passing ``transport`` (for example an ``httpx.MockTransport``)
    replaces the network.
    """

    service_name = "External service"

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.timeout = timeout if timeout is not None else settings.external_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.external_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.external_retry_backoff_seconds
        )
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """
        Send a request, retrying transient failures.

        Returns:
            The successful (2xx/3xx) response

        Raises:
            ExternalServiceError: On a 4xx answer, or once retries are exhausted
        """
        attempts = self.max_retries + 1

        for attempt in range(1, attempts + 1):
            try:
                async with self._client() as client:
                    response = await client.request(
                        method, path, params=params, json=json, data=data, headers=headers
                    )
            except httpx.RequestError as e:
                if attempt < attempts:
                    logger.warning(
                        f"{self.service_name} {method} {path} network error "
                        f"(attempt {attempt}/{attempts}): {e}"
                    )
                    await asyncio.sleep(self.backoff_seconds * attempt)
                    continue
                logger.error(f"{self.service_name} {method} {path} failed after {attempts} attempts: {e}")
                raise ExternalServiceError(self.service_name, f"network error: {e}")

            if response.status_code >= 500:
                if attempt < attempts:
                    logger.warning(
                        f"{self.service_name} {method} {path} returned {response.status_code} "
                        f"(attempt {attempt}/{attempts})"
                    )
                    await asyncio.sleep(self.backoff_seconds * attempt)
                    continue
                logger.error(f"{self.service_name} {method} {path} returned {response.status_code}")
                raise ExternalServiceError(
                    self.service_name,
                    f"provider returned {response.status_code}",
                    provider_status=response.status_code
                )

            if response.status_code >= 400:
                logger.error(
                    f"{self.service_name} {method} {path} rejected with {response.status_code}: "
                    f"{response.text[:200]}"
                )
                raise ExternalServiceError(
                    self.service_name,
                    f"provider rejected the request with {response.status_code}",
                    provider_status=response.status_code
                )

            return response

        # The loop always returns or raises
        raise ExternalServiceError(self.service_name, "no attempt was made")

    def decode_json(self, response: httpx.Response) -> Any:
        """
        Raises:
            ExternalServiceError: If a successful answer is not JSON
        """
        try:
            return response.json()
        except ValueError:
            logger.error(
                f"{self.service_name} returned a non-JSON body with {response.status_code}: "
                f"{response.text[:200]}"
            )
            raise ExternalServiceError(
                self.service_name,
                "invalid JSON response",
                provider_status=response.status_code
            )

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self.request("GET", path, params=params)
        return self.decode_json(response)

    async def post_json(self, path: str, payload: Any) -> Any:
        response = await self.request("POST", path, json=payload)
        return self.decode_json(response) if response.content else None
