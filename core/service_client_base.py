"""
Base Service Client for HTTP backends

Base class for HTTP clients: owns the httpx client, default headers and timeouts.
"""

import httpx
import logging
from typing import Optional, Dict, Any
from abc import ABC

logger = logging.getLogger(__name__)


class BaseServiceClient(ABC):
    """
    HTTP client base class

    Handles:
    1. Base URL resolution
    2. API key header
    3. HTTP client lifecycle
    4. Timeouts

    Example:
        class RecordStoreClient(BaseServiceClient):
            service_name = "cloud_record_store"
            default_port = 8250

            async def status(self):
                response = await self.get("/api/v1/account/status")
                return response.json()
    """

    # Subclasses define these
    service_name: str = None
    default_port: int = None

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client

        Args:
            base_url: Service base URL (defaults to localhost:default_port)
            api_key: Sent as a bearer token when provided
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        if not self.service_name:
            raise ValueError(f"{self.__class__.__name__} must define 'service_name'")

        if base_url:
            self.base_url = base_url.rstrip('/')
        else:
            port = self.default_port or 8000
            self.base_url = f"http://localhost:{port}"
            logger.warning(f"No URL configured for {self.service_name}, using default: {self.base_url}")

        self.client = httpx.AsyncClient(
            timeout=timeout,
            headers=self._build_default_headers(api_key),
            transport=transport,
        )

        logger.debug(
            f"Initialized {self.service_name} client: {self.base_url} "
            f"(api_key={'set' if api_key else 'unset'})"
        )

    def _build_default_headers(self, api_key: Optional[str]) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": f"weekend-horizon/{self.service_name}"
        }
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()
        logger.debug(f"Closed {self.service_name} client")

    # ========================================
    # HTTP methods
    # ========================================

    async def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """GET request"""
        url = f"{self.base_url}{path}"
        return await self.client.get(url, params=params, headers=headers)

    async def post(
        self,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """POST request"""
        url = f"{self.base_url}{path}"
        return await self.client.post(url, json=json, headers=headers)


__all__ = ["BaseServiceClient"]
