"""
JSON-RPC client for the remote ledger node.

Both remote calls the service uses (``nucleus_post`` and ``nucleus_get``)
take hex-encoded parameters and return hex-encoded results. Transient
transport failures are retried with exponential backoff; everything else
is raised as ``RpcError`` to the caller.
"""

import asyncio
import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from ledger_sync.config.settings import Settings
from ledger_sync.core.exceptions import RpcError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class NucleusRpcClient:
    """
    Async client for the ledger node's nucleus RPC methods.

    Can be used as an async context manager; otherwise call ``close()`` when done.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        max_retries: int = 0,
        retry_backoff: float = 1.0,
        max_backoff: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the RPC client.

        Args:
            url: HTTP endpoint of the ledger node
            timeout: Request timeout in seconds
            max_retries: Retry attempts for transient failures (0, the default, disables retry)
            retry_backoff: Initial backoff in seconds, doubled per attempt
            max_backoff: Upper bound for a single backoff
            http_client: Optional preconfigured client (tests inject a mock transport here)
        """
        self.url = url
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.max_backoff = max_backoff
        self._ids = itertools.count(1)
        self.client = http_client or httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            timeout=httpx.Timeout(timeout),
        )
        logger.info(f"Initialized NucleusRpcClient with url: {url}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "NucleusRpcClient":
        return cls(
            url=settings.RPC_URL,
            timeout=settings.RPC_TIMEOUT_SECONDS,
            max_retries=settings.RPC_MAX_RETRIES,
            retry_backoff=settings.RPC_RETRY_BACKOFF_SECONDS,
            max_backoff=settings.RPC_MAX_BACKOFF_SECONDS,
        )

    async def __aenter__(self) -> "NucleusRpcClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("NucleusRpcClient closed")

    async def nucleus_post(self, target_id: str, method: str, hex_params: str) -> str:
        return await self.request("nucleus_post", [target_id, method, hex_params])

    async def nucleus_get(self, target_id: str, method: str, hex_params: str) -> str:
        return await self.request("nucleus_get", [target_id, method, hex_params])

    async def request(self, rpc_method: str, params: List[Any]) -> str:
        """
        Perform a JSON-RPC call and return its string result.

        Args:
            rpc_method: JSON-RPC method name
            params: Positional parameters

        Returns:
            str: The ``result`` member of the response

        Raises:
            RpcError: On a non-retryable failure, or once the retry budget is spent
        """
        payload: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": rpc_method,
            "params": params,
        }

        for attempt in range(self.max_retries + 1):
            try:
                logger.debug(f"Calling {rpc_method}{params[1:2]} (attempt {attempt + 1})")
                response = await self.client.post(self.url, json=payload)
            except httpx.TransportError as e:
                if attempt < self.max_retries:
                    await self._backoff(attempt, f"transport error: {e}")
                    continue
                raise RpcError(f"{rpc_method} failed after {attempt + 1} attempts: {e}") from e

            if response.status_code in RETRYABLE_STATUS_CODES and attempt < self.max_retries:
                await self._backoff(attempt, f"HTTP {response.status_code}")
                continue
            if response.status_code != 200:
                raise RpcError(f"HTTP {response.status_code}: {response.text}", response.status_code)

            return self._extract_result(rpc_method, response)

        # Unreachable: the last attempt either returns or raises
        raise RpcError(f"{rpc_method} exhausted retries")

    async def _backoff(self, attempt: int, reason: str) -> None:
        wait_time = min(self.retry_backoff * (2 ** attempt), self.max_backoff)
        logger.warning(f"RPC {reason}; retrying in {wait_time:.1f}s ({attempt + 1}/{self.max_retries})")
        await asyncio.sleep(wait_time)

    @staticmethod
    def _extract_result(rpc_method: str, response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError as e:
            raise RpcError(f"{rpc_method} returned invalid JSON: {e}") from e

        if not isinstance(body, dict):
            raise RpcError(f"{rpc_method} returned a non-object response")
        if body.get("error") is not None:
            error = body["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise RpcError(f"{rpc_method} returned JSON-RPC error: {message}")

        result = body.get("result")
        if not isinstance(result, str):
            raise RpcError(f"{rpc_method} returned a non-string result: {result!r}")
        return result
