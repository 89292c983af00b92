from __future__ import annotations

from dataclasses import dataclass
import logging
from threading import Lock
import time

import httpx


logger = logging.getLogger(__name__)


CHAIN_ID_TO_KEY = {
    1: "ethereum",
    10: "optimism",
    42161: "arbitrum",
    8453: "base",
    137: "polygon",
    56: "bsc",
}


class RpcCallError(RuntimeError):
    pass


class RpcRevertError(RpcCallError):
    pass


class RpcResolutionError(RpcCallError):
    pass


@dataclass(frozen=True)
class EvmRpcClientSettings:
    rpc_urls: dict
    timeout_seconds: float
    max_retries: int
    min_interval_ms: int


class EvmRpcClient:
    def __init__(self, settings: EvmRpcClientSettings):
        self._settings = settings
        self._lock = Lock()
        self._last_request_at = 0.0
        self._request_id = 0

    def eth_call(self, *, chain_id: int, to: str, data: str, block: str = "latest") -> str:
        url = self._resolve_rpc_url(chain_id)
        result = self._post_jsonrpc(
            url=url,
            method="eth_call",
            params=[{"to": to, "data": data}, block],
        )
        if not isinstance(result, str) or not result.startswith("0x"):
            raise RpcCallError(f"Unexpected eth_call result: {result!r}")
        return result

    def _post_jsonrpc(self, *, url: str, method: str, params: list):
        attempts = max(1, self._settings.max_retries)
        delay = 0.25
        last_exc: Exception | None = None

        for attempt in range(1, attempts + 1):
            self._respect_rate_limit()
            try:
                with httpx.Client(timeout=self._settings.timeout_seconds) as client:
                    response = client.post(
                        url,
                        json={
                            "jsonrpc": "2.0",
                            "id": self._next_request_id(),
                            "method": method,
                            "params": params,
                        },
                    )
                    response.raise_for_status()
                    payload = response.json()

                error = payload.get("error")
                if error:
                    message = str(error.get("message", error)) if isinstance(error, dict) else str(error)
                    if "revert" in message.lower():
                        raise RpcRevertError(message)
                    raise RpcCallError(message)
                if "result" not in payload:
                    raise RpcCallError("JSON-RPC response without result.")
                return payload["result"]
            except RpcRevertError:
                raise
            except (httpx.HTTPError, RpcCallError, ValueError) as exc:
                last_exc = exc
                if attempt == attempts:
                    break
                logger.warning(
                    "evm_rpc_client: rpc_retry method=%s attempt=%s/%s error=%s",
                    method,
                    attempt,
                    attempts,
                    exc,
                )
                time.sleep(delay)
                delay *= 2

        raise RpcCallError(f"JSON-RPC request failed after retries: {last_exc}") from last_exc

    def _next_request_id(self) -> int:
        with self._lock:
            self._request_id += 1
            return self._request_id

    def _respect_rate_limit(self) -> None:
        min_interval = max(0, self._settings.min_interval_ms) / 1000.0
        if min_interval <= 0:
            return

        with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_request_at
            if elapsed < min_interval:
                time.sleep(min_interval - elapsed)
            self._last_request_at = time.monotonic()

    def _resolve_rpc_url(self, chain_id: int) -> str:
        chain_key = CHAIN_ID_TO_KEY.get(chain_id)
        if not chain_key:
            raise RpcResolutionError(f"Unsupported chain_id for RPC resolution: {chain_id}")

        url = str(self._settings.rpc_urls.get(chain_key) or "").strip()
        if not url:
            raise RpcResolutionError(
                f"Missing RPC_URL for chain '{chain_key}' (chain_id={chain_id})."
            )
        return url.rstrip("/")
