from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import logging
from threading import Lock
import time

import httpx


logger = logging.getLogger(__name__)


class PriceLookupError(RuntimeError):
    pass


def _normalize_token_key(value: str) -> str:
    return value.strip().lower()


def _normalize_network(value: str) -> str:
    return value.strip().lower()


COINGECKO_PLATFORMS = {
    "ethereum": "ethereum",
    "mainnet": "ethereum",
    "eth": "ethereum",
    "polygon": "polygon-pos",
    "matic": "polygon-pos",
    "arbitrum": "arbitrum-one",
    "arbitrum-one": "arbitrum-one",
    "base": "base",
    "optimism": "optimistic-ethereum",
    "bsc": "binance-smart-chain",
}


def _to_price(value) -> Decimal | None:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return price if price.is_finite() else None


@dataclass(frozen=True)
class PriceOverrides:
    data: dict

    def get_price(self, network: str, token: str) -> Decimal | None:
        network_key = _normalize_network(network)
        token_key = _normalize_token_key(token)
        for key in (network_key, "default"):
            bucket = self.data.get(key) if isinstance(self.data, dict) else None
            if not isinstance(bucket, dict):
                continue
            value = bucket.get(token)
            if value is None:
                value = bucket.get(token_key)
            if value is None:
                continue
            return _to_price(value)
        return None


class CoingeckoPriceProvider:
    def __init__(self, api_base: str, timeout_seconds: float, cache_ttl_seconds: float = 300):
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout_seconds
        self.cache_ttl_seconds = cache_ttl_seconds
        self._cache: dict[tuple[str, str], tuple[float, Decimal]] = {}
        self._lock = Lock()

    def _cache_get(self, *, platform: str, token_address: str) -> Decimal | None:
        if self.cache_ttl_seconds <= 0:
            return None
        key = (platform, token_address.lower())
        now = time.monotonic()
        with self._lock:
            cached = self._cache.get(key)
            if cached is None:
                return None
            expires_at, value = cached
            if expires_at <= now:
                self._cache.pop(key, None)
                return None
            return value

    def _cache_set(self, *, platform: str, token_address: str, value: Decimal) -> None:
        if self.cache_ttl_seconds <= 0:
            return
        key = (platform, token_address.lower())
        expires_at = time.monotonic() + self.cache_ttl_seconds
        with self._lock:
            self._cache[key] = (expires_at, value)

    def get_prices_usd(self, network: str, token_addresses: list[str]) -> dict[str, Decimal]:
        """Prices keyed by lowercase address; tokens CoinGecko does not know are absent."""
        platform = COINGECKO_PLATFORMS.get(_normalize_network(network))
        if not platform:
            raise PriceLookupError(f"Unsupported network for pricing: {network}")

        prices: dict[str, Decimal] = {}
        missing: list[str] = []
        for address in dict.fromkeys(token.lower() for token in token_addresses):
            if not address.startswith("0x"):
                raise PriceLookupError("Coingecko pricing requires a token address.")
            cached = self._cache_get(platform=platform, token_address=address)
            if cached is not None:
                prices[address] = cached
            else:
                missing.append(address)

        if not missing:
            return prices

        url = f"{self.api_base}/simple/token_price/{platform}"
        params = {
            "contract_addresses": ",".join(missing),
            "vs_currencies": "usd",
        }
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url, params=params)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise PriceLookupError(f"Coingecko request failed: {exc}") from exc

        for address in missing:
            entry = payload.get(address) if isinstance(payload, dict) else None
            if not isinstance(entry, dict) or "usd" not in entry:
                continue
            value = _to_price(entry["usd"])
            if value is None:
                continue
            self._cache_set(platform=platform, token_address=address, value=value)
            prices[address] = value
        return prices


class PriceService:
    def __init__(self, overrides: PriceOverrides, coingecko: CoingeckoPriceProvider):
        self.overrides = overrides
        self.coingecko = coingecko

    def get_prices_usd(self, *, tokens: list[str], network: str) -> dict[str, Decimal | None]:
        result: dict[str, Decimal | None] = {}
        remote: list[str] = []
        for token in tokens:
            override = self.overrides.get_price(network, token)
            if override is not None:
                result[token.lower()] = override
            elif token.lower().startswith("0x"):
                remote.append(token)
            else:
                result[token.lower()] = None

        if remote:
            fetched = self.coingecko.get_prices_usd(network, remote)
            for token in remote:
                result[token.lower()] = fetched.get(token.lower())

        unpriced = [token for token, price in result.items() if price is None]
        if unpriced:
            logger.warning(
                "pricing: prices_unavailable network=%s tokens=%s",
                network,
                ",".join(unpriced),
            )
        return result
