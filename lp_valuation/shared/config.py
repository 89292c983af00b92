from __future__ import annotations

import json
import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


SUPPORTED_CHAINS = ("ethereum", "arbitrum", "base", "polygon", "optimism", "bsc")


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _json(name: str) -> dict:
    value = _env(name)
    if not value:
        return {}
    return json.loads(value)


@dataclass(frozen=True)
class Settings:
    price_overrides: dict
    coingecko_api_base: str
    coingecko_timeout_seconds: float
    coingecko_cache_ttl_seconds: float
    rpc_urls: dict
    rpc_timeout_seconds: float
    rpc_max_retries: int
    rpc_min_interval_ms: int
    position_manager_addresses: dict
    factory_addresses: dict
    cors_allow_origins: list


def get_settings() -> Settings:
    rpc_urls = _json("RPC_URLS")
    for chain in SUPPORTED_CHAINS:
        value = _env(f"RPC_URL_{chain.upper()}", "")
        if value:
            rpc_urls[chain] = value
    return Settings(
        price_overrides=_json("PRICE_OVERRIDES"),
        coingecko_api_base=_env("COINGECKO_API_BASE", "https://api.coingecko.com/api/v3"),
        coingecko_timeout_seconds=float(_env("COINGECKO_TIMEOUT_SECONDS", "10")),
        coingecko_cache_ttl_seconds=float(_env("COINGECKO_CACHE_TTL_SECONDS", "300")),
        rpc_urls=rpc_urls,
        rpc_timeout_seconds=float(_env("RPC_TIMEOUT_SECONDS", "10")),
        rpc_max_retries=int(_env("RPC_MAX_RETRIES", "3")),
        rpc_min_interval_ms=int(_env("RPC_MIN_INTERVAL_MS", "50")),
        position_manager_addresses=_json("POSITION_MANAGER_ADDRESSES"),
        factory_addresses=_json("FACTORY_ADDRESSES"),
        cors_allow_origins=[
            origin.strip()
            for origin in (_env("CORS_ALLOW_ORIGINS", "*") or "*").split(",")
            if origin.strip()
        ],
    )
