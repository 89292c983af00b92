from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lp_valuation.api.routers.position_valuation import router as position_valuation_router
from lp_valuation.api.routers.wallet_positions import router as wallet_positions_router
from lp_valuation.shared.config import get_settings

app = FastAPI(title="LP Valuation API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(position_valuation_router)
app.include_router(wallet_positions_router)


@app.get("/health")
def health():
    return {"status": "ok"}
