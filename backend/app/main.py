# backend/app/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.core.settings import settings
from app.api.routes_import import router as import_router
from app.api.routes_portfolio import router as portfolio_router
from app.api.routes_quotes import router as quotes_router

app = FastAPI(title="Holdings Import API", version="0.2.0")

# CORS for local dev frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(import_router, prefix="/import", tags=["import"])
app.include_router(portfolio_router, prefix="/portfolio", tags=["portfolio"])
app.include_router(quotes_router, prefix="/quotes", tags=["quotes"])

@app.get("/healthz")
def healthz():
    return {"ok": True}

@app.get("/health")
def health():
    logger.info("Health check ok")
    return {"status": "ok", "env": settings.env}

@app.get("/config/check")
def config_check():
    return {
        "quote_cache_ttl_s": settings.quote_cache_ttl_s,
        "max_upload_bytes": settings.max_upload_bytes,
    }
