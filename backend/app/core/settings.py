# backend/app/core/settings.py
import os
from pathlib import Path
from typing import List
from pydantic import BaseModel
from dotenv import load_dotenv

# Resolve backend directory and load .env explicitly
BACKEND_DIR = Path(__file__).resolve().parents[2]  # .../backend
load_dotenv(BACKEND_DIR / ".env")  # do NOT set override=True; shell exports still win

def _csv_list(raw: str) -> List[str]:
    return [s.strip() for s in raw.split(",") if s.strip()]

class Settings(BaseModel):
    env: str = os.getenv("APP_ENV", "dev")
    port: int = int(os.getenv("PORT", "8000"))
    http_timeout_s: float = float(os.getenv("HTTP_TIMEOUT_S", "10"))
    quote_cache_ttl_s: float = float(os.getenv("QUOTE_CACHE_TTL_S", "300"))
    yahoo_user_agent: str = os.getenv(
        "YAHOO_USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    )
    cors_origins: List[str] = _csv_list(
        os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
    )
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

settings = Settings()
