from typing import List, Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Maintenance Desk API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # Frontend Domains
    # -------------------------------------------------
    FRONTEND_DOMAIN: Optional[str] = None

    FRONTEND_DOMAINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Data Store
    #   memory   → process-local store (dev + tests)
    #   supabase → Supabase tables via service role
    # -------------------------------------------------
    DATA_STORE_BACKEND: Literal["memory", "supabase"] = "memory"

    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # -------------------------------------------------
    # Notifications (webhook: Discord, Slack, etc.)
    # -------------------------------------------------
    SYNC_WEBHOOK_URL: Optional[str] = None
    WEBHOOK_TIMEOUT_SECONDS: int = 10

    # -------------------------------------------------
    # Public links
    # -------------------------------------------------
    PUBLIC_LINK_TOKEN_BYTES: int = Field(32, description="Entropy of public-link tokens in bytes")
    PUBLIC_LINK_MAX_DAYS: int = Field(365, description="Longest lifetime a public link may be issued for")

    # -------------------------------------------------
    # Outbox retries
    # -------------------------------------------------
    OUTBOX_ENABLED: bool = True
    OUTBOX_RETRY_SECONDS: int = 60
    OUTBOX_MAX_ATTEMPTS: int = 5

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    model_config = SettingsConfigDict(case_sensitive=True)


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
cors_origins = []

# 1) add the deployed frontend domain
if settings.FRONTEND_DOMAIN:
    domain = settings.FRONTEND_DOMAIN
    if not domain.startswith("http"):
        domain = f"https://{domain}"
    cors_origins.append(domain.rstrip("/"))

# 2) add local / known frontend domains
cors_origins.extend([d.rstrip("/") for d in settings.FRONTEND_DOMAINS])

# 3) remove duplicates
settings.BACKEND_CORS_ORIGINS = sorted(list(set(cors_origins)))
