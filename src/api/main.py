import logging
import os
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteUserRepo
from src.api.deps import get_clock, get_settings
from src.app_shell.config import bootstrap_owner, validate_ops_rules
from src.rules.loader import load_rules

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules, validate and migrate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.data_dir)
        applied = SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()
        if applied:
            logger.info(f"Applied migrations: {', '.join(applied)}")
        bootstrap_owner(rules, SQLiteUserRepo(settings.db_path), get_clock())
        logger.info(f"Rules loaded from {settings.rules_path}")
    except Exception as e:
        logger.critical(f"Startup failed: {e}")
        sys.exit(1)

    yield


app = FastAPI(
    title="Power Plunge API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import (  # noqa: E402
    admin_affiliates,
    admin_commerce,
    admin_content,
    admin_marketing,
    auth,
    customer,
    public,
    public_affiliates,
    public_newsletter,
    public_store,
    webhooks,
)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(public.router, prefix="/api/public", tags=["Public"])
app.include_router(public_store.router, prefix="/api/public", tags=["Store"])
app.include_router(public_newsletter.router, prefix="/api/public", tags=["Newsletter"])
app.include_router(public_affiliates.router, prefix="/api/public", tags=["Affiliate Signup"])
app.include_router(customer.router, prefix="/api/customer", tags=["Customer"])
app.include_router(admin_commerce.router, prefix="/api/admin", tags=["Admin Commerce"])
app.include_router(admin_affiliates.router, prefix="/api/admin", tags=["Admin Affiliates"])
app.include_router(admin_content.router, prefix="/api/admin", tags=["Admin Content"])
app.include_router(admin_marketing.router, prefix="/api/admin", tags=["Admin Marketing"])
app.include_router(webhooks.router, prefix="/api/webhooks", tags=["Webhooks"])


# CORS (Allow Frontend)
origins = [
    o.strip()
    for o in os.environ.get(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "power-plunge"}
