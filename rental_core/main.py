# rental_core/main.py

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rental_core.config import ALLOWED_ORIGINS
from rental_core.logging_config import setup_logging
from rental_core.middleware import RequestIDMiddleware
from rental_core.routes.health import router as health_router
from rental_core.routes.metrics import router as metrics_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Rental Core Operations API",
    description="Health, readiness and metrics for the rental booking core",
    version="1.0.0",
)

app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])


@app.on_event("startup")
def startup_event() -> None:
    """Warn early when the database is unreachable or the chart of accounts is missing."""
    from sqlalchemy import func, select

    from rental_core.db.engine import check_engine_health, engine
    from rental_core.models.ledger import Account

    logger.info("application_starting")

    if not check_engine_health(engine):
        logger.error("startup_database_unreachable")
        return

    with engine.connect() as conn:
        account_count = conn.execute(select(func.count(Account.account_id))).scalar_one()
    if account_count == 0:
        logger.warning(
            "chart_of_accounts_missing",
            hint="run scripts/seed_chart_of_accounts.py before posting",
        )

    logger.info("application_started", accounts=account_count)
