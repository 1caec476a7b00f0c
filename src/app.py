"""MarketStream Ordering FastAPI application.

Serves the customer, merchant and admin order APIs over one ordering
domain. Commands are processed synchronously within each request; merchant
notifications go out after the order is committed.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → in-memory database
#   - "sqlite"     → local SQLite file
#   - "production" → PostgreSQL from DATABASE_URL

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordering.api import admin_router, merchant_router, order_router, register_exception_handlers
from ordering.domain import ordering
from ordering.utils.db import setup_db
from ordering.utils.logging import configure_logging, current_env

configure_logging()
ordering.init()

# Production schemas are managed with manage.py
if current_env() != "production":
    setup_db(ordering)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="MarketStream Ordering API",
    description="Multi-merchant orders: checkout, fulfilment and tracking",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context for each request."""
    with ordering.domain_context():
        response = await call_next(request)
    return response


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(order_router)
app.include_router(merchant_router)
app.include_router(admin_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "ordering": {
                    "name": ordering.name,
                    "env": current_env(),
                    "database": ordering.config["databases"]["default"]["provider"],
                },
            },
        }
    )
