"""LeadAlerts FastAPI application.

Web server that processes commands synchronously via HTTP. Every request
runs inside the leadalerts domain context. The scan routes are meant to be
called by an external scheduler (cron, Cloud Scheduler).

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from leadalerts.config import get_settings
from leadalerts.domain import leadalerts

leadalerts.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="LeadAlerts API",
    description="Lead notifications and reminders for multi-tenant sales teams",
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
    """Push the Protean domain context for each request."""
    with leadalerts.domain_context():
        response = await call_next(request)
    return response


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from leadalerts.api import lead_router, member_router, scan_router, tenant_router  # noqa: E402

app.include_router(tenant_router)
app.include_router(member_router)
app.include_router(lead_router)
app.include_router(scan_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    settings = get_settings()
    return JSONResponse(
        content={
            "status": "ok",
            "domain": leadalerts.name,
            "delivery": settings.delivery_backend.value,
        }
    )
