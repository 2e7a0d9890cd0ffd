import asyncio
import contextlib
import logging
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config.settings import settings
from app.core.dependencies import get_optional_caller
from app.core.errors import AppError, app_error_handler
from app.core.rate_limit import limiter
from app.modules.auth import routes as auth_routes
from app.modules.auth.schemas import Caller
from app.modules.teams import routes as teams_routes
from app.modules.invitations import routes as invitations_routes
from app.modules.invitations.routes import get_invitation_service
from app.modules.invitations.schemas import AcceptInvitePage
from app.modules.invitations.service import InvitationService
from app.modules.projects import routes as projects_routes
from app.modules.documents import routes as documents_routes
from app.modules.assets import routes as assets_routes
from app.modules.sections import routes as sections_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(AppError, app_error_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                    (b"Referrer-Policy", b"no-referrer"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(teams_routes.router, prefix="/api/v1")
app.include_router(invitations_routes.router, prefix="/api/v1")
app.include_router(sections_routes.router, prefix="/api/v1")
app.include_router(documents_routes.router, prefix="/api/v1")
app.include_router(assets_routes.router, prefix="/api/v1")
app.include_router(projects_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    if settings.enable_invitation_sweeper:
        from app.modules.invitations.sweeper import invitation_sweeper_loop
        app.state.invitation_sweeper = asyncio.create_task(invitation_sweeper_loop())
        logger.info(
            f"Invitation sweeper started - expiring lapsed invitations every "
            f"{settings.invitation_sweep_interval_seconds}s"
        )


@app.on_event("shutdown")
async def shutdown_event():
    sweeper = getattr(app.state, "invitation_sweeper", None)
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        app.state.invitation_sweeper = None
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@app.get("/accept-invite", response_model=AcceptInvitePage)
@limiter.limit(settings.invite_rate_limit)
async def accept_invite_landing(
    request: Request,
    token: Optional[str] = Query(None),
    caller: Optional[Caller] = Depends(get_optional_caller),
    service: InvitationService = Depends(get_invitation_service),
):
    """Target of the emailed invite link. Works without a session."""
    return service.build_accept_invite_page(token, caller)


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: extend here with Supabase checks if needed."""
    return {"status": "ready"}
