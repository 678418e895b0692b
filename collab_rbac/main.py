from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from collab_rbac.core import config
from collab_rbac.core.database.engine import init_db
from collab_rbac.features.permissions.errors import register_exception_handlers
from collab_rbac.features.permissions.routes import router as permission_router
from collab_rbac.features.users.dependencies import get_rate_limit_key
from collab_rbac.features.users.middleware import PrincipalMiddleware
from collab_rbac.utils import configure_logging, get_logger


configure_logging()
log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="Collaboration Platform Authorization",
    description="Role-based, resource-aware authorization for the collaboration platform",
    version="0.1.0",
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
limiter = Limiter(key_func=get_rate_limit_key, default_limits=[config.RATE_LIMIT])
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# Added after the limiter so it runs first and the limiter can key on the principal
if config.PRINCIPAL_HEADER:
    log.warning("Trusting principal header %s", config.PRINCIPAL_HEADER)
    app.add_middleware(PrincipalMiddleware, header_name=config.PRINCIPAL_HEADER)


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.collab_rbac.features."), timing=timing, tags=tags))


app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    origins = [config.ALLOW_ORIGIN]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_exception_handlers(app)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        key = error["loc"][-1]
        if key == "__root__":
            key = "root"
        errors[key] = error["msg"]
    log.info("Request validation error %s", errors)
    return JSONResponse(status_code=400, content=jsonable_encoder(errors))


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse(
        {"success": False, "message": "You are going too fast", "code": "RATE_LIMITED"},
        status_code=429,
    )


@app.on_event("startup")
async def startup():
    """Create the user and project tables backing the ownership oracle."""
    log.info("Initializing database...")
    await init_db()
    log.info("Database initialized successfully")


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "Collaboration Platform Authorization API",
        "version": "0.1.0",
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "authentication": {
            "info": "Principals are attached upstream; set PRINCIPAL_HEADER to trust an authenticating proxy",
            "principal_header": config.PRINCIPAL_HEADER,
        },
        "features": {
            "permissions": "Static role-permission table with resource-scoped ownership checks",
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


app.include_router(permission_router, prefix="/permissions", tags=["permissions"])
