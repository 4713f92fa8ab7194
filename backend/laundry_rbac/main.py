import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from laundry_rbac.api import auth, permissions, staff, superadmin
from laundry_rbac.core.config import settings
from laundry_rbac.db.base import AsyncSessionLocal, init_db
from laundry_rbac.db.seed_superadmin import seed_superadmin
from laundry_rbac.rbac.errors import RBACError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    async with AsyncSessionLocal() as db:
        await seed_superadmin(db)
    logger.info(f"{settings.PROJECT_NAME} started")
    yield


app = FastAPI(
    title="Laundry Ops RBAC API",
    description="Role-based access control for laundry operations: accounts, permissions, presets",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RBACError)
async def rbac_error_handler(request: Request, exc: RBACError):
    headers = None
    if exc.status_code == 401:
        headers = {"WWW-Authenticate": "Bearer"}
    elif exc.status_code == 429 and exc.details:
        headers = {"Retry-After": str(exc.details["retry_after"])}
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "code": "VALIDATION_ERROR",
            "message": "Validation failed",
            "details": {
                "errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in exc.errors()
                ]
            },
        },
    )


# Routers
app.include_router(auth.router)
app.include_router(permissions.router)
app.include_router(superadmin.router)
app.include_router(staff.router)


@app.get("/health")
async def health_check():
    return {"status": "ok", "version": "0.1.0"}
