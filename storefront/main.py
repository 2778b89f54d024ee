# storefront/main.py
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from storefront.core.config import settings
from storefront.core.db import Base, engine
from storefront.core.errors import register_exception_handlers
from storefront.core.logging import configure_logging

# create_all 이 테이블을 알 수 있도록 모델 import
from storefront.models import category, one_time_code, password_reset, product, user  # noqa: F401
from storefront.routers.admin import router as admin_router
from storefront.routers.auth import router as auth_router
from storefront.routers.categories import router as categories_router
from storefront.routers.health import router as health_router
from storefront.routers.products import router as products_router

logger = logging.getLogger("storefront")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    Base.metadata.create_all(bind=engine)
    logger.info("database ready (%s)", engine.url.get_backend_name())
    yield


app = FastAPI(title="Storefront API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "%s %s from %s -> %s (%.1fms)",
        request.method,
        request.url.path,
        request.client.host if request.client else "-",
        response.status_code,
        elapsed_ms,
    )
    return response


app.include_router(health_router)
for r in (auth_router, admin_router, categories_router, products_router):
    app.include_router(r, prefix=settings.API_PREFIX)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version=app.version,
        description="E-commerce backend: accounts, authentication and catalog",
        routes=app.routes,
    )
    schemes = schema.setdefault("components", {}).setdefault("securitySchemes", {})
    # HTTPBearer 가 만든 기본 스킴 이름을 BearerAuth 하나로 정리
    for key in list(schemes.keys()):
        if schemes[key].get("type") == "http":
            schemes.pop(key, None)
    schemes["BearerAuth"] = {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
    for path_item in schema.get("paths", {}).values():
        for op in path_item.values():
            if isinstance(op, dict) and "security" in op:
                op["security"] = [{"BearerAuth": []}]
    app.openapi_schema = schema
    return app.openapi_schema


app.openapi = custom_openapi
