from fastapi import FastAPI

from app.salestrack.api import api_router
from app.salestrack.core.config import settings
from app.salestrack.core.errors import setup_exception_handlers
from app.salestrack.core.logging import configure_logging
from app.salestrack.middleware.observability import ObservabilityMiddleware
from app.salestrack.middleware.organization import OrganizationContextMiddleware
from app.salestrack.middleware.trace import TraceIdMiddleware
from app.salestrack.openapi import harden_openapi_schema


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.APP_NAME, version="1.0.0")
    app.add_middleware(OrganizationContextMiddleware)
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    app.openapi = lambda: harden_openapi_schema(app)
    return app


app = create_app()
