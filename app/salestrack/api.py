from fastapi import APIRouter

from app.salestrack.core.config import settings
from app.salestrack.routers.activities import router as activities_router
from app.salestrack.routers.auth import router as auth_router
from app.salestrack.routers.branches import router as branches_router
from app.salestrack.routers.catalog import router as catalog_router
from app.salestrack.routers.dashboard import router as dashboard_router
from app.salestrack.routers.expenses import router as expenses_router
from app.salestrack.routers.health import router as health_router
from app.salestrack.routers.metrics import router as metrics_router
from app.salestrack.routers.organizations import router as organizations_router
from app.salestrack.routers.provisioning import router as provisioning_router
from app.salestrack.routers.releases import router as releases_router
from app.salestrack.routers.reports import router as reports_router
from app.salestrack.routers.sales import router as sales_router
from app.salestrack.routers.users import router as users_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["ops"])
api_router.include_router(auth_router, prefix="/salestrack/auth", tags=["auth"])
api_router.include_router(provisioning_router, prefix="/salestrack/provisioning", tags=["provisioning"])
api_router.include_router(organizations_router, prefix="/salestrack", tags=["organizations"])
api_router.include_router(branches_router, prefix="/salestrack", tags=["branches"])
api_router.include_router(catalog_router, prefix="/salestrack", tags=["catalog"])
api_router.include_router(sales_router, prefix="/salestrack", tags=["sales"])
api_router.include_router(expenses_router, prefix="/salestrack", tags=["expenses"])
api_router.include_router(users_router, prefix="/salestrack", tags=["users"])
api_router.include_router(activities_router, prefix="/salestrack", tags=["activities"])
api_router.include_router(dashboard_router, prefix="/salestrack", tags=["dashboard"])
api_router.include_router(reports_router, prefix="/salestrack", tags=["reports"])
api_router.include_router(releases_router, prefix="/salestrack", tags=["releases"])
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
