from fastapi import APIRouter, Response

from app.salestrack.core.metrics import metrics

router = APIRouter()


@router.get("/salestrack/ops/metrics", summary="Prometheus metrics", include_in_schema=False)
def prometheus_metrics():
    rendered = metrics.render()
    return Response(content=rendered.content, media_type=rendered.content_type)
