from dataclasses import dataclass

from fastapi import Request


@dataclass(frozen=True)
class RequestContext:
    user_id: str | None
    organization_id: str | None
    branch_id: str | None
    role: str | None
    trace_id: str
    ip_address: str | None = None
    user_agent: str | None = None


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


def get_request_context(request: Request) -> RequestContext:
    context = getattr(request.state, "context", None)
    if isinstance(context, RequestContext):
        return context
    return RequestContext(
        user_id=getattr(request.state, "user_id", None),
        organization_id=getattr(request.state, "organization_id", None),
        branch_id=getattr(request.state, "branch_id", None),
        role=getattr(request.state, "role", None),
        trace_id=getattr(request.state, "trace_id", ""),
        ip_address=client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
