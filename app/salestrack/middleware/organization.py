from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.salestrack.core.security import decode_token


class OrganizationContextMiddleware(BaseHTTPMiddleware):
    """Expose the bearer token's user and organization on request.state for logging.

    Authorization still happens in the route dependencies; an unreadable token
    only leaves the identifiers empty.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.organization_id = None
        request.state.user_id = None
        request.state.branch_id = None
        request.state.role = None

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.lower().startswith("bearer "):
            token = auth_header.split(" ", 1)[1]
            try:
                payload = decode_token(token)
            except JWTError:
                payload = {}
            request.state.organization_id = payload.get("organization_id")
            request.state.user_id = payload.get("sub")
            request.state.branch_id = payload.get("branch_id")
            request.state.role = payload.get("role")

        return await call_next(request)
