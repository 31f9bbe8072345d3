import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

TRACE_HEADER = "X-Trace-ID"

# POS tills send their own ids; anything else is replaced so it stays safe to log and echo
_ACCEPTED_TRACE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def resolve_trace_id(header_value: str | None) -> str:
    if header_value and _ACCEPTED_TRACE_ID.match(header_value):
        return header_value
    return str(uuid.uuid4())


class TraceIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        trace_id = resolve_trace_id(request.headers.get(TRACE_HEADER))
        request.state.trace_id = trace_id
        response: Response = await call_next(request)
        response.headers[TRACE_HEADER] = trace_id
        return response
