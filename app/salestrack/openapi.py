from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from app.salestrack.schemas.errors import ApiErrorResponse, ApiValidationErrorResponse

ERROR_REF = "#/components/schemas/ApiErrorResponse"
VALIDATION_ERROR_REF = "#/components/schemas/ApiValidationErrorResponse"

TAG_METADATA = [
    {"name": "auth", "description": "Login, token issue, password changes and organization switching."},
    {"name": "provisioning", "description": "Owner and organization bootstrap. Requires the provisioning key."},
    {"name": "organizations", "description": "Organizations the caller belongs to and the current organization profile."},
    {"name": "branches", "description": "Branch administration within the current organization."},
    {"name": "catalog", "description": "Products and expense categories."},
    {"name": "sales", "description": "Sales, receipts, voids and period closing. Branch-bound roles see their branch only."},
    {"name": "expenses", "description": "Expense recording and correction."},
    {"name": "users", "description": "Staff accounts, role assignment and temporary passwords."},
    {"name": "activities", "description": "Audit trail of changes recorded for the organization."},
    {"name": "dashboard", "description": "Headline totals and chart buckets for a period."},
    {"name": "reports", "description": "Date-range summaries and CSV, XLSX or PDF exports."},
    {"name": "releases", "description": "Desktop client release publishing and update checks."},
    {"name": "ops", "description": "Health, readiness and metrics."},
]

_ERROR_DESCRIPTIONS = {
    "401": "Missing or invalid credentials",
    "403": "Permission or scope denied",
    "404": "Resource not found",
    "409": "Resource conflict",
}

_PUBLIC_PATHS = {
    "/health",
    "/ready",
    "/salestrack/auth/login",
    "/salestrack/auth/token",
    "/salestrack/releases/check-updates",
}


def _operation_id(method: str, path: str) -> str:
    normalized = path.strip("/").replace("/", "_").replace("-", "_").replace("{", "").replace("}", "")
    return f"{method}_{normalized}"


def _error_content(ref: str, code: str, message: str) -> dict:
    return {
        "application/json": {
            "schema": {"$ref": ref},
            "example": {"code": code, "message": message, "details": None, "trace_id": "trace-123"},
        }
    }


def _apply_error_responses(path: str, method: str, operation: dict) -> None:
    responses = operation.setdefault("responses", {})
    if "422" in responses:
        responses["422"] = {
            "description": "Validation error",
            "content": _error_content(VALIDATION_ERROR_REF, "VALIDATION_ERROR", "Validation error"),
        }
    if path not in _PUBLIC_PATHS:
        responses.setdefault("401", {"description": _ERROR_DESCRIPTIONS["401"]})
        responses.setdefault("403", {"description": _ERROR_DESCRIPTIONS["403"]})
    if "{" in path:
        responses.setdefault("404", {"description": _ERROR_DESCRIPTIONS["404"]})
    if method in {"post", "patch"}:
        responses.setdefault("409", {"description": _ERROR_DESCRIPTIONS["409"]})
    for status_code, description in _ERROR_DESCRIPTIONS.items():
        if status_code in responses:
            responses[status_code]["content"] = _error_content(ERROR_REF, "ERROR", description)


def harden_openapi_schema(app: FastAPI):
    if app.openapi_schema:
        return app.openapi_schema

    schema = get_openapi(title=app.title, version=app.version, routes=app.routes)
    schema["tags"] = TAG_METADATA
    components = schema.setdefault("components", {}).setdefault("schemas", {})
    components["ApiErrorResponse"] = ApiErrorResponse.model_json_schema(ref_template="#/components/schemas/{model}")
    validation_schema = ApiValidationErrorResponse.model_json_schema(ref_template="#/components/schemas/{model}")
    components.update(validation_schema.pop("$defs", {}))
    components["ApiValidationErrorResponse"] = validation_schema

    for path, path_item in schema.get("paths", {}).items():
        for method, operation in path_item.items():
            if method not in {"get", "post", "put", "patch", "delete"}:
                continue
            operation["operationId"] = _operation_id(method, path)
            _apply_error_responses(path, method, operation)

    app.openapi_schema = schema
    return app.openapi_schema
