from pydantic import BaseModel


class ApiErrorResponse(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "code": "SALE_CLOSED",
                "message": "Sale belongs to a closed period",
                "details": {"id": "8d1f1e0c-0e55-4a0a-9f8a-3f5a2d1c9b77"},
                "trace_id": "b5a3c0de-7f2e-4c1a-9d55-0f5c2e4b9a10",
            }
        }
    }

    code: str
    message: str
    details: dict | list | str | None = None
    trace_id: str | None = None


class ApiValidationErrorItem(BaseModel):
    field: str | None = None
    message: str
    type: str


class ApiValidationErrorDetails(BaseModel):
    errors: list[ApiValidationErrorItem]


class ApiValidationErrorResponse(ApiErrorResponse):
    model_config = {
        "json_schema_extra": {
            "example": {
                "code": "VALIDATION_ERROR",
                "message": "Validation error",
                "details": {
                    "errors": [
                        {"field": "items.0.quantity", "message": "Input should be greater than 0", "type": "greater_than"}
                    ]
                },
                "trace_id": "b5a3c0de-7f2e-4c1a-9d55-0f5c2e4b9a10",
            }
        }
    }

    details: ApiValidationErrorDetails | dict | None = None
