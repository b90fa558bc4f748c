from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="keyauth session API",
            version="0.1.0",
            summary="Browser-facing session endpoints backed by signed requests to the auth API",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": "session_token",
                "description": "httpOnly session cookie set on login or registration",
            },
        }

        openapi_schema["security"] = [{"SessionCookie": []}]

        # Remove security from public endpoints
        public_endpoints = {
            ("POST", "/api/session/login"),
            ("POST", "/api/session/register"),
            ("GET", "/health"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Human-readable error message")
    type: str | None = Field(None, description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"success": False, "error": "Not authenticated", "type": "authentication_error"},
                {"success": False, "error": "Authentication service is not configured.", "type": "configuration_error"},
            ]
        }
    }
