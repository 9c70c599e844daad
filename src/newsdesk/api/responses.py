"""统一响应格式: {success, message, status, data?}."""

from typing import Any

from fastapi.responses import JSONResponse


def api_response(data: Any = None, message: str = "Success", status: int = 200) -> JSONResponse:
    """构造统一格式的响应."""
    content: dict[str, Any] = {
        "success": 200 <= status < 300,
        "message": message,
        "status": status,
    }
    if data is not None:
        content["data"] = data
    return JSONResponse(content=content, status_code=status)


def success_response(data: Any = None, message: str = "Success", status: int = 200) -> JSONResponse:
    return api_response(data, message, status)


def error_response(message: str = "Error", status: int = 400, data: Any = None) -> JSONResponse:
    return api_response(data, message, status)
