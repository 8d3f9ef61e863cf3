import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

from gateway.middleware.logging import REQUEST_ID_HEADER

logger = structlog.get_logger()


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    logger.exception(
        "unhandled_exception", path=request.url.path, method=request.method, request_id=request_id
    )
    content = {"success": False, "error": "Internal server error", "detail": str(exc)}
    headers = {}
    if request_id:
        # the logging middleware never sees this response, so echo the id here
        content["requestId"] = request_id
        headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(status_code=500, content=content, headers=headers)
