import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("access")

class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log line per request plus an X-Process-Time header.

    Only the member id string is read from the request state; the ORM
    instance may be expired by the time the response is logged.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client = request.client.host if request.client else 'unknown'

        response = await call_next(request)

        process_time = time.time() - start_time
        member_id = getattr(request.state, "member_id", None) or "-"
        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Client: {client} - "
            f"Member: {member_id} - "
            f"Time: {process_time:.4f}s"
        )

        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response
