"""Request-scoped middleware for API requests."""

import logging
from uuid import UUID, uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from api.base import ErrorCodes, error_response
from utils.owner_context import clear_current_owner_id, set_current_owner_id

logger = logging.getLogger(__name__)

OWNER_HEADER = "X-Owner-Id"
PUBLIC_PATHS = ("/health", "/api/webhooks/")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns a unique request ID to every request."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class OwnerContextMiddleware(BaseHTTPMiddleware):
    """
    Scope each request to an owner.

    The owner comes from the X-Owner-Id header, else the configured
    default owner. A malformed header is rejected with 401. Public paths
    (health, webhooks) run without owner context.
    """

    def __init__(self, app, default_owner_id: UUID):
        super().__init__(app)
        self.default_owner_id = default_owner_id

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(PUBLIC_PATHS):
            return await call_next(request)

        raw = request.headers.get(OWNER_HEADER)
        if raw:
            try:
                owner_id = UUID(raw)
            except ValueError:
                logger.warning(f"Rejected malformed {OWNER_HEADER} header")
                return JSONResponse(
                    status_code=401,
                    content=error_response(
                        ErrorCodes.NOT_AUTHENTICATED,
                        f"Invalid {OWNER_HEADER} header",
                        request_id=getattr(request.state, "request_id", None),
                    ).model_dump(mode="json"),
                )
        else:
            owner_id = self.default_owner_id

        request.state.owner_id = owner_id
        set_current_owner_id(owner_id)
        try:
            return await call_next(request)
        finally:
            clear_current_owner_id()
