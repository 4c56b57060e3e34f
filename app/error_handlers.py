from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from domain.errors import FraudGuardError, ValidationError

logger = logging.getLogger(__name__)

def attach_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(FraudGuardError)
    async def _domain(request: Request, exc: FraudGuardError):
        logger.warning("%s on %s %s: %s", exc.__class__.__name__, request.method, request.url.path, exc.message)
        content = {"detail": exc.message, "error": exc.__class__.__name__}
        if isinstance(exc, ValidationError) and exc.fields:
            content["fields"] = exc.fields
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
