"""
Errores del portal y su traducción a respuestas JSON.

Los servicios lanzan subclases de PortalError; las rutas no capturan nada,
los handlers registrados en la app convierten todo al sobre {"error": ...}.
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings

logger = logging.getLogger(__name__)


class PortalError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(PortalError):
    status_code = 400


class AuthenticationError(PortalError):
    status_code = 401


class AuthorizationError(PortalError):
    status_code = 403


class NotFoundError(PortalError):
    status_code = 404


class UnsupportedMethodError(PortalError):
    status_code = 405


class StorageError(PortalError):
    status_code = 500


def _mensaje_validacion(exc: RequestValidationError) -> str:
    errores = exc.errors()
    if not errores:
        return "Solicitud inválida"
    primero = errores[0]
    campo = ".".join(str(p) for p in primero.get("loc", ()) if p not in ("body", "query", "path"))
    if campo:
        return f"{campo}: {primero.get('msg')}"
    return primero.get("msg", "Solicitud inválida")


def register_exception_handlers(app: FastAPI) -> None:
    """Registra los handlers de error en la app."""

    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} en {request.method} {request.url.path}: {exc.message}")
        elif exc.status_code in (401, 403):
            logger.warning(f"Acceso denegado en {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _mensaje_validacion(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            mensaje = "Método no permitido"
        elif exc.status_code == 404 and exc.detail == "Not Found":
            mensaje = "Endpoint no encontrado"
        else:
            mensaje = exc.detail
        return JSONResponse(status_code=exc.status_code, content={"error": mensaje}, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Excepción no controlada en {request.method} {request.url.path}:\n"
            f"{traceback.format_exc()}"
        )
        content = {"error": "Error interno del servidor"}
        if settings.DEBUG:
            content["detalle"] = f"{type(exc).__name__}: {exc}"
        return JSONResponse(status_code=500, content=content)
