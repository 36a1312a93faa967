"""
Gestionnaires d'exceptions.
- StorefrontError: JSON {"detail": message utilisateur}, code porté par l'erreur
  (les erreurs programme sont loggées avec leur contexte, message générique côté client).
- HTTPException: réponse JSON FastAPI standard.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from storefront.errors import StorefrontError

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        if not exc.user_recoverable:
            logger.error("%s sur %s context=%s", type(exc).__name__, request.url.path, exc.context)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.user_message})

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
