"""
Point d'entrée principal de l'API d'inscription VBS.
Démarrage : uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

import app.models  # noqa: F401 : enregistre tous les modèles dans Base.metadata avant les routers
from app.config import settings
from app.routers import admin, auth, registrations, teacher_assignments, teacher_dashboard
from app.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie de l'application : démarre et arrête le scheduler APScheduler."""
    start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="VBS Registration API",
    description="Inscriptions, répartition en classes et tableaux de bord de la Vacation Bible School",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS : autorise tous les ports localhost en développement (à restreindre en production).
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


app.include_router(registrations.router)
app.include_router(admin.router)
app.include_router(teacher_assignments.router)
app.include_router(auth.router)
app.include_router(teacher_dashboard.router)


@app.exception_handler(SQLAlchemyError)
async def backend_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Erreur du backend (connexion, procédure, contrainte) : message court, pas de détail SQL."""
    logger.error("Erreur backend sur %s : %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=503,
        content={"detail": "Le service est momentanément indisponible. Veuillez réessayer."},
    )


@app.exception_handler(httpx.HTTPError)
async def auth_service_error_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    logger.error("Service d'authentification injoignable : %s", exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Le service d'authentification est injoignable. Veuillez réessayer."},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "VBS Registration API", "version": "0.1.0"}
