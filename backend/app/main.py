"""
Point d'entrée principal de l'API Talk To Learn English.
Démarrage : uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import app.models  # noqa: F401  enregistre tous les modèles dans Base.metadata avant les routers
from app.config import settings
from app.routers import (
    auth,
    catalog,
    dashboard,
    families,
    family_portal,
    scoring_config,
    teacher_weekly_tasks,
    teachers,
    weekly_tasks,
)
from app.scheduler import start_scheduler, stop_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie de l'application : démarre et arrête le scheduler APScheduler."""
    start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="Talk To Learn English API",
    description="Devoirs de prononciation hebdomadaires : admin, enseignants et familles (liens d'accès)",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# Le frontend est servi depuis APP_BASE_URL ; le cookie de session impose allow_credentials.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.APP_BASE_URL],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Accept"],
)


app.include_router(auth.router)
app.include_router(teachers.router)
app.include_router(catalog.router)
app.include_router(scoring_config.router)
app.include_router(weekly_tasks.router)
app.include_router(families.router)
app.include_router(teacher_weekly_tasks.router)
app.include_router(dashboard.router)
app.include_router(family_portal.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour que la réponse 500
    passe par CORSMiddleware et reste lisible côté navigateur.
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "Talk To Learn English API", "version": "0.1.0"}
