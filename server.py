from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from contextlib import asynccontextmanager
import uvicorn
import logging
from datetime import datetime

# Base de datos
from circuitooka.database.db import SessionLocal, engine, Base
from circuitooka.database import schemas  # registra las tablas en Base

# Rutas del circuito
from circuitooka.routers import (
    route_etapa,
    route_division,
    route_inscripcion,
    route_partido,
    route_ranking,
    route_ascenso_descenso,
    route_playoff
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# ===================================================================
# TAGS DE DOCUMENTACIÓN
# ===================================================================

tags_metadata = [
    {
        "name": "Etapa",
        "description": "Etapas del circuito (apertura, actualización y cierre)."
    },
    {
        "name": "Configuración",
        "description": "Cupos de ascenso/descenso y tamaño de playoff por etapa y división."
    },
    {
        "name": "División",
        "description": "Divisiones ordenadas; la número 1 es la superior."
    },
    {
        "name": "Inscripción",
        "description": "Inscripción de jugadores a una división de la etapa."
    },
    {
        "name": "Partido",
        "description": "Partidos de dobles y carga de resultados."
    },
    {
        "name": "Promedios",
        "description": "Promedio individual, general, bonus por jugar y promedio final."
    },
    {
        "name": "Ranking",
        "description": "Ranking por división con criterios de desempate."
    },
    {
        "name": "Ascensos y Descensos",
        "description": "Bandas de ascenso, descenso y playoff; procesamiento de cierre de etapa."
    },
    {
        "name": "Playoff",
        "description": "Cruces mejor contra peor, resultados y movimientos por playoff."
    },
]

# ===================================================================
# CICLO DE VIDA
# ===================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Crea las tablas al iniciar"""
    logger.info("Iniciando Circuitooka...")

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Estructura de la base de datos verificada")
    except Exception as e:
        logger.error(f"Error al configurar la base de datos: {e}")
        raise

    yield

    logger.info("Deteniendo Circuitooka...")

app = FastAPI(
    title="Circuitooka",
    description="Ranking, ascensos, descensos y playoffs de un circuito de pádel por divisiones.",
    version=VERSION,
    openapi_tags=tags_metadata,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ===================================================================
# RUTAS DEL SISTEMA
# ===================================================================

@app.get("/", tags=["Sistema"], summary="Información del sistema")
async def root():
    return {
        "sistema": "Circuitooka",
        "version": VERSION,
        "documentacion": "/docs",
        "timestamp": datetime.now().isoformat()
    }

@app.get("/health", tags=["Sistema"], summary="Verificación de salud")
async def health_check():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_status = "conectado"
    except Exception as e:
        logger.error(f"Health check: {e}")
        db_status = f"error: {e}"
    finally:
        db.close()

    return {
        "status": "ok" if db_status == "conectado" else "error",
        "timestamp": datetime.now().isoformat(),
        "base_datos": db_status,
        "version": VERSION
    }

# ===================================================================
# ROUTERS
# ===================================================================

for modulo in (
    route_etapa,
    route_division,
    route_inscripcion,
    route_partido,
    route_ranking,
    route_ascenso_descenso,
    route_playoff,
):
    app.include_router(modulo.router, prefix="/api/v1")


if __name__ == "__main__":
    uvicorn.run(
        "server:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
        access_log=True
    )
