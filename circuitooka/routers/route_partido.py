from fastapi import APIRouter, status, Depends, Path, Query, Body
from typing import Optional
from sqlalchemy.orm import Session
from circuitooka.database.db import get_db
from circuitooka.database import models
from circuitooka.utils.api_response import success_response, error_response
from circuitooka.repositorios.partido import RepositorioPartido
from circuitooka.utils.route_error_handler import RouteErrorHandler

router = APIRouter(route_class=RouteErrorHandler)

@router.get("/partidos/listar", tags=['Partido'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def listar_partidos(
    etapa_id: Optional[int] = Query(default=None),
    division_id: Optional[int] = Query(default=None),
    estado: Optional[models.EstadoPartido] = Query(default=None),
    db: Session = Depends(get_db)
):
    partidos = await RepositorioPartido(db).get_all(etapa_id, division_id, estado.value if estado else None)
    return success_response(partidos, f'{len(partidos)} partidos encontrados')

@router.get("/partidos/consultar/{partido_id}", tags=['Partido'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def consultar_partido(
    partido_id: int = Path(..., description="ID del partido"),
    db: Session = Depends(get_db)
):
    partido = await RepositorioPartido(db).get_by_id(partido_id)
    if not partido:
        return error_response(message='Partido no encontrado!', status_code=404)

    return success_response(partido)

@router.post("/partidos/crear", tags=['Partido'], status_code=status.HTTP_201_CREATED, response_model=models.ApiResponse)
async def crear_partido(
    partido_data: models.PartidoPOST,
    db: Session = Depends(get_db)
):
    partido = await RepositorioPartido(db).post(partido_data)
    return success_response(partido, 'Partido creado', status_code=201)

@router.put("/partidos/{partido_id}/resultado", tags=['Partido'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def cargar_resultado(
    partido_id: int = Path(..., description="ID del partido"),
    resultado: models.ResultadoPartido = Body(...),
    db: Session = Depends(get_db)
):
    """Carga el resultado y recalcula el ranking de los cuatro jugadores"""

    partido = await RepositorioPartido(db).registrar_resultado(partido_id, resultado)
    if not partido:
        return error_response(message='Partido no encontrado!', status_code=404)

    return success_response(partido, 'Resultado cargado')
