from fastapi import APIRouter, status, Depends, Path, Query, Body
from typing import Optional
from sqlalchemy.orm import Session
from circuitooka.database.db import get_db
from circuitooka.database import models
from circuitooka.utils.api_response import success_response, error_response
from circuitooka.repositorios.playoff import RepositorioPlayoff
from circuitooka.utils.route_error_handler import RouteErrorHandler

router = APIRouter(route_class=RouteErrorHandler)

@router.get("/playoffs", tags=['Playoff'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def listar_playoffs(
    etapa_id: Optional[int] = Query(default=None),
    division_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db)
):
    playoffs = await RepositorioPlayoff(db).listar(etapa_id, division_id)
    return success_response(playoffs, f'{len(playoffs)} playoffs encontrados')

@router.get("/playoffs/zonas", tags=['Playoff'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def consultar_zonas(
    etapa_id: int = Query(...),
    division_id: int = Query(...),
    db: Session = Depends(get_db)
):
    """Jugadores en zona de playoff de ascenso y de descenso"""

    zonas = await RepositorioPlayoff(db).identificar_zonas(etapa_id, division_id)
    return success_response(zonas)

@router.get("/playoffs/consultar/{playoff_id}", tags=['Playoff'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def consultar_playoff(
    playoff_id: int = Path(...),
    db: Session = Depends(get_db)
):
    playoff = await RepositorioPlayoff(db).get_by_id(playoff_id)
    if not playoff:
        return error_response(message='Playoff no encontrado!', status_code=404)

    return success_response(playoff)

@router.post("/playoffs/crear", tags=['Playoff'], status_code=status.HTTP_201_CREATED, response_model=models.ApiResponse)
async def crear_playoffs(
    datos: models.CrearPlayoffRequest,
    db: Session = Depends(get_db)
):
    """Arma los cruces mejor contra peor y crea sus partidos"""

    playoffs = await RepositorioPlayoff(db).crear_playoffs(
        datos.etapa_id, datos.division_id, datos.tipo_playoff.value, datos.fecha_playoff
    )
    return success_response(playoffs, f'{len(playoffs)} playoffs creados', status_code=201)

@router.post("/playoffs/{playoff_id}/resultado", tags=['Playoff'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def cargar_resultado_playoff(
    playoff_id: int = Path(...),
    resultado: models.ResultadoPartido = Body(...),
    db: Session = Depends(get_db)
):
    playoff = await RepositorioPlayoff(db).procesar_resultado(playoff_id, resultado)
    return success_response(playoff, 'Resultado de playoff cargado')

@router.post("/playoffs/{playoff_id}/aplicar", tags=['Playoff'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def aplicar_playoff(
    playoff_id: int = Path(...),
    db: Session = Depends(get_db)
):
    """Registra los movimientos del playoff con promedio pendiente"""

    cambios = await RepositorioPlayoff(db).aplicar_ascensos_descensos(playoff_id)
    data = {k: [models.Movimiento.model_validate(m) for m in v] for k, v in cambios.items()}
    return success_response(data, 'Movimientos de playoff registrados')
