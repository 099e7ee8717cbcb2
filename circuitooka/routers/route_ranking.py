from fastapi import APIRouter, status, Depends, Query
from typing import Optional
from sqlalchemy.orm import Session
from circuitooka.database.db import get_db
from circuitooka.database import models
from circuitooka.utils.api_response import success_response, error_response
from circuitooka.repositorios.promedios import RepositorioPromedios
from circuitooka.repositorios.ranking import RepositorioRanking
from circuitooka.utils.route_error_handler import RouteErrorHandler

router = APIRouter(route_class=RouteErrorHandler)

# -------------------------- Promedios --------------------------

@router.get("/promedios", tags=['Promedios'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def consultar_promedios(
    etapa_id: int = Query(...),
    division_id: int = Query(...),
    usuario_id: Optional[int] = Query(default=None),
    tipo: Optional[str] = Query(default=None, description="'minimo' devuelve el mínimo requerido de la división"),
    db: Session = Depends(get_db)
):
    """Mínimo requerido de la división o promedios de un jugador"""

    repo = RepositorioPromedios(db)
    if tipo == 'minimo':
        minimo = await repo.obtener_minimo_requerido(etapa_id, division_id)
        return success_response({'minimo_requerido': minimo})

    if usuario_id is None:
        return error_response(message='usuario_id es requerido para obtener el promedio de un jugador')

    promedio = await repo.obtener_promedio_jugador(etapa_id, division_id, usuario_id)
    return success_response(promedio)

@router.post("/promedios/recalcular", tags=['Promedios'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def recalcular_promedios(
    datos: models.RecalcularRequest,
    db: Session = Depends(get_db)
):
    resultados = await RepositorioPromedios(db).recalcular_division(datos.etapa_id, datos.division_id)
    return success_response(resultados, f'Promedios recalculados para {len(resultados)} jugadores')

# -------------------------- Rankings --------------------------

@router.get("/rankings", tags=['Ranking'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def consultar_ranking(
    etapa_id: int = Query(...),
    division_id: int = Query(...),
    usuario_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db)
):
    """Ranking completo de la división o la fila de un jugador"""

    repo = RepositorioRanking(db)
    if usuario_id is not None:
        ranking = await repo.get(etapa_id, division_id, usuario_id)
        if not ranking:
            return error_response(message='El jugador no tiene ranking en esta división', status_code=404)
        return success_response(ranking)

    rankings = await repo.obtener_ranking_completo(etapa_id, division_id)
    return success_response(rankings, meta={'total': len(rankings)})

@router.post("/rankings/recalcular", tags=['Ranking'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def recalcular_ranking(
    datos: models.RecalcularRequest,
    db: Session = Depends(get_db)
):
    rankings = await RepositorioRanking(db).recalcular_division(datos.etapa_id, datos.division_id)
    return success_response(rankings, 'Ranking recalculado')
