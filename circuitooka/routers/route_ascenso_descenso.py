from fastapi import APIRouter, status, Depends, Query
from typing import Optional
from sqlalchemy.orm import Session
from circuitooka.database.db import get_db
from circuitooka.database import models
from circuitooka.utils.api_response import success_response
from circuitooka.repositorios.ascenso_descenso import RepositorioAscensoDescenso
from circuitooka.utils.route_error_handler import RouteErrorHandler

router = APIRouter(route_class=RouteErrorHandler)

@router.get("/ascensos-descensos", tags=['Ascensos y Descensos'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def consultar_ascensos_descensos(
    etapa_id: Optional[int] = Query(default=None),
    division_id: Optional[int] = Query(default=None),
    tipo: Optional[models.TipoMovimiento] = Query(default=None),
    db: Session = Depends(get_db)
):
    """
    Con etapa_id y division_id devuelve cupos y bandas de la división;
    sin división devuelve la auditoría de movimientos registrados.
    """
    repo = RepositorioAscensoDescenso(db)
    tipo_valor = tipo.value if tipo else None

    if etapa_id and division_id:
        resumen = await repo.obtener_resumen_division(etapa_id, division_id, tipo_valor)
        return success_response(resumen)

    movimientos = await repo.listar_movimientos(etapa_id, tipo_valor)
    data = [models.Movimiento.model_validate(m) for m in movimientos]
    return success_response(data, f'{len(data)} movimientos encontrados')

@router.post("/ascensos-descensos/procesar", tags=['Ascensos y Descensos'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def procesar_ascensos_descensos(
    datos: models.ProcesarEtapaRequest,
    db: Session = Depends(get_db)
):
    """Procesa ascensos y descensos de toda la etapa"""

    cambios = await RepositorioAscensoDescenso(db).procesar_ascensos_descensos(datos.etapa_id)
    return success_response(
        cambios,
        'Ascensos y descensos procesados',
        meta={'ascensos': len(cambios['ascensos']), 'descensos': len(cambios['descensos'])}
    )
