from fastapi import APIRouter, status, Depends, Path, Query, Body
from typing import Optional
from sqlalchemy.orm import Session
from circuitooka.database.db import get_db
from circuitooka.database import models
from circuitooka.utils.api_response import success_response, error_response
from circuitooka.repositorios.etapa import RepositorioEtapa
from circuitooka.repositorios.configuracion import RepositorioConfiguracion
from circuitooka.utils.route_error_handler import RouteErrorHandler

router = APIRouter(route_class=RouteErrorHandler)

# -------------------------- Etapas --------------------------

@router.get("/etapas/listar", tags=['Etapa'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def listar_etapas(
    anio: Optional[int] = Query(default=None, description="Filtrar por año"),
    estado: Optional[models.EstadoEtapa] = Query(default=None, description="Filtrar por estado"),
    db: Session = Depends(get_db)
):
    """Lista las etapas del circuito, más recientes primero"""

    etapas = await RepositorioEtapa(db).get_all(anio, estado.value if estado else None)
    return success_response(etapas, f'{len(etapas)} etapas encontradas', meta={'total': len(etapas)})

@router.get("/etapas/consultar/{etapa_id}", tags=['Etapa'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def consultar_etapa(
    etapa_id: int = Path(..., description="ID de la etapa"),
    db: Session = Depends(get_db)
):
    etapa = await RepositorioEtapa(db).get_by_id(etapa_id)
    if not etapa:
        return error_response(message='Etapa no encontrada!', status_code=404)

    return success_response(etapa)

@router.post("/etapas/crear", tags=['Etapa'], status_code=status.HTTP_201_CREATED, response_model=models.ApiResponse)
async def crear_etapa(
    etapa_data: models.EtapaPOST,
    db: Session = Depends(get_db)
):
    etapa = await RepositorioEtapa(db).post(etapa_data)
    return success_response(etapa, 'Etapa creada con éxito', status_code=201)

@router.put("/etapas/actualizar/{etapa_id}", tags=['Etapa'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def actualizar_etapa(
    etapa_id: int = Path(..., description="ID de la etapa"),
    etapa_data: models.EtapaPUT = Body(...),
    db: Session = Depends(get_db)
):
    etapa = await RepositorioEtapa(db).put(etapa_id, etapa_data)
    if not etapa:
        return error_response(message='Etapa no encontrada!', status_code=404)

    return success_response(etapa, 'Etapa actualizada con éxito')

@router.put("/etapas/cerrar/{etapa_id}", tags=['Etapa'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def cerrar_etapa(
    etapa_id: int = Path(..., description="ID de la etapa"),
    db: Session = Depends(get_db)
):
    etapa = await RepositorioEtapa(db).cerrar(etapa_id)
    if not etapa:
        return error_response(message='Etapa no encontrada!', status_code=404)

    return success_response(etapa, 'Etapa cerrada')

# -------------------------- Configuración --------------------------

@router.get("/configuracion/{etapa_id}", tags=['Configuración'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def consultar_configuracion(
    etapa_id: int = Path(..., description="ID de la etapa"),
    division_id: Optional[int] = Query(default=None, description="División; sin valor devuelve la configuración general"),
    db: Session = Depends(get_db)
):
    """Configuración efectiva (división, etapa o valores por defecto, campo por campo)"""

    configuracion = await RepositorioConfiguracion(db).resolver(etapa_id, division_id)
    return success_response(configuracion)

@router.put("/configuracion", tags=['Configuración'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def guardar_configuracion(
    config_data: models.ConfiguracionPUT,
    db: Session = Depends(get_db)
):
    fila = await RepositorioConfiguracion(db).upsert(config_data)
    return success_response(fila, 'Configuración guardada')
