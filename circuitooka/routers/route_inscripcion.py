from fastapi import APIRouter, status, Depends, Path, Query, Body
from typing import Optional
from sqlalchemy.orm import Session
from circuitooka.database.db import get_db
from circuitooka.database import models
from circuitooka.utils.api_response import success_response, error_response
from circuitooka.repositorios.inscripcion import RepositorioInscripcion
from circuitooka.utils.route_error_handler import RouteErrorHandler

router = APIRouter(route_class=RouteErrorHandler)

@router.get("/inscripciones/listar", tags=['Inscripción'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def listar_inscripciones(
    etapa_id: Optional[int] = Query(default=None),
    division_id: Optional[int] = Query(default=None),
    estado: Optional[models.EstadoInscripcion] = Query(default=None),
    db: Session = Depends(get_db)
):
    inscripciones = await RepositorioInscripcion(db).get_all(etapa_id, division_id, estado.value if estado else None)
    return success_response(inscripciones, f'{len(inscripciones)} inscripciones encontradas')

@router.post("/inscripciones/crear", tags=['Inscripción'], status_code=status.HTTP_201_CREATED, response_model=models.ApiResponse)
async def crear_inscripcion(
    inscripcion_data: models.InscripcionPOST,
    db: Session = Depends(get_db)
):
    """Inscribe un jugador en una división de la etapa"""

    inscripcion = await RepositorioInscripcion(db).post(inscripcion_data)
    return success_response(inscripcion, 'Inscripción registrada', status_code=201)

@router.put("/inscripciones/actualizar/{inscripcion_id}", tags=['Inscripción'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def actualizar_inscripcion(
    inscripcion_id: int = Path(..., description="ID de la inscripción"),
    inscripcion_data: models.InscripcionPUT = Body(...),
    db: Session = Depends(get_db)
):
    inscripcion = await RepositorioInscripcion(db).put(inscripcion_id, inscripcion_data)
    if not inscripcion:
        return error_response(message='Inscripción no encontrada!', status_code=404)

    return success_response(inscripcion, 'Inscripción actualizada')
