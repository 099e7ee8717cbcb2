from fastapi import APIRouter, status, Depends, Path, Query
from sqlalchemy.orm import Session
from circuitooka.database.db import get_db
from circuitooka.database import models
from circuitooka.utils.api_response import success_response, error_response
from circuitooka.repositorios.division import RepositorioDivision
from circuitooka.utils.route_error_handler import RouteErrorHandler

router = APIRouter(route_class=RouteErrorHandler)

@router.get("/divisiones/listar", tags=['División'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def listar_divisiones(
    activas_solo: bool = Query(default=True, description="Listar solo divisiones activas"),
    db: Session = Depends(get_db)
):
    """Divisiones ordenadas de la superior a la inferior"""

    divisiones = await RepositorioDivision(db).get_all(activas_solo)
    return success_response(divisiones, f'{len(divisiones)} divisiones encontradas')

@router.get("/divisiones/consultar/{division_id}", tags=['División'], status_code=status.HTTP_200_OK, response_model=models.ApiResponse)
async def consultar_division(
    division_id: int = Path(..., description="ID de la división"),
    db: Session = Depends(get_db)
):
    division = await RepositorioDivision(db).get_by_id(division_id)
    if not division:
        return error_response(message='División no encontrada!', status_code=404)

    return success_response(division)

@router.post("/divisiones/crear", tags=['División'], status_code=status.HTTP_201_CREATED, response_model=models.ApiResponse)
async def crear_division(
    division_data: models.DivisionPOST,
    db: Session = Depends(get_db)
):
    division = await RepositorioDivision(db).post(division_data)
    return success_response(division, 'División creada con éxito', status_code=201)
