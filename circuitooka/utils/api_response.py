from typing import Any, Dict, List, Optional, TypeVar, Union
from pydantic import BaseModel
from circuitooka.database.models import ApiResponse
from sqlalchemy.engine.row import Row

T = TypeVar("T")

def sqlalchemy_to_dict(obj):
    """
    Convierte un objeto SQLAlchemy en un diccionario serializable.
    Soporta tanto objetos ORM como filas de consultas directas.
    """
    if isinstance(obj, Row):
        return dict(obj._mapping)

    if hasattr(obj, '__table__'):
        return {c.name: getattr(obj, c.name) for c in obj.__table__.columns}

    return obj

def is_sqlalchemy_model(obj):
    return hasattr(obj, '__tablename__') and hasattr(obj, '__table__')

def serialize_data(data):
    """
    Serializa datos convirtiendo modelos SQLAlchemy, filas y modelos pydantic en diccionarios.
    """
    if data is None:
        return None

    if isinstance(data, (list, tuple)):
        return [serialize_data(item) for item in data]

    if is_sqlalchemy_model(data) or isinstance(data, Row):
        return sqlalchemy_to_dict(data)

    if isinstance(data, BaseModel):
        return data.model_dump()

    if isinstance(data, dict):
        return {k: serialize_data(v) for k, v in data.items()}

    return data

def create_response(
    success: bool,
    data: Optional[Union[T, List[T], Dict[str, Any]]] = None,
    message: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    status_code: int = 200
) -> ApiResponse:
    """
    Crea una respuesta estándar para la API, serializando automáticamente los objetos SQLAlchemy.
    """
    return ApiResponse(
        success=success,
        data=serialize_data(data),
        message=message,
        meta=meta,
        status_code=status_code
    )


def success_response(
    data: Optional[Union[T, List[T], Dict[str, Any]]] = None,
    message: str = "Operación realizada con éxito",
    meta: Optional[Dict[str, Any]] = None,
    status_code: int = 200
) -> ApiResponse:
    """
    Crea una respuesta de éxito estándar.

    Args:
        data: Datos a devolver
        message: Mensaje de éxito
        meta: Metadatos adicionales (ej: totales)
        status_code: Código HTTP (por defecto 200)

    Returns:
        Un ApiResponse con success=True
    """
    return create_response(True, data, message, meta, status_code)


def error_response(
    message: str = "Ocurrió un error al procesar la solicitud",
    data: Optional[Union[T, List[T], Dict[str, Any]]] = None,
    meta: Optional[Dict[str, Any]] = None,
    status_code: int = 400
) -> ApiResponse:
    """
    Crea una respuesta de error estándar.

    Returns:
        Un ApiResponse con success=False
    """
    return create_response(False, data, message, meta, status_code)
