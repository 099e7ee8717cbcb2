from pydantic import BaseModel, EmailStr, Field, ConfigDict, model_validator
from typing import Optional, Generic, TypeVar, List, Union, Dict, Any
from datetime import datetime, date
from enum import Enum
from pydantic import field_validator

DataT = TypeVar("DataT")

class ApiResponse(BaseModel, Generic[DataT]):
    """
    Modelo de respuesta estándar de la API, usado tanto para éxito como para error.

    Attributes:
        success: Indica si la solicitud fue exitosa (True) o falló (False)
        data: Datos de la respuesta, puede ser un objeto o una lista
        message: Mensaje descriptivo sobre el resultado de la operación
        meta: Información adicional como totales o filtros aplicados
        status_code: Código de estado HTTP de la respuesta
    """
    success: bool
    data: Optional[Union[DataT, List[DataT], Dict[str, Any]]] = None
    message: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    status_code: int = 200

    model_config = ConfigDict(from_attributes=True)

# ----- Enums -----

class EstadoEtapa(str, Enum):
    ABIERTA = "abierta"
    ACTIVA = "activa"
    CERRADA = "cerrada"

class EstadoInscripcion(str, Enum):
    ACTIVA = "activa"
    PENDIENTE = "pendiente"
    BAJA = "baja"

class EstadoPartido(str, Enum):
    PENDIENTE = "pendiente"
    JUGADO = "jugado"
    CANCELADO = "cancelado"
    WO = "WO"

class Equipo(str, Enum):
    A = "A"
    B = "B"

class TipoMovimiento(str, Enum):
    ASCENSO = "ascenso"
    DESCENSO = "descenso"

class TipoPlayoff(str, Enum):
    ASCENSO = "ascenso"
    DESCENSO = "descenso"

class MotivoMovimiento(str, Enum):
    AUTOMATICO = "automatico"
    PLAYOFF = "playoff"

# ----- Usuarios -----

class UsuarioPOST(BaseModel):
    nombre: str = Field(..., max_length=120)
    apellido: Optional[str] = Field(None, max_length=120)
    email: Optional[EmailStr] = None

class Usuario(UsuarioPOST):
    id: int

    model_config = ConfigDict(from_attributes=True)

# ----- Etapas -----

class EtapaBase(BaseModel):
    nombre: str = Field(..., max_length=200, description="Nombre de la etapa")
    fecha_inicio: date
    fecha_fin: date
    anio: int = Field(..., ge=2000, le=2100)
    estado: EstadoEtapa = EstadoEtapa.ACTIVA

    @model_validator(mode='after')
    def validar_fechas(self):
        if self.fecha_fin < self.fecha_inicio:
            raise ValueError('fecha_fin no puede ser anterior a fecha_inicio')
        return self

class EtapaPOST(EtapaBase):
    pass

class EtapaPUT(BaseModel):
    """Modelo para actualizar etapas"""
    nombre: Optional[str] = Field(None, max_length=200)
    fecha_inicio: Optional[date] = None
    fecha_fin: Optional[date] = None
    estado: Optional[EstadoEtapa] = None

class Etapa(EtapaBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# ----- Divisiones -----

class DivisionPOST(BaseModel):
    numero_division: int = Field(..., ge=1, description="1 es la división superior")
    nombre: str = Field(..., max_length=100)
    descripcion: Optional[str] = None

class Division(DivisionPOST):
    id: int
    activa: bool = True

    model_config = ConfigDict(from_attributes=True)

# ----- Inscripciones -----

class InscripcionPOST(BaseModel):
    etapa_id: int
    division_id: int
    usuario_id: int
    estado: EstadoInscripcion = EstadoInscripcion.ACTIVA

class InscripcionPUT(BaseModel):
    estado: Optional[EstadoInscripcion] = None
    division_id: Optional[int] = None

class Inscripcion(InscripcionPOST):
    id: int
    fecha_inscripcion: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# ----- Partidos -----

class PartidoPOST(BaseModel):
    etapa_id: int
    division_id: int
    fecha_partido: Optional[datetime] = None
    jugador_a1_id: int
    jugador_a2_id: int
    jugador_b1_id: int
    jugador_b2_id: int

    @model_validator(mode='after')
    def validar_jugadores_distintos(self):
        jugadores = [self.jugador_a1_id, self.jugador_a2_id, self.jugador_b1_id, self.jugador_b2_id]
        if len(set(jugadores)) != len(jugadores):
            raise ValueError('Un jugador no puede ocupar dos lugares del mismo partido')
        return self

class ResultadoPartido(BaseModel):
    """Resultado de un partido o de un playoff"""
    equipo_ganador: Equipo
    sets_equipo_a: int = Field(0, ge=0)
    sets_equipo_b: int = Field(0, ge=0)
    games_equipo_a: int = Field(0, ge=0)
    games_equipo_b: int = Field(0, ge=0)
    resultado_detallado: Optional[List[Dict[str, Any]]] = None
    wo_jugador_ids: Optional[List[int]] = None
    estado: EstadoPartido = EstadoPartido.JUGADO

    @field_validator('estado')
    @classmethod
    def validar_estado(cls, v):
        if v not in (EstadoPartido.JUGADO, EstadoPartido.WO):
            raise ValueError("Un resultado solo puede cargarse como 'jugado' o 'WO'")
        return v

class Partido(PartidoPOST):
    id: int
    estado: EstadoPartido
    equipo_ganador: Optional[Equipo] = None
    sets_equipo_a: Optional[int] = None
    sets_equipo_b: Optional[int] = None
    games_equipo_a: Optional[int] = None
    games_equipo_b: Optional[int] = None
    resultado_detallado: Optional[Any] = None
    wo_jugador_ids: Optional[List[int]] = None

    model_config = ConfigDict(from_attributes=True)

# ----- Rankings / Promedios -----

class Ranking(BaseModel):
    id: Optional[int] = None
    etapa_id: int
    division_id: int
    usuario_id: int
    partidos_ganados: int = 0
    partidos_jugados: int = 0
    promedio_individual: float = 0
    promedio_general: float = 0
    bonus_por_jugar: float = 0
    promedio_final: float = 0
    minimo_requerido: int = 0
    cumple_minimo: bool = False
    diferencia_sets: int = 0
    diferencia_games: int = 0
    victorias_mejores_parejas: int = 0
    posicion_ranking: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

class RecalcularRequest(BaseModel):
    etapa_id: int
    division_id: int

# ----- Configuración -----

class ConfiguracionPUT(BaseModel):
    etapa_id: int
    division_id: Optional[int] = None
    cupos_ascenso_porcentaje: Optional[float] = Field(None, ge=0, le=100)
    cupos_ascenso_minimo: Optional[int] = Field(None, ge=0)
    cupos_ascenso_maximo: Optional[int] = Field(None, ge=0)
    jugadores_playoff_por_division: Optional[int] = Field(None, ge=0)

    @model_validator(mode='after')
    def validar_limites(self):
        if (self.cupos_ascenso_minimo is not None and self.cupos_ascenso_maximo is not None
                and self.cupos_ascenso_minimo > self.cupos_ascenso_maximo):
            raise ValueError('cupos_ascenso_minimo no puede superar a cupos_ascenso_maximo')
        return self

class ConfiguracionEfectiva(BaseModel):
    """Configuración resuelta por capas: división, etapa, valores por defecto"""
    etapa_id: int
    division_id: Optional[int] = None
    cupos_ascenso_porcentaje: float
    cupos_ascenso_minimo: int
    cupos_ascenso_maximo: int
    jugadores_playoff_por_division: int
    origen: Dict[str, str] = Field(default_factory=dict)

# ----- Ascensos / Descensos -----

class ProcesarEtapaRequest(BaseModel):
    etapa_id: int

class Movimiento(BaseModel):
    id: int
    etapa_id: int
    usuario_id: int
    division_origen_id: int
    division_destino_id: int
    tipo_movimiento: TipoMovimiento
    motivo: MotivoMovimiento
    promedio_final: Optional[float] = None
    promedio_pendiente: bool = False
    posicion_origen: Optional[int] = None
    fecha_movimiento: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# ----- Playoffs -----

class CrearPlayoffRequest(BaseModel):
    etapa_id: int
    division_id: int
    tipo_playoff: TipoPlayoff
    fecha_playoff: Optional[datetime] = None

class Playoff(BaseModel):
    id: int
    etapa_id: int
    division_origen_id: int
    division_destino_id: Optional[int] = None
    tipo_playoff: TipoPlayoff
    jugador_1_superior_id: int
    jugador_2_superior_id: Optional[int] = None
    jugador_1_inferior_id: int
    jugador_2_inferior_id: Optional[int] = None
    partido_id: Optional[int] = None
    fecha_playoff: Optional[datetime] = None
    estado: str
    resultado: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)
