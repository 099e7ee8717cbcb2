from sqlalchemy import Column, ForeignKey, Integer, String, Boolean, DateTime, Text, Float, Date, JSON, UniqueConstraint, Index
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func
from sqlalchemy.ext.hybrid import hybrid_property
from enum import Enum as PyEnum
from circuitooka.database.db import Base

class EstadoEtapa(PyEnum):
    ABIERTA = "abierta"
    ACTIVA = "activa"
    CERRADA = "cerrada"

class EstadoInscripcion(PyEnum):
    ACTIVA = "activa"
    PENDIENTE = "pendiente"
    BAJA = "baja"

class EstadoPartido(PyEnum):
    PENDIENTE = "pendiente"
    JUGADO = "jugado"
    CANCELADO = "cancelado"
    WO = "WO"

class TipoMovimiento(PyEnum):
    ASCENSO = "ascenso"
    DESCENSO = "descenso"

class MotivoMovimiento(PyEnum):
    AUTOMATICO = "automatico"
    PLAYOFF = "playoff"

# Slot del partido -> columna del jugador
SLOTS_PARTIDO = {
    'a1': 'jugador_a1_id',
    'a2': 'jugador_a2_id',
    'b1': 'jugador_b1_id',
    'b2': 'jugador_b2_id',
}
EQUIPO_SLOT = {'a1': 'A', 'a2': 'A', 'b1': 'B', 'b2': 'B'}
RIVAL = {'A': 'B', 'B': 'A'}


class Usuarios(Base):
    __tablename__ = 'usuarios'

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nombre = Column(String(120), nullable=False)
    apellido = Column(String(120), nullable=True)
    email = Column(String(300), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    inscripciones = relationship('Inscripciones', back_populates='usuario')

    @hybrid_property
    def nombre_completo(self):
        return f"{self.nombre} {self.apellido or ''}".strip()

    def __repr__(self):
        return f"<Usuario(id={self.id}, nombre='{self.nombre}')>"

class Etapas(Base):
    __tablename__ = 'circuitooka_etapas'

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nombre = Column(String(200), nullable=False)
    fecha_inicio = Column(Date, nullable=False)
    fecha_fin = Column(Date, nullable=False)
    anio = Column(Integer, nullable=False, index=True)
    estado = Column(String(20), nullable=False, default=EstadoEtapa.ACTIVA.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    inscripciones = relationship('Inscripciones', back_populates='etapa', cascade='all, delete-orphan')
    configuraciones = relationship('Configuracion', back_populates='etapa', cascade='all, delete-orphan')

    @validates('estado')
    def validate_estado(self, key, value):
        if value not in [e.value for e in EstadoEtapa]:
            raise ValueError(f"Estado de etapa inválido: {value}")
        return value

    def __repr__(self):
        return f"<Etapa(nombre='{self.nombre}', estado='{self.estado}')>"

class Divisiones(Base):
    __tablename__ = 'circuitooka_divisiones'

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    numero_division = Column(Integer, nullable=False, unique=True)  # 1 = división superior
    nombre = Column(String(100), nullable=False)
    descripcion = Column(Text, nullable=True)
    activa = Column(Boolean, default=True)

    @validates('numero_division')
    def validate_numero(self, key, value):
        if value < 1:
            raise ValueError("numero_division debe ser mayor o igual a 1")
        return value

    def __repr__(self):
        return f"<Division(numero={self.numero_division}, nombre='{self.nombre}')>"

class Inscripciones(Base):
    __tablename__ = 'circuitooka_inscripciones'

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    etapa_id = Column(Integer, ForeignKey('circuitooka_etapas.id', ondelete='CASCADE'), nullable=False)
    division_id = Column(Integer, ForeignKey('circuitooka_divisiones.id'), nullable=False)
    usuario_id = Column(Integer, ForeignKey('usuarios.id', ondelete='CASCADE'), nullable=False)
    estado = Column(String(20), nullable=False, default=EstadoInscripcion.ACTIVA.value)
    fecha_inscripcion = Column(DateTime(timezone=True), server_default=func.now())

    etapa = relationship('Etapas', back_populates='inscripciones')
    division = relationship('Divisiones')
    usuario = relationship('Usuarios', back_populates='inscripciones')

    __table_args__ = (
        UniqueConstraint('etapa_id', 'usuario_id', name='uq_inscripcion_etapa_usuario'),
        Index('ix_inscripcion_etapa_division_estado', 'etapa_id', 'division_id', 'estado'),
    )

class Partidos(Base):
    __tablename__ = 'circuitooka_partidos'

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    etapa_id = Column(Integer, ForeignKey('circuitooka_etapas.id', ondelete='CASCADE'), nullable=False)
    division_id = Column(Integer, ForeignKey('circuitooka_divisiones.id'), nullable=False)
    fecha_partido = Column(DateTime(timezone=True), nullable=True)

    jugador_a1_id = Column(Integer, ForeignKey('usuarios.id'), nullable=False)
    jugador_a2_id = Column(Integer, ForeignKey('usuarios.id'), nullable=False)
    jugador_b1_id = Column(Integer, ForeignKey('usuarios.id'), nullable=False)
    jugador_b2_id = Column(Integer, ForeignKey('usuarios.id'), nullable=False)

    estado = Column(String(20), nullable=False, default=EstadoPartido.PENDIENTE.value)
    equipo_ganador = Column(String(1), nullable=True)  # A | B
    sets_equipo_a = Column(Integer, nullable=True)
    sets_equipo_b = Column(Integer, nullable=True)
    games_equipo_a = Column(Integer, nullable=True)
    games_equipo_b = Column(Integer, nullable=True)
    resultado_detallado = Column(JSON, nullable=True)
    wo_jugador_ids = Column(JSON, nullable=True)  # jugadores con WO individual

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('ix_partido_etapa_division_estado', 'etapa_id', 'division_id', 'estado'),
    )

    @validates('equipo_ganador')
    def validate_equipo(self, key, value):
        if value is not None and value not in RIVAL:
            raise ValueError("equipo_ganador debe ser 'A' o 'B'")
        return value

    def jugadores_por_slot(self) -> dict:
        return {slot: getattr(self, columna) for slot, columna in SLOTS_PARTIDO.items()}

    def jugadores_ids(self) -> list:
        return [j for j in self.jugadores_por_slot().values() if j is not None]

    def slot_de(self, usuario_id: int):
        for slot, jugador in self.jugadores_por_slot().items():
            if jugador == usuario_id:
                return slot
        return None

    def equipo_de(self, usuario_id: int):
        slot = self.slot_de(usuario_id)
        return EQUIPO_SLOT[slot] if slot else None

    def gano(self, usuario_id: int) -> bool:
        equipo = self.equipo_de(usuario_id)
        return equipo is not None and equipo == self.equipo_ganador

    def jugadores_equipo(self, equipo: str) -> list:
        return [j for slot, j in self.jugadores_por_slot().items() if EQUIPO_SLOT[slot] == equipo]

    def oponentes_de(self, usuario_id: int) -> list:
        equipo = self.equipo_de(usuario_id)
        if equipo is None:
            return []
        return self.jugadores_equipo(RIVAL[equipo])

    def diferencias_para(self, usuario_id: int):
        """(diferencia de sets, diferencia de games) vista desde el equipo del jugador"""
        equipo = self.equipo_de(usuario_id)
        if equipo is None:
            return 0, 0
        sets = {'A': self.sets_equipo_a or 0, 'B': self.sets_equipo_b or 0}
        games = {'A': self.games_equipo_a or 0, 'B': self.games_equipo_b or 0}
        rival = RIVAL[equipo]
        return sets[equipo] - sets[rival], games[equipo] - games[rival]

    def tuvo_wo(self, usuario_id: int) -> bool:
        return usuario_id in (self.wo_jugador_ids or [])

    def __repr__(self):
        return f"<Partido(id={self.id}, estado='{self.estado}', ganador={self.equipo_ganador})>"

class Rankings(Base):
    __tablename__ = 'circuitooka_rankings'

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    etapa_id = Column(Integer, ForeignKey('circuitooka_etapas.id', ondelete='CASCADE'), nullable=False)
    division_id = Column(Integer, ForeignKey('circuitooka_divisiones.id'), nullable=False)
    usuario_id = Column(Integer, ForeignKey('usuarios.id', ondelete='CASCADE'), nullable=False)

    partidos_ganados = Column(Integer, nullable=False, default=0)
    partidos_jugados = Column(Integer, nullable=False, default=0)
    promedio_individual = Column(Float, nullable=False, default=0)
    promedio_general = Column(Float, nullable=False, default=0)
    bonus_por_jugar = Column(Float, nullable=False, default=0)
    promedio_final = Column(Float, nullable=False, default=0)
    minimo_requerido = Column(Integer, nullable=False, default=0)
    cumple_minimo = Column(Boolean, nullable=False, default=False)

    # Desempate
    diferencia_sets = Column(Integer, nullable=False, default=0)
    diferencia_games = Column(Integer, nullable=False, default=0)
    victorias_mejores_parejas = Column(Integer, nullable=False, default=0)

    posicion_ranking = Column(Integer, nullable=True)  # solo quienes cumplen el mínimo
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    usuario = relationship('Usuarios')
    division = relationship('Divisiones')

    __table_args__ = (
        UniqueConstraint('etapa_id', 'division_id', 'usuario_id', name='uq_ranking_etapa_division_usuario'),
        Index('ix_ranking_etapa_division', 'etapa_id', 'division_id'),
    )

    def __repr__(self):
        return f"<Ranking(usuario_id={self.usuario_id}, promedio_final={self.promedio_final})>"

class AscensosDescensos(Base):
    __tablename__ = 'circuitooka_ascensos_descensos'

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    etapa_id = Column(Integer, ForeignKey('circuitooka_etapas.id', ondelete='CASCADE'), nullable=False)
    usuario_id = Column(Integer, ForeignKey('usuarios.id', ondelete='CASCADE'), nullable=False)
    division_origen_id = Column(Integer, ForeignKey('circuitooka_divisiones.id'), nullable=False)
    division_destino_id = Column(Integer, ForeignKey('circuitooka_divisiones.id'), nullable=False)
    tipo_movimiento = Column(String(20), nullable=False)
    motivo = Column(String(20), nullable=False, default=MotivoMovimiento.AUTOMATICO.value)
    promedio_final = Column(Float, nullable=True)  # None: pendiente de recálculo
    posicion_origen = Column(Integer, nullable=True)
    fecha_movimiento = Column(DateTime(timezone=True), server_default=func.now())

    usuario = relationship('Usuarios')
    division_origen = relationship('Divisiones', foreign_keys=[division_origen_id])
    division_destino = relationship('Divisiones', foreign_keys=[division_destino_id])

    @hybrid_property
    def promedio_pendiente(self):
        return self.promedio_final is None

    @validates('tipo_movimiento')
    def validate_tipo(self, key, value):
        if value not in [t.value for t in TipoMovimiento]:
            raise ValueError(f"tipo_movimiento inválido: {value}")
        return value

    def __repr__(self):
        return f"<Movimiento(usuario_id={self.usuario_id}, tipo='{self.tipo_movimiento}', motivo='{self.motivo}')>"

class Playoffs(Base):
    __tablename__ = 'circuitooka_playoffs'

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    etapa_id = Column(Integer, ForeignKey('circuitooka_etapas.id', ondelete='CASCADE'), nullable=False)
    division_origen_id = Column(Integer, ForeignKey('circuitooka_divisiones.id'), nullable=False)
    division_destino_id = Column(Integer, ForeignKey('circuitooka_divisiones.id'), nullable=True)
    tipo_playoff = Column(String(20), nullable=False)  # ascenso | descenso

    jugador_1_superior_id = Column(Integer, ForeignKey('usuarios.id'), nullable=False)
    jugador_2_superior_id = Column(Integer, ForeignKey('usuarios.id'), nullable=True)
    jugador_1_inferior_id = Column(Integer, ForeignKey('usuarios.id'), nullable=False)
    jugador_2_inferior_id = Column(Integer, ForeignKey('usuarios.id'), nullable=True)

    partido_id = Column(Integer, ForeignKey('circuitooka_partidos.id', ondelete='SET NULL'), nullable=True)
    fecha_playoff = Column(DateTime(timezone=True), nullable=True)
    estado = Column(String(20), nullable=False, default='pendiente')
    resultado = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    partido = relationship('Partidos')

    def jugadores_superiores(self) -> list:
        return [j for j in (self.jugador_1_superior_id, self.jugador_2_superior_id) if j]

    def jugadores_inferiores(self) -> list:
        return [j for j in (self.jugador_1_inferior_id, self.jugador_2_inferior_id) if j]

    def __repr__(self):
        return f"<Playoff(id={self.id}, tipo='{self.tipo_playoff}', estado='{self.estado}')>"

class Configuracion(Base):
    __tablename__ = 'circuitooka_configuracion'

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    etapa_id = Column(Integer, ForeignKey('circuitooka_etapas.id', ondelete='CASCADE'), nullable=False)
    division_id = Column(Integer, ForeignKey('circuitooka_divisiones.id'), nullable=True)  # None: toda la etapa

    cupos_ascenso_porcentaje = Column(Float, nullable=True)
    cupos_ascenso_minimo = Column(Integer, nullable=True)
    cupos_ascenso_maximo = Column(Integer, nullable=True)
    jugadores_playoff_por_division = Column(Integer, nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    etapa = relationship('Etapas', back_populates='configuraciones')

    __table_args__ = (
        UniqueConstraint('etapa_id', 'division_id', name='uq_configuracion_etapa_division'),
    )

class BloqueosEtapa(Base):
    __tablename__ = 'circuitooka_bloqueos_etapa'

    etapa_id = Column(Integer, ForeignKey('circuitooka_etapas.id', ondelete='CASCADE'), primary_key=True)
    propietario = Column(String(100), nullable=True)
    adquirido_en = Column(DateTime(timezone=True), server_default=func.now())
