from sqlalchemy import select, func, update
from sqlalchemy.orm import Session
from circuitooka.database import models, schemas
from circuitooka.utils.error_handler import handle_error
from circuitooka.utils.exceptions_circuito import InscripcionException
from typing import List, Optional

class RepositorioInscripcion:
    """Repositorio de inscripciones de jugadores a una etapa y división"""

    def __init__(self, db: Session):
        self.db = db

    async def get_by_id(self, inscripcion_id: int) -> Optional[schemas.Inscripciones]:
        try:
            stmt = select(schemas.Inscripciones).where(schemas.Inscripciones.id == inscripcion_id)
            return self.db.execute(stmt).scalars().first()
        except Exception as error:
            handle_error(error, self.get_by_id)

    async def get_by_usuario(self, etapa_id: int, usuario_id: int) -> Optional[schemas.Inscripciones]:
        try:
            stmt = select(schemas.Inscripciones).where(
                schemas.Inscripciones.etapa_id == etapa_id,
                schemas.Inscripciones.usuario_id == usuario_id
            )
            return self.db.execute(stmt).scalars().first()
        except Exception as error:
            handle_error(error, self.get_by_usuario)

    async def get_all(self, etapa_id: Optional[int] = None, division_id: Optional[int] = None,
                      estado: Optional[str] = None) -> List[schemas.Inscripciones]:
        try:
            stmt = select(schemas.Inscripciones)

            if etapa_id:
                stmt = stmt.where(schemas.Inscripciones.etapa_id == etapa_id)
            if division_id:
                stmt = stmt.where(schemas.Inscripciones.division_id == division_id)
            if estado:
                stmt = stmt.where(schemas.Inscripciones.estado == estado)

            stmt = stmt.order_by(schemas.Inscripciones.id)

            return self.db.execute(stmt).scalars().all()
        except Exception as error:
            handle_error(error, self.get_all)

    async def get_activas(self, etapa_id: int, division_id: int) -> List[schemas.Inscripciones]:
        return await self.get_all(etapa_id, division_id, models.EstadoInscripcion.ACTIVA.value)

    async def contar_activas(self, etapa_id: int, division_id: int) -> int:
        """Cantidad de inscripciones en estado 'activa'"""
        try:
            stmt = select(func.count(schemas.Inscripciones.id)).where(
                schemas.Inscripciones.etapa_id == etapa_id,
                schemas.Inscripciones.division_id == division_id,
                schemas.Inscripciones.estado == models.EstadoInscripcion.ACTIVA.value
            )
            return self.db.execute(stmt).scalar() or 0
        except Exception as error:
            handle_error(error, self.contar_activas)

    async def post(self, inscripcion_data: models.InscripcionPOST) -> schemas.Inscripciones:
        try:
            etapa = self.db.get(schemas.Etapas, inscripcion_data.etapa_id)
            if not etapa:
                raise InscripcionException(f"Etapa {inscripcion_data.etapa_id} no encontrada")
            if etapa.estado == models.EstadoEtapa.CERRADA.value:
                raise InscripcionException(f"La etapa {etapa.nombre} está cerrada")
            if not self.db.get(schemas.Divisiones, inscripcion_data.division_id):
                raise InscripcionException(f"División {inscripcion_data.division_id} no encontrada")
            if not self.db.get(schemas.Usuarios, inscripcion_data.usuario_id):
                raise InscripcionException(f"Usuario {inscripcion_data.usuario_id} no encontrado")

            if await self.get_by_usuario(inscripcion_data.etapa_id, inscripcion_data.usuario_id):
                raise InscripcionException("El jugador ya está inscripto en esta etapa")

            db_inscripcion = schemas.Inscripciones(
                etapa_id=inscripcion_data.etapa_id,
                division_id=inscripcion_data.division_id,
                usuario_id=inscripcion_data.usuario_id,
                estado=inscripcion_data.estado.value
            )

            self.db.add(db_inscripcion)
            self.db.commit()
            self.db.refresh(db_inscripcion)

            return db_inscripcion
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.post)

    async def put(self, inscripcion_id: int, inscripcion_data: models.InscripcionPUT) -> Optional[schemas.Inscripciones]:
        try:
            inscripcion = await self.get_by_id(inscripcion_id)
            if not inscripcion:
                return None

            update_data = {k: v for k, v in inscripcion_data.model_dump().items() if v is not None}
            if 'estado' in update_data:
                update_data['estado'] = update_data['estado'].value

            if update_data:
                stmt = update(schemas.Inscripciones).where(
                    schemas.Inscripciones.id == inscripcion_id
                ).values(**update_data)

                self.db.execute(stmt)
                self.db.commit()
                self.db.refresh(inscripcion)

            return inscripcion
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.put)
