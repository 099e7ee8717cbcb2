from sqlalchemy import select, update, desc
from sqlalchemy.orm import Session
from circuitooka.database import models, schemas
from circuitooka.utils.error_handler import handle_error
from circuitooka.utils.exceptions_circuito import EtapaException
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

class RepositorioEtapa:
    """Repositorio de etapas del circuito"""

    def __init__(self, db: Session):
        self.db = db

    async def get_all(self, anio: Optional[int] = None, estado: Optional[str] = None) -> List[schemas.Etapas]:
        try:
            stmt = select(schemas.Etapas)

            if anio:
                stmt = stmt.where(schemas.Etapas.anio == anio)
            if estado:
                stmt = stmt.where(schemas.Etapas.estado == estado)

            stmt = stmt.order_by(desc(schemas.Etapas.fecha_inicio))

            return self.db.execute(stmt).scalars().all()
        except Exception as error:
            handle_error(error, self.get_all)

    async def get_by_id(self, etapa_id: int) -> Optional[schemas.Etapas]:
        try:
            stmt = select(schemas.Etapas).where(schemas.Etapas.id == etapa_id)
            return self.db.execute(stmt).scalars().first()
        except Exception as error:
            handle_error(error, self.get_by_id)

    async def post(self, etapa_data: models.EtapaPOST) -> schemas.Etapas:
        """Crea una nueva etapa"""
        try:
            db_etapa = schemas.Etapas(
                nombre=etapa_data.nombre,
                fecha_inicio=etapa_data.fecha_inicio,
                fecha_fin=etapa_data.fecha_fin,
                anio=etapa_data.anio,
                estado=etapa_data.estado.value
            )

            self.db.add(db_etapa)
            self.db.commit()
            self.db.refresh(db_etapa)

            logger.info(f"Etapa creada: {db_etapa.nombre} (id={db_etapa.id})")
            return db_etapa
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.post)

    async def put(self, etapa_id: int, etapa_data: models.EtapaPUT) -> Optional[schemas.Etapas]:
        """Actualiza una etapa existente; None si no existe"""
        try:
            etapa_existente = await self.get_by_id(etapa_id)
            if not etapa_existente:
                return None

            update_data = {k: v for k, v in etapa_data.model_dump().items() if v is not None}
            if 'estado' in update_data:
                update_data['estado'] = update_data['estado'].value

            fecha_inicio = update_data.get('fecha_inicio', etapa_existente.fecha_inicio)
            fecha_fin = update_data.get('fecha_fin', etapa_existente.fecha_fin)
            if fecha_fin < fecha_inicio:
                raise EtapaException("fecha_fin no puede ser anterior a fecha_inicio")

            if update_data:
                stmt = update(schemas.Etapas).where(
                    schemas.Etapas.id == etapa_id
                ).values(**update_data)

                self.db.execute(stmt)
                self.db.commit()
                self.db.refresh(etapa_existente)

            return etapa_existente
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.put)

    async def cerrar(self, etapa_id: int) -> Optional[schemas.Etapas]:
        """Marca la etapa como cerrada"""
        return await self.put(etapa_id, models.EtapaPUT(estado=models.EstadoEtapa.CERRADA))
