from sqlalchemy import select
from sqlalchemy.orm import Session
from circuitooka.database import models, schemas
from circuitooka.utils.error_handler import handle_error
from circuitooka.utils.config_circuito import ConfigCircuito
from circuitooka.utils.exceptions_circuito import ConfiguracionException
from typing import Optional, Dict, Any

# campo -> valor por defecto
CAMPOS_CONFIGURACION = {
    'cupos_ascenso_porcentaje': ConfigCircuito.CUPOS_PORCENTAJE_DEFECTO,
    'cupos_ascenso_minimo': ConfigCircuito.CUPOS_MINIMO_DEFECTO,
    'cupos_ascenso_maximo': ConfigCircuito.CUPOS_MAXIMO_DEFECTO,
    'jugadores_playoff_por_division': ConfigCircuito.JUGADORES_PLAYOFF_DEFECTO,
}

class RepositorioConfiguracion:
    """Configuración de cupos y playoffs por etapa y división"""

    def __init__(self, db: Session):
        self.db = db

    async def get(self, etapa_id: int, division_id: Optional[int] = None) -> Optional[schemas.Configuracion]:
        """Fila exacta; division_id None es la fila general de la etapa"""
        try:
            stmt = select(schemas.Configuracion).where(schemas.Configuracion.etapa_id == etapa_id)

            if division_id is None:
                stmt = stmt.where(schemas.Configuracion.division_id.is_(None))
            else:
                stmt = stmt.where(schemas.Configuracion.division_id == division_id)

            return self.db.execute(stmt).scalars().first()
        except Exception as error:
            handle_error(error, self.get)

    async def resolver(self, etapa_id: int, division_id: Optional[int] = None) -> models.ConfiguracionEfectiva:
        """
        Resuelve la configuración efectiva campo por campo.

        Capas, de la más específica a la más general:
        fila de la división -> fila de la etapa (division_id NULL) -> valores por defecto.
        Un campo NULL en una capa cae a la siguiente.
        """
        capas = []
        if division_id is not None:
            capas.append(('division', await self.get(etapa_id, division_id)))
        capas.append(('etapa', await self.get(etapa_id, None)))

        valores: Dict[str, Any] = {}
        origen: Dict[str, str] = {}
        for campo, defecto in CAMPOS_CONFIGURACION.items():
            valores[campo] = defecto
            origen[campo] = 'defecto'
            for nombre_capa, fila in capas:
                valor = getattr(fila, campo, None) if fila is not None else None
                if valor is not None:
                    valores[campo] = valor
                    origen[campo] = nombre_capa
                    break

        return models.ConfiguracionEfectiva(
            etapa_id=etapa_id,
            division_id=division_id,
            origen=origen,
            **valores
        )

    async def _validar_limites(self, etapa_id: int, division_id: Optional[int]):
        """
        minimo <= maximo sobre la configuración ya resuelta. Una fila de división
        afecta sólo a esa división; la fila de la etapa afecta a todas las que
        heredan de ella.
        """
        alcance = [division_id]
        if division_id is None:
            stmt = select(schemas.Configuracion.division_id).where(
                schemas.Configuracion.etapa_id == etapa_id,
                schemas.Configuracion.division_id.is_not(None)
            )
            alcance += self.db.execute(stmt).scalars().all()

        for id_division in alcance:
            config = await self.resolver(etapa_id, id_division)
            if config.cupos_ascenso_minimo > config.cupos_ascenso_maximo:
                raise ConfiguracionException(
                    f"cupos_ascenso_minimo ({config.cupos_ascenso_minimo}, {config.origen['cupos_ascenso_minimo']}) "
                    f"supera a cupos_ascenso_maximo ({config.cupos_ascenso_maximo}, {config.origen['cupos_ascenso_maximo']})"
                    + (f" en la división {id_division}" if id_division is not None else "")
                )

    async def upsert(self, config_data: models.ConfiguracionPUT) -> schemas.Configuracion:
        """Crea o actualiza la fila (etapa, división); los campos None no pisan valores existentes"""
        try:
            fila = await self.get(config_data.etapa_id, config_data.division_id)
            campos = {k: v for k, v in config_data.model_dump(include=set(CAMPOS_CONFIGURACION)).items() if v is not None}

            if fila is None:
                fila = schemas.Configuracion(
                    etapa_id=config_data.etapa_id,
                    division_id=config_data.division_id,
                    **campos
                )
                self.db.add(fila)
            else:
                for campo, valor in campos.items():
                    setattr(fila, campo, valor)

            self.db.flush()
            await self._validar_limites(config_data.etapa_id, config_data.division_id)

            self.db.commit()
            self.db.refresh(fila)

            return fila
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.upsert)
