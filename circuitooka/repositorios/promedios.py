from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session
from circuitooka.database import models, schemas
from circuitooka.repositorios.inscripcion import RepositorioInscripcion
from circuitooka.utils.error_handler import handle_error
from circuitooka.utils.utils_circuito import UtilsCircuito
from typing import List, Dict, Any
import logging

logger = logging.getLogger(__name__)

class RepositorioPromedios:
    """Lecturas de conteos y cálculo de promedios por jugador y división"""

    def __init__(self, db: Session):
        self.db = db

    async def contar_partidos_division(self, etapa_id: int, division_id: int) -> int:
        """Partidos en estado 'jugado' de la división"""
        try:
            stmt = select(func.count(schemas.Partidos.id)).where(
                schemas.Partidos.etapa_id == etapa_id,
                schemas.Partidos.division_id == division_id,
                schemas.Partidos.estado == models.EstadoPartido.JUGADO.value
            )
            return self.db.execute(stmt).scalar() or 0
        except Exception as error:
            handle_error(error, self.contar_partidos_division)

    async def partidos_jugador(self, etapa_id: int, division_id: int, usuario_id: int) -> List[schemas.Partidos]:
        """Partidos jugados por el jugador, sin los que tuvo WO individual"""
        try:
            stmt = select(schemas.Partidos).where(
                schemas.Partidos.etapa_id == etapa_id,
                schemas.Partidos.division_id == division_id,
                schemas.Partidos.estado == models.EstadoPartido.JUGADO.value,
                or_(
                    schemas.Partidos.jugador_a1_id == usuario_id,
                    schemas.Partidos.jugador_a2_id == usuario_id,
                    schemas.Partidos.jugador_b1_id == usuario_id,
                    schemas.Partidos.jugador_b2_id == usuario_id
                )
            ).order_by(schemas.Partidos.id)

            partidos = self.db.execute(stmt).scalars().all()
            return [p for p in partidos if not p.tuvo_wo(usuario_id)]
        except Exception as error:
            handle_error(error, self.partidos_jugador)

    async def obtener_minimo_requerido(self, etapa_id: int, division_id: int) -> int:
        partidos_division = await self.contar_partidos_division(etapa_id, division_id)
        inscriptos = await RepositorioInscripcion(self.db).contar_activas(etapa_id, division_id)
        return UtilsCircuito.calcular_minimo_requerido(partidos_division, inscriptos)

    async def obtener_promedio_jugador(self, etapa_id: int, division_id: int, usuario_id: int):
        """Fila de ranking guardada o un registro en cero si el jugador todavía no tiene"""
        try:
            stmt = select(schemas.Rankings).where(
                schemas.Rankings.etapa_id == etapa_id,
                schemas.Rankings.division_id == division_id,
                schemas.Rankings.usuario_id == usuario_id
            )
            ranking = self.db.execute(stmt).scalars().first()
            if ranking:
                return ranking

            return models.Ranking(
                etapa_id=etapa_id,
                division_id=division_id,
                usuario_id=usuario_id
            )
        except Exception as error:
            handle_error(error, self.obtener_promedio_jugador)

    async def calcular_promedios_jugador(self, etapa_id: int, division_id: int, usuario_id: int,
                                         partidos_division: int, inscriptos: int) -> Dict[str, Any]:
        partidos = await self.partidos_jugador(etapa_id, division_id, usuario_id)
        ganados = sum(1 for p in partidos if p.gano(usuario_id))

        return UtilsCircuito.calcular_todos_los_promedios(
            partidos_ganados=ganados,
            partidos_jugados=len(partidos),
            partidos_division=partidos_division,
            jugadores_inscriptos=inscriptos
        )

    async def recalcular_division(self, etapa_id: int, division_id: int) -> List[Dict[str, Any]]:
        """Calcula los promedios de cada inscripto activo a partir de los partidos jugados"""
        inscripciones = await RepositorioInscripcion(self.db).get_activas(etapa_id, division_id)
        partidos_division = await self.contar_partidos_division(etapa_id, division_id)

        resultados = []
        for inscripcion in inscripciones:
            promedios = await self.calcular_promedios_jugador(
                etapa_id, division_id, inscripcion.usuario_id, partidos_division, len(inscripciones)
            )
            resultados.append({'usuario_id': inscripcion.usuario_id, **promedios})

        logger.info(f"Promedios recalculados para {len(resultados)} jugadores (etapa={etapa_id}, division={division_id})")
        return resultados
