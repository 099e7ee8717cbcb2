from sqlalchemy import select, desc
from sqlalchemy.orm import Session
from circuitooka.database import models, schemas
from circuitooka.repositorios.promedios import RepositorioPromedios
from circuitooka.repositorios.ranking import RepositorioRanking
from circuitooka.utils.error_handler import handle_error
from circuitooka.utils.exceptions_circuito import PartidoException, ResultadoInvalidoException
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

class RepositorioPartido:
    """Repositorio de partidos de dobles (equipo A contra equipo B)"""

    def __init__(self, db: Session):
        self.db = db

    async def get_by_id(self, partido_id: int) -> Optional[schemas.Partidos]:
        try:
            stmt = select(schemas.Partidos).where(schemas.Partidos.id == partido_id)
            return self.db.execute(stmt).scalars().first()
        except Exception as error:
            handle_error(error, self.get_by_id)

    async def get_all(self, etapa_id: Optional[int] = None, division_id: Optional[int] = None,
                      estado: Optional[str] = None) -> List[schemas.Partidos]:
        try:
            stmt = select(schemas.Partidos)

            if etapa_id:
                stmt = stmt.where(schemas.Partidos.etapa_id == etapa_id)
            if division_id:
                stmt = stmt.where(schemas.Partidos.division_id == division_id)
            if estado:
                stmt = stmt.where(schemas.Partidos.estado == estado)

            stmt = stmt.order_by(desc(schemas.Partidos.fecha_partido), desc(schemas.Partidos.id))

            return self.db.execute(stmt).scalars().all()
        except Exception as error:
            handle_error(error, self.get_all)

    async def contar_jugados(self, etapa_id: int, division_id: int) -> int:
        return await RepositorioPromedios(self.db).contar_partidos_division(etapa_id, division_id)

    async def post(self, partido_data: models.PartidoPOST) -> schemas.Partidos:
        try:
            if not self.db.get(schemas.Etapas, partido_data.etapa_id):
                raise PartidoException(f"Etapa {partido_data.etapa_id} no encontrada")
            if not self.db.get(schemas.Divisiones, partido_data.division_id):
                raise PartidoException(f"División {partido_data.division_id} no encontrada")

            db_partido = schemas.Partidos(
                **partido_data.model_dump(),
                estado=models.EstadoPartido.PENDIENTE.value
            )

            self.db.add(db_partido)
            self.db.commit()
            self.db.refresh(db_partido)

            return db_partido
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.post)

    async def registrar_resultado(self, partido_id: int, resultado: models.ResultadoPartido) -> Optional[schemas.Partidos]:
        """
        Carga el resultado del partido y recalcula el ranking de los cuatro jugadores.
        """
        try:
            partido = await self.get_by_id(partido_id)
            if not partido:
                return None
            if partido.estado == models.EstadoPartido.CANCELADO.value:
                raise PartidoException(f"El partido {partido_id} está cancelado")

            ganador = resultado.equipo_ganador.value
            sets = {'A': resultado.sets_equipo_a, 'B': resultado.sets_equipo_b}
            perdedor = 'B' if ganador == 'A' else 'A'
            if sets[ganador] < sets[perdedor]:
                raise ResultadoInvalidoException(f"el equipo {ganador} no puede ganar con menos sets")

            wo_ids = resultado.wo_jugador_ids or []
            ajenos = [j for j in wo_ids if j not in partido.jugadores_ids()]
            if ajenos:
                raise ResultadoInvalidoException(f"jugadores con WO que no están en el partido: {ajenos}")

            partido.equipo_ganador = ganador
            partido.sets_equipo_a = resultado.sets_equipo_a
            partido.sets_equipo_b = resultado.sets_equipo_b
            partido.games_equipo_a = resultado.games_equipo_a
            partido.games_equipo_b = resultado.games_equipo_b
            partido.resultado_detallado = resultado.resultado_detallado
            partido.wo_jugador_ids = wo_ids or None
            partido.estado = resultado.estado.value

            self.db.commit()
            self.db.refresh(partido)

            repo_ranking = RepositorioRanking(self.db)
            for usuario_id in partido.jugadores_ids():
                await repo_ranking.actualizar_ranking_jugador(
                    usuario_id, partido.etapa_id, partido.division_id, recalcular_posiciones=False
                )
            await repo_ranking.recalcular_posiciones(partido.etapa_id, partido.division_id)

            logger.info(f"Resultado cargado: partido={partido_id}, ganador={ganador}")
            return partido
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.registrar_resultado)
