from sqlalchemy import select, desc, asc
from sqlalchemy.orm import Session
from circuitooka.database import models, schemas
from circuitooka.repositorios.inscripcion import RepositorioInscripcion
from circuitooka.repositorios.promedios import RepositorioPromedios
from circuitooka.utils.error_handler import handle_error
from circuitooka.utils.utils_circuito import UtilsCircuito
from circuitooka.utils.config_circuito import ConfigCircuito
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

ORDEN_CANONICO = (
    desc(schemas.Rankings.promedio_final),
    desc(schemas.Rankings.diferencia_sets),
    desc(schemas.Rankings.diferencia_games),
    desc(schemas.Rankings.victorias_mejores_parejas),
    asc(schemas.Rankings.id),
)

class RepositorioRanking:
    """Mantenimiento del ranking de cada división a partir de los partidos jugados"""

    def __init__(self, db: Session):
        self.db = db

    async def get(self, etapa_id: int, division_id: int, usuario_id: int) -> Optional[schemas.Rankings]:
        try:
            stmt = select(schemas.Rankings).where(
                schemas.Rankings.etapa_id == etapa_id,
                schemas.Rankings.division_id == division_id,
                schemas.Rankings.usuario_id == usuario_id
            )
            return self.db.execute(stmt).scalars().first()
        except Exception as error:
            handle_error(error, self.get)

    async def listar_ordenado(self, etapa_id: int, division_id: int, solo_cumplen_minimo: bool = False,
                              desde: Optional[int] = None, limite: Optional[int] = None) -> List[schemas.Rankings]:
        """Rankings de la división en orden canónico"""
        try:
            stmt = select(schemas.Rankings).where(
                schemas.Rankings.etapa_id == etapa_id,
                schemas.Rankings.division_id == division_id
            )

            if solo_cumplen_minimo:
                stmt = stmt.where(schemas.Rankings.cumple_minimo == True)

            stmt = stmt.order_by(*ORDEN_CANONICO)

            if desde:
                stmt = stmt.offset(desde)
            if limite is not None:
                stmt = stmt.limit(limite)

            return self.db.execute(stmt).scalars().all()
        except Exception as error:
            handle_error(error, self.listar_ordenado)

    async def actualizar_ranking_jugador(self, usuario_id: int, etapa_id: int, division_id: int,
                                         recalcular_posiciones: bool = True) -> schemas.Rankings:
        """
        Recalcula la fila de ranking de un jugador desde los partidos.

        Excluye los partidos donde el jugador tuvo WO individual, acumula la
        diferencia de sets y games desde su lado y cuenta como
        victorias_mejores_parejas las victorias contra algún rival que hoy
        está en el top 3 de la división.
        """
        try:
            repo_promedios = RepositorioPromedios(self.db)
            partidos = await repo_promedios.partidos_jugador(etapa_id, division_id, usuario_id)
            partidos_division = await repo_promedios.contar_partidos_division(etapa_id, division_id)
            inscriptos = await RepositorioInscripcion(self.db).contar_activas(etapa_id, division_id)

            ganados = 0
            diferencia_sets = 0
            diferencia_games = 0
            for partido in partidos:
                if partido.gano(usuario_id):
                    ganados += 1
                dif_sets, dif_games = partido.diferencias_para(usuario_id)
                diferencia_sets += dif_sets
                diferencia_games += dif_games

            top = await self.listar_ordenado(etapa_id, division_id, limite=ConfigCircuito.TOP_MEJORES_PAREJAS)
            ids_top = UtilsCircuito.ids_usuarios(top)
            victorias_mejores = sum(
                1 for p in partidos
                if p.gano(usuario_id) and any(o in ids_top for o in p.oponentes_de(usuario_id))
            )

            promedios = UtilsCircuito.calcular_todos_los_promedios(
                partidos_ganados=ganados,
                partidos_jugados=len(partidos),
                partidos_division=partidos_division,
                jugadores_inscriptos=inscriptos
            )

            ranking = await self.get(etapa_id, division_id, usuario_id)
            if ranking is None:
                ranking = schemas.Rankings(etapa_id=etapa_id, division_id=division_id, usuario_id=usuario_id)
                self.db.add(ranking)

            for campo, valor in promedios.items():
                setattr(ranking, campo, valor)
            ranking.diferencia_sets = diferencia_sets
            ranking.diferencia_games = diferencia_games
            ranking.victorias_mejores_parejas = victorias_mejores

            self.db.commit()
            self.db.refresh(ranking)

            if recalcular_posiciones:
                await self.recalcular_posiciones(etapa_id, division_id)
                self.db.refresh(ranking)

            return ranking
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.actualizar_ranking_jugador)

    async def recalcular_posiciones(self, etapa_id: int, division_id: int) -> List[schemas.Rankings]:
        """
        Asigna posicion_ranking 1..n solo a quienes cumplen el mínimo.
        El resto queda sin posición pero sigue participando de descensos y playoffs.
        """
        try:
            rankings = await self.listar_ordenado(etapa_id, division_id)

            posicion = 1
            for ranking in rankings:
                if ranking.cumple_minimo:
                    ranking.posicion_ranking = posicion
                    posicion += 1
                else:
                    ranking.posicion_ranking = None

            self.db.commit()
            return rankings
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.recalcular_posiciones)

    async def recalcular_division(self, etapa_id: int, division_id: int) -> List[schemas.Rankings]:
        inscripciones = await RepositorioInscripcion(self.db).get_activas(etapa_id, division_id)

        for inscripcion in inscripciones:
            await self.actualizar_ranking_jugador(
                inscripcion.usuario_id, etapa_id, division_id, recalcular_posiciones=False
            )

        rankings = await self.recalcular_posiciones(etapa_id, division_id)
        logger.info(f"Ranking recalculado: etapa={etapa_id}, division={division_id}, jugadores={len(inscripciones)}")
        return rankings

    async def obtener_ranking_completo(self, etapa_id: int, division_id: int) -> List[models.Ranking]:
        """
        Todos los inscriptos activos de la división, con un registro en cero para
        quienes aún no tienen fila de ranking. Primero los que tienen posición.
        """
        inscripciones = await RepositorioInscripcion(self.db).get_activas(etapa_id, division_id)
        rankings = {r.usuario_id: r for r in await self.listar_ordenado(etapa_id, division_id)}

        filas = []
        for inscripcion in inscripciones:
            ranking = rankings.get(inscripcion.usuario_id)
            if ranking is not None:
                filas.append(models.Ranking.model_validate(ranking))
            else:
                filas.append(models.Ranking(
                    etapa_id=etapa_id,
                    division_id=division_id,
                    usuario_id=inscripcion.usuario_id
                ))

        con_posicion = sorted((f for f in filas if f.posicion_ranking is not None), key=lambda f: f.posicion_ranking)
        sin_posicion = UtilsCircuito.ordenar_canonico(f for f in filas if f.posicion_ranking is None)
        return con_posicion + sin_posicion
