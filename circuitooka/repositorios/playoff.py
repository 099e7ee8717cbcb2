from sqlalchemy import select, desc
from sqlalchemy.orm import Session
from circuitooka.database import models, schemas
from circuitooka.repositorios.ascenso_descenso import RepositorioAscensoDescenso
from circuitooka.repositorios.division import RepositorioDivision
from circuitooka.utils.error_handler import handle_error
from circuitooka.utils.exceptions_circuito import PlayoffException
from circuitooka.utils.utils_circuito import UtilsCircuito
from circuitooka.utils.config_circuito import ConfigCircuito
from datetime import datetime
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

ESTADO_PENDIENTE, ESTADO_JUGADO = ConfigCircuito.ESTADOS_PLAYOFF

class RepositorioPlayoff:
    """Cuadro de playoff: mejor contra peor dentro de cada zona de repechaje"""

    def __init__(self, db: Session):
        self.db = db

    async def get_by_id(self, playoff_id: int) -> Optional[schemas.Playoffs]:
        try:
            stmt = select(schemas.Playoffs).where(schemas.Playoffs.id == playoff_id)
            return self.db.execute(stmt).scalars().first()
        except Exception as error:
            handle_error(error, self.get_by_id)

    async def listar(self, etapa_id: Optional[int] = None, division_id: Optional[int] = None) -> List[schemas.Playoffs]:
        try:
            stmt = select(schemas.Playoffs)

            if etapa_id:
                stmt = stmt.where(schemas.Playoffs.etapa_id == etapa_id)
            if division_id:
                stmt = stmt.where(schemas.Playoffs.division_origen_id == division_id)

            stmt = stmt.order_by(desc(schemas.Playoffs.created_at), desc(schemas.Playoffs.id))

            return self.db.execute(stmt).scalars().all()
        except Exception as error:
            handle_error(error, self.listar)

    async def identificar_zonas(self, etapa_id: int, division_id: int) -> Dict[str, List[schemas.Rankings]]:
        return await RepositorioAscensoDescenso(self.db).identificar_playoff(etapa_id, division_id)

    async def formar_parejas(self, etapa_id: int, division_id: int, tipo_playoff: str) -> List[Dict[str, Optional[int]]]:
        zonas = await self.identificar_zonas(etapa_id, division_id)
        if tipo_playoff == models.TipoPlayoff.ASCENSO.value:
            jugadores = zonas['playoff_ascenso']
        else:
            jugadores = zonas['playoff_descenso']

        return UtilsCircuito.formar_parejas_playoff(jugadores)

    async def crear_playoffs(self, etapa_id: int, division_id: int, tipo_playoff: str,
                             fecha_playoff: Optional[datetime] = None) -> List[schemas.Playoffs]:
        """Inserta un playoff por pareja y crea sus partidos"""
        try:
            parejas = await self.formar_parejas(etapa_id, division_id, tipo_playoff)

            repo_division = RepositorioDivision(self.db)
            if tipo_playoff == models.TipoPlayoff.ASCENSO.value:
                destino = await repo_division.get_superior(division_id)
            else:
                destino = await repo_division.get_inferior(division_id)

            playoffs = []
            for pareja in parejas:
                playoff = schemas.Playoffs(
                    etapa_id=etapa_id,
                    division_origen_id=division_id,
                    division_destino_id=destino.id if destino else None,
                    tipo_playoff=tipo_playoff,
                    fecha_playoff=fecha_playoff,
                    estado=ESTADO_PENDIENTE,
                    **pareja
                )
                self.db.add(playoff)
                playoffs.append(playoff)

            self.db.commit()
            for playoff in playoffs:
                self.db.refresh(playoff)

            await self.crear_partidos_playoff(playoffs)

            logger.info(f"Playoffs de {tipo_playoff} creados: etapa={etapa_id}, division={division_id}, cruces={len(playoffs)}")
            return playoffs
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.crear_playoffs)

    async def crear_partidos_playoff(self, playoffs: List[schemas.Playoffs]) -> List[schemas.Partidos]:
        """
        Un partido pendiente por playoff. Si falta el segundo jugador de un
        lado, el lugar lo ocupa el mismo jugador principal.
        """
        try:
            partidos = []
            for playoff in playoffs:
                partido = schemas.Partidos(
                    etapa_id=playoff.etapa_id,
                    division_id=playoff.division_origen_id,
                    fecha_partido=playoff.fecha_playoff,
                    jugador_a1_id=playoff.jugador_1_superior_id,
                    jugador_a2_id=playoff.jugador_2_superior_id or playoff.jugador_1_superior_id,
                    jugador_b1_id=playoff.jugador_1_inferior_id,
                    jugador_b2_id=playoff.jugador_2_inferior_id or playoff.jugador_1_inferior_id,
                    estado=models.EstadoPartido.PENDIENTE.value
                )
                self.db.add(partido)
                self.db.flush()

                playoff.partido_id = partido.id
                partidos.append(partido)

            self.db.commit()
            return partidos
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.crear_partidos_playoff)

    async def procesar_resultado(self, playoff_id: int, resultado: models.ResultadoPartido) -> schemas.Playoffs:
        """Guarda el resultado en el playoff y en su partido; A es el lado superior, B el inferior"""
        try:
            playoff = await self.get_by_id(playoff_id)
            if not playoff:
                raise PlayoffException(f"Playoff {playoff_id} no encontrado")

            datos = resultado.model_dump(
                mode='json',
                include={'equipo_ganador', 'sets_equipo_a', 'sets_equipo_b', 'games_equipo_a', 'games_equipo_b'}
            )
            playoff.resultado = datos
            playoff.estado = ESTADO_JUGADO

            if playoff.partido_id:
                partido = self.db.get(schemas.Partidos, playoff.partido_id)
                if partido:
                    partido.estado = models.EstadoPartido.JUGADO.value
                    partido.equipo_ganador = datos['equipo_ganador']
                    partido.sets_equipo_a = datos['sets_equipo_a']
                    partido.sets_equipo_b = datos['sets_equipo_b']
                    partido.games_equipo_a = datos['games_equipo_a']
                    partido.games_equipo_b = datos['games_equipo_b']
                    partido.resultado_detallado = datos

            self.db.commit()
            self.db.refresh(playoff)

            return playoff
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.procesar_resultado)

    async def _movimientos_aplicados(self, playoff: schemas.Playoffs) -> bool:
        jugadores = playoff.jugadores_superiores() + playoff.jugadores_inferiores()
        try:
            stmt = select(schemas.AscensosDescensos.id).where(
                schemas.AscensosDescensos.etapa_id == playoff.etapa_id,
                schemas.AscensosDescensos.division_origen_id == playoff.division_origen_id,
                schemas.AscensosDescensos.motivo == models.MotivoMovimiento.PLAYOFF.value,
                schemas.AscensosDescensos.usuario_id.in_(jugadores)
            )
            return self.db.execute(stmt).first() is not None
        except Exception as error:
            handle_error(error, self._movimientos_aplicados)

    async def aplicar_ascensos_descensos(self, playoff_id: int) -> Dict[str, List[schemas.AscensosDescensos]]:
        """
        Ganadores del playoff ascienden y perdedores descienden, con motivo
        'playoff' y promedio pendiente de recálculo.
        """
        playoff = await self.get_by_id(playoff_id)
        if not playoff:
            raise PlayoffException(f"Playoff {playoff_id} no encontrado")
        if playoff.estado != ESTADO_JUGADO:
            raise PlayoffException("El playoff debe estar jugado para aplicar cambios")
        if await self._movimientos_aplicados(playoff):
            raise PlayoffException(f"Los movimientos del playoff {playoff_id} ya fueron aplicados")

        if (playoff.resultado or {}).get('equipo_ganador') == models.Equipo.A.value:
            ganadores, perdedores = playoff.jugadores_superiores(), playoff.jugadores_inferiores()
        else:
            ganadores, perdedores = playoff.jugadores_inferiores(), playoff.jugadores_superiores()

        destino = playoff.division_destino_id or playoff.division_origen_id
        repo = RepositorioAscensoDescenso(self.db)
        cambios = {'ascensos': [], 'descensos': []}

        for usuario_id in ganadores:
            cambios['ascensos'].append(await repo.aplicar_cambio_division(
                usuario_id, playoff.division_origen_id, destino,
                models.TipoMovimiento.ASCENSO.value, playoff.etapa_id,
                motivo=models.MotivoMovimiento.PLAYOFF.value
            ))

        for usuario_id in perdedores:
            cambios['descensos'].append(await repo.aplicar_cambio_division(
                usuario_id, playoff.division_origen_id, destino,
                models.TipoMovimiento.DESCENSO.value, playoff.etapa_id,
                motivo=models.MotivoMovimiento.PLAYOFF.value
            ))

        logger.info(f"Playoff {playoff_id} aplicado: {len(cambios['ascensos'])} ascensos, {len(cambios['descensos'])} descensos")
        return cambios
