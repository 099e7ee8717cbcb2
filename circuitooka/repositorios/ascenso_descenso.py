from sqlalchemy import select, delete, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from circuitooka.database import models, schemas
from circuitooka.repositorios.configuracion import RepositorioConfiguracion
from circuitooka.repositorios.division import RepositorioDivision
from circuitooka.repositorios.inscripcion import RepositorioInscripcion
from circuitooka.repositorios.ranking import RepositorioRanking
from circuitooka.utils.error_handler import handle_error
from circuitooka.utils.exceptions_circuito import EtapaEnProcesoException, EtapaException
from circuitooka.utils.utils_circuito import UtilsCircuito
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

class RepositorioAscensoDescenso:
    """
    Cupos, bandas de ascenso/descenso/playoff y procesamiento de cierre de etapa.

    Todas las bandas se calculan sobre el orden canónico del ranking:
    promedio_final, diferencia_sets, diferencia_games y
    victorias_mejores_parejas, todos descendentes.
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------------------- Cupos ----------------------

    async def calcular_cupos(self, etapa_id: int, division_id: int) -> Dict[str, int]:
        """Los cupos de ascenso y descenso de una división son siempre iguales"""
        config = await RepositorioConfiguracion(self.db).resolver(etapa_id, division_id)
        inscriptos = await RepositorioInscripcion(self.db).contar_activas(etapa_id, division_id)

        cupos = UtilsCircuito.calcular_cupos(
            inscriptos,
            config.cupos_ascenso_porcentaje,
            config.cupos_ascenso_minimo,
            config.cupos_ascenso_maximo
        )

        return {
            'cupos_ascenso': cupos,
            'cupos_descenso': cupos,
            'jugadores_inscriptos': inscriptos
        }

    # ---------------------- Bandas ----------------------

    async def identificar_ascenso(self, etapa_id: int, division_id: int, cupos: int) -> List[schemas.Rankings]:
        """Los mejores `cupos` jugadores que cumplen el mínimo"""
        ordenados = await RepositorioRanking(self.db).listar_ordenado(etapa_id, division_id)
        return UtilsCircuito.banda_ascenso(ordenados, cupos)

    async def identificar_descenso(self, etapa_id: int, division_id: int, cupos: int) -> List[schemas.Rankings]:
        """
        Los últimos `cupos` de la tabla completa.

        Quienes ascienden desde esta misma división (con sus propios cupos) no
        pueden descender; los que no cumplen el mínimo sí participan.
        """
        propios = await self.calcular_cupos(etapa_id, division_id)
        ascenso = await self.identificar_ascenso(etapa_id, division_id, propios['cupos_ascenso'])

        ordenados = await RepositorioRanking(self.db).listar_ordenado(etapa_id, division_id)
        return UtilsCircuito.banda_descenso(ordenados, cupos, UtilsCircuito.ids_usuarios(ascenso))

    async def identificar_playoff(self, etapa_id: int, division_id: int) -> Dict[str, List[schemas.Rankings]]:
        """Zonas de playoff de ascenso y de descenso de una división"""
        config = await RepositorioConfiguracion(self.db).resolver(etapa_id, division_id)
        jugadores_playoff = config.jugadores_playoff_por_division
        cupos = await self.calcular_cupos(etapa_id, division_id)

        ascenso = await self.identificar_ascenso(etapa_id, division_id, cupos['cupos_ascenso'])
        descenso = await self.identificar_descenso(etapa_id, division_id, cupos['cupos_descenso'])
        ids_ascenso = UtilsCircuito.ids_usuarios(ascenso)
        ids_descenso = UtilsCircuito.ids_usuarios(descenso)

        ordenados = await RepositorioRanking(self.db).listar_ordenado(etapa_id, division_id)
        cumplen = [r for r in ordenados if r.cumple_minimo]

        playoff_ascenso = []
        cantidad = UtilsCircuito.cantidad_playoff_ascenso(len(cumplen), cupos['cupos_ascenso'], jugadores_playoff)
        if cantidad > 0:
            inicio = cupos['cupos_ascenso']
            playoff_ascenso = [
                r for r in cumplen[inicio:inicio + cantidad]
                if r.usuario_id not in ids_ascenso and r.usuario_id not in ids_descenso
            ]

        playoff_descenso = UtilsCircuito.banda_playoff_descenso(
            ordenados, cupos['cupos_descenso'], jugadores_playoff, ids_ascenso, ids_descenso
        )

        return {
            'playoff_ascenso': playoff_ascenso,
            'playoff_descenso': playoff_descenso
        }

    async def obtener_resumen_division(self, etapa_id: int, division_id: int,
                                       tipo: Optional[str] = None) -> Dict[str, Any]:
        """Cupos y bandas de la división; sin filtro de tipo incluye también las zonas de playoff"""
        cupos = await self.calcular_cupos(etapa_id, division_id)
        resumen: Dict[str, Any] = {'cupos': cupos}

        ascenso = await self.identificar_ascenso(etapa_id, division_id, cupos['cupos_ascenso'])
        if tipo in (None, models.TipoMovimiento.ASCENSO.value):
            resumen['ascenso'] = ascenso

        if tipo in (None, models.TipoMovimiento.DESCENSO.value):
            descenso = await self.identificar_descenso(etapa_id, division_id, cupos['cupos_descenso'])
            ids_ascenso = UtilsCircuito.ids_usuarios(ascenso)
            resumen['descenso'] = [r for r in descenso if r.usuario_id not in ids_ascenso]

        if tipo is None:
            resumen.update(await self.identificar_playoff(etapa_id, division_id))

        return resumen

    # ---------------------- Movimientos ----------------------

    async def aplicar_cambio_division(self, usuario_id: int, division_origen_id: int, division_destino_id: int,
                                      tipo: str, etapa_id: int, promedio_final: Optional[float] = None,
                                      posicion_origen: Optional[int] = None,
                                      motivo: str = models.MotivoMovimiento.AUTOMATICO.value) -> schemas.AscensosDescensos:
        """Registra un movimiento; el registro no se modifica después"""
        try:
            movimiento = schemas.AscensosDescensos(
                etapa_id=etapa_id,
                usuario_id=usuario_id,
                division_origen_id=division_origen_id,
                division_destino_id=division_destino_id,
                tipo_movimiento=tipo,
                motivo=motivo,
                promedio_final=promedio_final,
                posicion_origen=posicion_origen
            )

            self.db.add(movimiento)
            self.db.commit()
            self.db.refresh(movimiento)

            return movimiento
        except Exception as error:
            self.db.rollback()
            handle_error(error, self.aplicar_cambio_division)

    async def listar_movimientos(self, etapa_id: Optional[int] = None,
                                 tipo: Optional[str] = None) -> List[schemas.AscensosDescensos]:
        """Auditoría de movimientos, más recientes primero"""
        try:
            stmt = select(schemas.AscensosDescensos)

            if etapa_id:
                stmt = stmt.where(schemas.AscensosDescensos.etapa_id == etapa_id)
            if tipo:
                stmt = stmt.where(schemas.AscensosDescensos.tipo_movimiento == tipo)

            stmt = stmt.order_by(desc(schemas.AscensosDescensos.fecha_movimiento), desc(schemas.AscensosDescensos.id))

            return self.db.execute(stmt).scalars().all()
        except Exception as error:
            handle_error(error, self.listar_movimientos)

    # ---------------------- Bloqueo por etapa ----------------------

    async def _tomar_bloqueo(self, etapa_id: int, propietario: Optional[str] = None):
        try:
            self.db.add(schemas.BloqueosEtapa(etapa_id=etapa_id, propietario=propietario))
            self.db.commit()
            logger.info(f"Bloqueo tomado para la etapa {etapa_id}")
        except IntegrityError:
            self.db.rollback()
            raise EtapaEnProcesoException(etapa_id)
        except Exception as error:
            self.db.rollback()
            handle_error(error, self._tomar_bloqueo)

    async def _liberar_bloqueo(self, etapa_id: int):
        try:
            self.db.execute(delete(schemas.BloqueosEtapa).where(schemas.BloqueosEtapa.etapa_id == etapa_id))
            self.db.commit()
            logger.info(f"Bloqueo liberado para la etapa {etapa_id}")
        except Exception as error:
            self.db.rollback()
            handle_error(error, self._liberar_bloqueo)

    # ---------------------- Proceso completo ----------------------

    async def procesar_ascensos_descensos(self, etapa_id: int, propietario: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        """
        Procesa los ascensos y descensos de toda la etapa.

        Recorre las divisiones de arriba hacia abajo; para cada división N con
        una superior N-1, los mejores de N ascienden a N-1 y los últimos de N-1
        descienden a N usando los cupos de N. Cada jugador movido deja un
        registro con motivo 'automatico'. Las zonas de playoff de N se
        informan en el resumen.

        La etapa queda bloqueada mientras dura el proceso; una segunda
        ejecución concurrente recibe EtapaEnProcesoException. Si falla a
        mitad de camino, los movimientos ya registrados se conservan.
        """
        if not self.db.get(schemas.Etapas, etapa_id):
            raise EtapaException(f"Etapa {etapa_id} no encontrada")

        await self._tomar_bloqueo(etapa_id, propietario)
        try:
            repo_division = RepositorioDivision(self.db)
            divisiones = await repo_division.get_all(activas_solo=False)
            cambios = {'ascensos': [], 'descensos': [], 'playoffs': []}

            for division_actual in divisiones:
                division_superior = await repo_division.get_superior(division_actual.id)
                if division_superior is None:
                    continue

                cupos = await self.calcular_cupos(etapa_id, division_actual.id)
                logger.info(
                    f"Etapa {etapa_id}: división {division_actual.numero_division} "
                    f"con {cupos['jugadores_inscriptos']} inscriptos y {cupos['cupos_ascenso']} cupos"
                )

                jugadores_ascenso = await self.identificar_ascenso(etapa_id, division_actual.id, cupos['cupos_ascenso'])
                jugadores_descenso = await self.identificar_descenso(etapa_id, division_superior.id, cupos['cupos_descenso'])

                for jugador in jugadores_ascenso:
                    await self.aplicar_cambio_division(
                        jugador.usuario_id, division_actual.id, division_superior.id,
                        models.TipoMovimiento.ASCENSO.value, etapa_id,
                        jugador.promedio_final, jugador.posicion_ranking
                    )
                    cambios['ascensos'].append({
                        'usuario_id': jugador.usuario_id,
                        'division_origen': division_actual.numero_division,
                        'division_destino': division_superior.numero_division
                    })

                for jugador in jugadores_descenso:
                    await self.aplicar_cambio_division(
                        jugador.usuario_id, division_superior.id, division_actual.id,
                        models.TipoMovimiento.DESCENSO.value, etapa_id,
                        jugador.promedio_final, jugador.posicion_ranking
                    )
                    cambios['descensos'].append({
                        'usuario_id': jugador.usuario_id,
                        'division_origen': division_superior.numero_division,
                        'division_destino': division_actual.numero_division
                    })

                zonas = await self.identificar_playoff(etapa_id, division_actual.id)
                cambios['playoffs'].append({
                    'division': division_actual.numero_division,
                    'playoff_ascenso': zonas['playoff_ascenso'],
                    'playoff_descenso': zonas['playoff_descenso']
                })

            logger.info(
                f"Etapa {etapa_id} procesada: {len(cambios['ascensos'])} ascensos, "
                f"{len(cambios['descensos'])} descensos"
            )
        except Exception:
            # el error original tiene prioridad sobre una falla al liberar
            try:
                await self._liberar_bloqueo(etapa_id)
            except Exception as error_bloqueo:
                logger.error(f"No se pudo liberar el bloqueo de la etapa {etapa_id}: {error_bloqueo}")
            raise

        await self._liberar_bloqueo(etapa_id)
        return cambios
