from decimal import Decimal, ROUND_HALF_UP
from typing import List, Dict, Any, Iterable, Optional, Set, Tuple
import math

from circuitooka.utils.config_circuito import ConfigCircuito
from circuitooka.utils.exceptions_circuito import JugadoresInsuficientesException

DOS_DECIMALES = Decimal('0.01')


def _valor(fila: Any, campo: str, defecto: Any = 0) -> Any:
    """Lee un campo de una fila ORM o de un dict"""
    if isinstance(fila, dict):
        valor = fila.get(campo, defecto)
    else:
        valor = getattr(fila, campo, defecto)
    return defecto if valor is None else valor


class UtilsCircuito:
    """Cálculos puros del circuito: promedios, cupos, bandas y cuadro de playoff"""

    # ---------------------- Redondeo ----------------------

    @staticmethod
    def redondear(valor, decimales: Decimal = DOS_DECIMALES) -> float:
        """Redondeo half-up a 2 decimales (0.075 -> 0.08)"""
        return float(Decimal(str(valor)).quantize(decimales, rounding=ROUND_HALF_UP))

    @staticmethod
    def redondear_entero(valor) -> int:
        return int(Decimal(str(valor)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))

    # ---------------------- Promedios ----------------------

    @staticmethod
    def calcular_promedio_individual(partidos_ganados: int, partidos_jugados: int) -> float:
        """partidos_ganados / partidos_jugados; 0 si no jugó"""
        if not partidos_jugados:
            return 0
        return UtilsCircuito.redondear(Decimal(partidos_ganados or 0) / Decimal(partidos_jugados))

    @staticmethod
    def calcular_promedio_general(partidos_ganados: int, partidos_division: int) -> float:
        """partidos_ganados / partidos_division; 0 si la división no tiene partidos jugados"""
        if not partidos_division:
            return 0
        return UtilsCircuito.redondear(Decimal(partidos_ganados or 0) / Decimal(partidos_division))

    @staticmethod
    def calcular_minimo_requerido(partidos_division: int, jugadores_inscriptos: int) -> int:
        """ceil(partidos_division / (jugadores_inscriptos / 2)); 0 sin inscriptos"""
        if not jugadores_inscriptos:
            return 0
        return math.ceil(Decimal(partidos_division or 0) / (Decimal(jugadores_inscriptos) / 2))

    @staticmethod
    def validar_minimo_requerido(partidos_jugados: int, minimo_requerido: int) -> bool:
        return (partidos_jugados or 0) >= (minimo_requerido or 0)

    @staticmethod
    def calcular_bonus_por_jugar(partidos_jugados: int, minimo_requerido: int) -> float:
        if UtilsCircuito.validar_minimo_requerido(partidos_jugados, minimo_requerido):
            return float(Decimal(ConfigCircuito.BONUS_POR_JUGAR))
        return 0

    @staticmethod
    def calcular_promedio_final(promedio_individual: float, promedio_general: float, bonus: float) -> float:
        """min(1, round(pi*0.7 + pg*0.2 + bonus, 2))"""
        promedio = (
            Decimal(str(promedio_individual or 0)) * Decimal(ConfigCircuito.PESO_PROMEDIO_INDIVIDUAL)
            + Decimal(str(promedio_general or 0)) * Decimal(ConfigCircuito.PESO_PROMEDIO_GENERAL)
            + Decimal(str(bonus or 0))
        )
        return min(ConfigCircuito.PROMEDIO_FINAL_MAXIMO, UtilsCircuito.redondear(promedio))

    @staticmethod
    def calcular_todos_los_promedios(partidos_ganados: int = 0, partidos_jugados: int = 0,
                                     partidos_division: int = 0, jugadores_inscriptos: int = 0) -> Dict[str, Any]:
        """Calcula todos los promedios de un jugador a partir de los conteos"""
        promedio_individual = UtilsCircuito.calcular_promedio_individual(partidos_ganados, partidos_jugados)
        promedio_general = UtilsCircuito.calcular_promedio_general(partidos_ganados, partidos_division)
        minimo_requerido = UtilsCircuito.calcular_minimo_requerido(partidos_division, jugadores_inscriptos)
        bonus = UtilsCircuito.calcular_bonus_por_jugar(partidos_jugados, minimo_requerido)

        return {
            'promedio_individual': promedio_individual,
            'promedio_general': promedio_general,
            'bonus_por_jugar': bonus,
            'promedio_final': UtilsCircuito.calcular_promedio_final(promedio_individual, promedio_general, bonus),
            'minimo_requerido': minimo_requerido,
            'cumple_minimo': UtilsCircuito.validar_minimo_requerido(partidos_jugados, minimo_requerido),
            'partidos_ganados': partidos_ganados,
            'partidos_jugados': partidos_jugados,
        }

    # ---------------------- Cupos y orden ----------------------

    @staticmethod
    def calcular_cupos(jugadores_inscriptos: int, porcentaje: float, minimo: int, maximo: int) -> int:
        """clamp(round(inscriptos * porcentaje / 100), minimo, maximo)"""
        calculados = UtilsCircuito.redondear_entero(
            Decimal(jugadores_inscriptos or 0) * Decimal(str(porcentaje)) / 100
        )
        return max(minimo, min(maximo, calculados))

    @staticmethod
    def clave_orden_canonico(fila: Any) -> Tuple:
        """promedio_final, diferencia_sets, diferencia_games, victorias_mejores_parejas (todos desc)"""
        return (
            -float(_valor(fila, 'promedio_final')),
            -_valor(fila, 'diferencia_sets'),
            -_valor(fila, 'diferencia_games'),
            -_valor(fila, 'victorias_mejores_parejas'),
            _valor(fila, 'id'),
        )

    @staticmethod
    def ordenar_canonico(filas: Iterable[Any]) -> List[Any]:
        return sorted(filas, key=UtilsCircuito.clave_orden_canonico)

    @staticmethod
    def ids_usuarios(filas: Iterable[Any]) -> Set[int]:
        return {_valor(f, 'usuario_id', None) for f in filas}

    # ---------------------- Bandas ----------------------

    @staticmethod
    def banda_ascenso(ordenados: List[Any], cupos: int) -> List[Any]:
        """Primeros `cupos` que cumplen el mínimo"""
        if cupos <= 0:
            return []
        return [f for f in ordenados if _valor(f, 'cumple_minimo', False)][:cupos]

    @staticmethod
    def banda_descenso(ordenados: List[Any], cupos: int, ids_ascenso: Set[int]) -> List[Any]:
        """Últimos `cupos` de la tabla completa, sin los que ascienden"""
        if cupos <= 0:
            return []
        filtrados = [f for f in ordenados if _valor(f, 'usuario_id', None) not in ids_ascenso]
        return filtrados[-cupos:]

    @staticmethod
    def banda_playoff_descenso(ordenados: List[Any], cupos_descenso: int, jugadores_playoff: int,
                               ids_ascenso: Set[int], ids_descenso: Set[int]) -> List[Any]:
        """
        Jugadores justo por encima de la línea de descenso.

        Sobre la tabla sin los que ascienden toma el tramo
        [total - cupos_descenso - jugadores_playoff, total - cupos_descenso - 1];
        si el inicio queda negativo no hay zona de playoff.
        """
        sin_ascensos = [f for f in ordenados if _valor(f, 'usuario_id', None) not in ids_ascenso]
        total = len(sin_ascensos)
        if total <= cupos_descenso:
            return []

        inicio = total - cupos_descenso - jugadores_playoff
        fin = total - cupos_descenso - 1
        if inicio < 0 or fin < inicio:
            return []

        return [f for f in sin_ascensos[inicio:fin + 1] if _valor(f, 'usuario_id', None) not in ids_descenso]

    @staticmethod
    def cantidad_playoff_ascenso(total_cumplen_minimo: int, cupos_ascenso: int, jugadores_playoff: int) -> int:
        """Cuántos entran al playoff de ascenso después de la línea de corte"""
        if total_cumplen_minimo <= cupos_ascenso:
            return 0
        return max(0, min(jugadores_playoff, total_cumplen_minimo - cupos_ascenso))

    # ---------------------- Playoff ----------------------

    @staticmethod
    def formar_parejas_playoff(jugadores: List[Any]) -> List[Dict[str, Optional[int]]]:
        """Mejor contra peor, segundo contra anteúltimo, ..."""
        if not jugadores or len(jugadores) < ConfigCircuito.MINIMO_JUGADORES_PLAYOFF:
            raise JugadoresInsuficientesException(len(jugadores or []))

        ordenados = UtilsCircuito.ordenar_canonico(jugadores)
        total = len(ordenados)

        parejas = []
        for i in range(total // 2):
            superior = ordenados[i]
            inferior = ordenados[total - 1 - i]
            parejas.append({
                'jugador_1_superior_id': _valor(superior, 'usuario_id', None),
                'jugador_2_superior_id': None,
                'jugador_1_inferior_id': _valor(inferior, 'usuario_id', None),
                'jugador_2_inferior_id': None,
            })
        return parejas
