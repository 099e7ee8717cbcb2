import os
from dotenv import load_dotenv

load_dotenv()


class ConfigCircuito:
    """Configuraciones específicas del circuito"""

    # Cupos de ascenso/descenso por defecto (sin fila de configuración)
    CUPOS_PORCENTAJE_DEFECTO = 20
    CUPOS_MINIMO_DEFECTO = 2
    CUPOS_MAXIMO_DEFECTO = 10
    JUGADORES_PLAYOFF_DEFECTO = 4

    # Ponderación del promedio final
    PESO_PROMEDIO_INDIVIDUAL = '0.7'
    PESO_PROMEDIO_GENERAL = '0.2'
    BONUS_POR_JUGAR = '0.1'
    PROMEDIO_FINAL_MAXIMO = 1

    # Victorias contra mejores parejas: top N del ranking
    TOP_MEJORES_PAREJAS = 3

    # Playoff
    MINIMO_JUGADORES_PLAYOFF = 4

    # Estados de un cruce de playoff
    ESTADOS_PLAYOFF = ('pendiente', 'jugado')

    # Entorno
    ARCHIVO_ERRORES = os.getenv('CIRCUITOOKA_ARCHIVO_ERRORES', 'errores_circuitooka.log')
    ZONA_HORARIA = os.getenv('CIRCUITOOKA_TZ', 'America/Argentina/Buenos_Aires')
