import json
import logging
from circuitooka.utils.config_circuito import ConfigCircuito

logger = logging.getLogger(__name__)


def grabar_error_archivo(registro: dict, archivo: str = None):
    """Agrega el registro de error (una línea JSON) al archivo de errores"""
    destino = archivo or ConfigCircuito.ARCHIVO_ERRORES
    try:
        with open(destino, 'a', encoding='utf-8') as f:
            f.write(json.dumps(registro, ensure_ascii=False, default=str) + '\n')
    except OSError:
        logger.warning(f"No se pudo escribir en el archivo de errores {destino}")
