from datetime import datetime, timezone
import logging
import sys
import traceback
import pytz

from circuitooka.utils import utils
from circuitooka.utils.config_circuito import ConfigCircuito
from circuitooka.utils.exceptions_circuito import CircuitoException, ErrorBaseDatos

TZ_CIRCUITO = pytz.timezone(ConfigCircuito.ZONA_HORARIA)

logger = logging.getLogger(__name__)


def handle_error(error, function):
    """
    Registra y vuelve a lanzar el error capturado en un repositorio.

    Los errores de dominio (CircuitoException) y los ya envueltos pasan tal cual;
    cualquier otro se considera falla de la base de datos y se lanza como
    ErrorBaseDatos encadenando la causa original.
    """
    if isinstance(error, (CircuitoException, ErrorBaseDatos)):
        raise error

    utc_dt = datetime.now(timezone.utc)
    fecha_error = utc_dt.astimezone(TZ_CIRCUITO)
    exc_type, exc_value, exc_traceback = sys.exc_info()
    filename = exc_traceback.tb_frame.f_code.co_filename if exc_traceback else None
    line_no = exc_traceback.tb_lineno if exc_traceback else None

    logger.error(f"Error en {function.__name__} ({filename}:{line_no}): {error}")
    utils.grabar_error_archivo({
        "error": traceback.format_exc(),
        "funcion": function.__name__,
        "fecha": str(fecha_error),
    })
    raise ErrorBaseDatos(function.__name__, error) from error
