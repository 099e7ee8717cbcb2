from circuitooka.utils.config_circuito import ConfigCircuito


class CircuitoException(Exception):
    """Excepción base del circuito"""
    pass

class EtapaException(CircuitoException):
    """Excepciones relacionadas a etapas"""
    pass

class DivisionException(CircuitoException):
    """Excepciones relacionadas a divisiones"""
    pass

class InscripcionException(CircuitoException):
    """Excepciones relacionadas a inscripciones"""
    pass

class PartidoException(CircuitoException):
    """Excepciones relacionadas a partidos"""
    pass

class PlayoffException(CircuitoException):
    """Excepciones relacionadas a playoffs"""
    pass

class ConfiguracionException(CircuitoException):
    """Excepciones relacionadas a la configuración de cupos"""
    pass

class ResultadoInvalidoException(PartidoException):
    """Resultado de partido o playoff incompleto"""
    def __init__(self, motivo: str):
        super().__init__(f"Resultado inválido: {motivo}")

class JugadoresInsuficientesException(PlayoffException):
    """No alcanzan los jugadores para armar el cuadro de playoff"""
    def __init__(self, cantidad: int):
        super().__init__(
            f"No hay suficientes jugadores para formar parejas de playoff: "
            f"{cantidad} (mínimo {ConfigCircuito.MINIMO_JUGADORES_PLAYOFF})"
        )

class EtapaEnProcesoException(EtapaException):
    """Otra ejecución de ascensos/descensos tiene tomada la etapa"""
    def __init__(self, etapa_id: int):
        super().__init__(f"La etapa {etapa_id} ya está procesando ascensos y descensos")


class ErrorBaseDatos(Exception):
    """Falla de la base de datos; conserva la causa original en __cause__"""
    def __init__(self, funcion: str, error: Exception):
        self.funcion = funcion
        self.error = error
        super().__init__(f"Error en {funcion}: {error}")
