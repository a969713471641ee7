"""
Errores del sincronizador.
"""


class SyncError(Exception):
    """Error base del sincronizador."""


class ExternalActionFailed(SyncError):
    """La acción externa no terminó con éxito; el trigger no se actualiza."""

    def __init__(self, value, handle=None, error=None):
        self.value = value
        self.handle = handle
        self.error = error
        target = f" en {handle}" if handle is not None else ""
        detail = f": {error}" if error else ""
        if value is None:
            super().__init__(f"Falló la consulta{target}{detail}")
        else:
            super().__init__(f"Falló la actualización a desired_size={value}{target}{detail}")


class InvalidDesiredValue(ExternalActionFailed):
    """El valor deseado fue rechazado, localmente o por el sistema externo."""


class ConfigurationMissing(SyncError):
    """Falta configuración obligatoria (cluster, node group, backend...)."""


class StateError(SyncError):
    """El archivo de estado no se puede leer o escribir."""


class StateLocked(StateError):
    """Otra pasada de reconciliación tiene el lock del handle."""
