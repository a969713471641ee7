"""
Gestión del estado persistente de los triggers aplicados.
"""
import json
import os
from pathlib import Path
from typing import Dict, List, Optional
from datetime import datetime
from config import Config
from ..discovery import ResourceHandle
from ..errors import StateError
from ..utils.logger import get_logger
from .lock import StateFileLock

STATE_VERSION = 1

logger = get_logger(__name__)


def _empty_state() -> Dict:
    return {
        "version": STATE_VERSION,
        "last_update": None,
        "triggers": {},  # handle.key -> record
    }


class StateManager:
    """Gestiona el último desired_size aplicado por cada node group."""

    def __init__(self, state_file: Path = None):
        """
        Inicializa el gestor de estado.

        Args:
            state_file: Ruta al archivo de estado
        """
        if state_file is None:
            Config.ensure_cache_dir()
            self.state_file = Config.STATE_FILE
        else:
            self.state_file = Path(state_file)
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
        self.state = self._load_state()

    def _load_state(self) -> Dict:
        """
        Carga el estado desde el archivo.

        Un archivo corrupto no se reinicia: perder los triggers provocaría
        volver a ejecutar acciones externas ya aplicadas.

        Returns:
            Diccionario con el estado

        Raises:
            StateError: si el archivo no es legible o no es JSON válido
        """
        if not self.state_file.exists():
            return _empty_state()

        try:
            with open(self.state_file, "r") as f:
                state = json.load(f)
        except (OSError, ValueError) as e:
            raise StateError(f"Error cargando estado {self.state_file}: {e}") from e

        if not isinstance(state, dict) or not isinstance(state.get("triggers"), dict):
            raise StateError(f"Formato de estado inválido en {self.state_file}")

        if state.get("version", STATE_VERSION) > STATE_VERSION:
            raise StateError(
                f"Versión de estado {state['version']} no soportada (máximo {STATE_VERSION})"
            )

        return state

    def _write_state(self, state: Dict):
        """Escribe el estado al archivo de forma atómica."""
        state["version"] = STATE_VERSION
        state["last_update"] = datetime.now().isoformat()

        tmp_file = self.state_file.with_name(self.state_file.name + ".tmp")
        try:
            with open(tmp_file, "w") as f:
                json.dump(state, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_file, self.state_file)
        except OSError as e:
            raise StateError(f"Error guardando estado {self.state_file}: {e}") from e

        logger.debug("Estado guardado en %s", self.state_file)

    def reload(self):
        """Relee el estado desde disco."""
        self.state = self._load_state()

    def get_record(self, handle: ResourceHandle) -> Dict:
        """
        Obtiene el registro guardado de un handle.

        Args:
            handle: Node group

        Returns:
            Registro del trigger, vacío si nunca se aplicó
        """
        return self.state["triggers"].get(handle.key, {})

    def get_recorded(self, handle: ResourceHandle) -> Optional[int]:
        """Último desired_size aplicado con éxito, o None."""
        return self.get_record(handle).get("desired_size")

    def _update(self, mutate):
        """
        Aplica un cambio sobre el estado en disco bajo el lock del archivo.

        Relee el archivo antes de modificarlo, de modo que los registros que
        otras pasadas guardaron entretanto no se pierden.

        Args:
            mutate: Función que recibe el estado fresco y lo modifica

        Returns:
            Lo que devuelva mutate
        """
        with StateFileLock(self.state_file):
            state = self._load_state()
            outcome = mutate(state)
            self._write_state(state)
            self.state = state
        return outcome

    def record(self, handle: ResourceHandle, desired_size: int, backend: str = None):
        """
        Registra y persiste un desired_size aplicado con éxito.

        Args:
            handle: Node group
            desired_size: Valor aplicado
            backend: Nombre de la acción externa que lo aplicó
        """
        data = handle.to_dict()
        data.update({
            "desired_size": desired_size,
            "applied_at": datetime.now().isoformat(),
            "backend": backend,
        })

        def mutate(state):
            state["triggers"][handle.key] = data

        self._update(mutate)

    def forget(self, handle: ResourceHandle) -> bool:
        """
        Elimina y persiste la baja del trigger de un handle.

        Returns:
            True si existía
        """
        return self._update(
            lambda state: state["triggers"].pop(handle.key, None) is not None
        )

    def list_records(self) -> List[Dict]:
        """Registros ordenados por clave."""
        return [
            dict(record, key=key)
            for key, record in sorted(self.state["triggers"].items())
        ]

    def clear_state(self):
        """Limpia todo el estado."""
        with StateFileLock(self.state_file):
            self.state = _empty_state()
            if self.state_file.exists():
                self.state_file.unlink()
