"""
Reconciliación con trigger: aplica desired_size una sola vez por cada valor distinto.
"""
from enum import Enum
from pathlib import Path
from typing import Optional
from dataclasses import dataclass
from ..actions import ExternalAction
from ..discovery import ResourceHandle
from ..errors import ExternalActionFailed, InvalidDesiredValue
from ..incremental import ChangeDetector, HandleLock, StateManager
from ..utils.logger import get_logger


class Action(str, Enum):
    """Qué hizo una pasada de reconciliación."""

    NOOP = "noop"
    UPDATED = "updated"


@dataclass
class ReconcileResult:
    """Resultado de una pasada."""

    handle: ResourceHandle
    desired: int
    previous: Optional[int]
    action: Action
    reason: str = ""

    @property
    def changed(self) -> bool:
        return self.action is Action.UPDATED


def validate_desired(desired, handle: ResourceHandle = None) -> int:
    """
    Valida que desired_size sea un entero no negativo.

    Los límites min/max los valida EKS, no este componente.
    """
    if isinstance(desired, bool) or not isinstance(desired, int):
        raise InvalidDesiredValue(desired, handle, "desired_size debe ser un entero")
    if desired < 0:
        raise InvalidDesiredValue(desired, handle, "desired_size no puede ser negativo")
    return desired


class Reconciler:
    """Actualizador externo controlado por trigger."""

    def __init__(
        self,
        action: ExternalAction,
        state_manager: StateManager = None,
        lock_dir: Path = None
    ):
        """
        Args:
            action: Acción externa a invocar
            state_manager: Gestor del estado de triggers
            lock_dir: Directorio de locks por handle
        """
        self.action = action
        self.state_manager = state_manager or StateManager()
        self.detector = ChangeDetector(self.state_manager)
        self.lock_dir = lock_dir
        self.logger = get_logger(__name__)

        # Métricas de operación
        self.metrics = {
            "passes": 0,
            "external_calls": 0,
            "noops": 0,
            "failures": 0,
        }

    def reconcile(
        self, handle: ResourceHandle, desired: int, force: bool = False
    ) -> ReconcileResult:
        """
        Ejecuta una pasada de reconciliación.

        Si desired coincide con el trigger registrado no hace nada. Si no,
        invoca la acción externa exactamente una vez y sólo registra el
        nuevo valor cuando la acción informa éxito.

        Args:
            handle: Node group objetivo
            desired: desired_size declarado
            force: Reaplicar aunque el trigger coincida

        Returns:
            ReconcileResult

        Raises:
            InvalidDesiredValue: valor inválido o rechazado por EKS
            ExternalActionFailed: la acción externa falló
            StateLocked: otra pasada tiene el handle
        """
        validate_desired(desired, handle)
        self.metrics["passes"] += 1

        with HandleLock(handle, self.lock_dir):
            # Releer bajo lock: otra pasada pudo haber registrado un valor
            self.state_manager.reload()
            strategy = self.detector.get_sync_strategy(handle, desired, force=force)
            previous = strategy["recorded"]

            if not strategy["needs_update"]:
                self.metrics["noops"] += 1
                self.logger.info("%s: %s", handle, strategy["reason"])
                return ReconcileResult(handle, desired, previous, Action.NOOP, strategy["reason"])

            self.logger.info("%s: %s, invocando %s", handle, strategy["reason"], self.action.name)
            self.metrics["external_calls"] += 1
            result = self.action.apply(handle, desired)

            if not result.success:
                self.metrics["failures"] += 1
                self.logger.error(
                    "%s: la acción %s falló para desired_size=%s: %s",
                    handle, self.action.name, desired, result.message
                )
                error_cls = InvalidDesiredValue if result.invalid_value else ExternalActionFailed
                raise error_cls(desired, handle, result.message)

            self.state_manager.record(handle, desired, backend=self.action.name)

        self.logger.info("%s: trigger registrado desired_size=%s", handle, desired)
        return ReconcileResult(handle, desired, previous, Action.UPDATED, strategy["reason"])
