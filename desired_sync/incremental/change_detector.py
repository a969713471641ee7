"""
Detector de cambios entre el desired_size declarado y el último aplicado.
"""
from enum import Enum
from typing import Dict, Optional
from ..discovery import ResourceHandle
from .state_manager import StateManager


class SyncStatus(str, Enum):
    """Estado de un node group respecto a su trigger."""

    IN_SYNC = "InSync"
    PENDING_UPDATE = "PendingUpdate"


class ChangeDetector:
    """Decide si hace falta ejecutar la acción externa."""

    def __init__(self, state_manager: StateManager = None):
        """
        Inicializa el detector de cambios.

        Args:
            state_manager: Gestor de estado
        """
        self.state_manager = state_manager or StateManager()

    def get_status(self, handle: ResourceHandle, desired: int) -> SyncStatus:
        """
        Compara el valor deseado con el trigger registrado.

        Sin registro previo el estado es siempre PendingUpdate.
        """
        recorded = self.state_manager.get_recorded(handle)
        if recorded is not None and recorded == desired:
            return SyncStatus.IN_SYNC
        return SyncStatus.PENDING_UPDATE

    def get_sync_strategy(
        self, handle: ResourceHandle, desired: int, force: bool = False
    ) -> Dict:
        """
        Determina qué hará la siguiente pasada.

        Args:
            handle: Node group
            desired: desired_size declarado
            force: Ignorar el trigger registrado

        Returns:
            Diccionario con estrategia:
                - needs_update: bool - si se invocará la acción externa
                - status: SyncStatus
                - recorded: int | None - último valor aplicado
                - desired: int
                - reason: str - razón de la estrategia
        """
        recorded: Optional[int] = self.state_manager.get_recorded(handle)
        status = self.get_status(handle, desired)

        if force:
            reason = f"Forzado: se reaplica desired_size={desired}"
        elif recorded is None:
            reason = "Primera ejecución - no hay trigger registrado"
        elif status is SyncStatus.IN_SYNC:
            reason = f"Sin cambios (desired_size={desired})"
        else:
            reason = f"desired_size cambió: {recorded} -> {desired}"

        return {
            "needs_update": force or status is SyncStatus.PENDING_UPDATE,
            "status": status,
            "recorded": recorded,
            "desired": desired,
            "reason": reason,
        }
