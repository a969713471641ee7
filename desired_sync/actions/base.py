"""
Interfaz de la acción externa que aplica el desired_size.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from dataclasses import dataclass, field
from ..discovery import ResourceHandle


@dataclass
class ActionResult:
    """Resultado síncrono de una invocación externa."""

    success: bool
    message: str = ""
    invalid_value: bool = False  # el sistema externo rechazó el valor
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NodeGroupScaling:
    """Configuración de escalado actual de un node group."""

    min_size: int
    max_size: int
    desired_size: int
    status: str = ""

    @classmethod
    def from_nodegroup(cls, nodegroup: Dict) -> "NodeGroupScaling":
        """Construye desde la respuesta de DescribeNodegroup (clave 'nodegroup')."""
        scaling = nodegroup.get("scalingConfig", {})
        return cls(
            min_size=scaling.get("minSize", 0),
            max_size=scaling.get("maxSize", 0),
            desired_size=scaling.get("desiredSize", 0),
            status=nodegroup.get("status", ""),
        )


class ExternalAction(ABC):
    """Acción externa: (handle, desired_size) -> éxito/fallo."""

    name = "external"

    @abstractmethod
    def apply(self, handle: ResourceHandle, desired_size: int) -> ActionResult:
        """
        Envía desired_size al node group.

        Los fallos esperados (API, exit code) se devuelven como
        ActionResult(success=False); no se reintenta.
        """

    def describe(self, handle: ResourceHandle) -> Optional[NodeGroupScaling]:
        """Lee la configuración de escalado actual, si el backend lo soporta."""
        return None
