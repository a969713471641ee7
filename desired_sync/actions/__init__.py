"""
Acciones externas intercambiables.
"""
from config import Config
from ..errors import ConfigurationMissing
from .base import ActionResult, ExternalAction, NodeGroupScaling
from .awscli import AwsCliAction
from .eks_api import EksApiAction

BACKENDS = ("awscli", "boto3")


def build_action(backend: str = None) -> ExternalAction:
    """
    Crea la acción externa configurada.

    Args:
        backend: "awscli" o "boto3" (por defecto Config.SYNC_BACKEND)

    Raises:
        ConfigurationMissing: si el backend no existe
    """
    backend = (backend or Config.SYNC_BACKEND or "").lower()

    if backend == "awscli":
        return AwsCliAction()
    if backend == "boto3":
        return EksApiAction()

    raise ConfigurationMissing(
        f"Backend desconocido '{backend}' (opciones: {', '.join(BACKENDS)})"
    )


__all__ = [
    "ActionResult",
    "ExternalAction",
    "NodeGroupScaling",
    "AwsCliAction",
    "EksApiAction",
    "BACKENDS",
    "build_action",
]
