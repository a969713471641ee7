"""
Identificación del node group objetivo.
"""
from typing import Dict, Optional
from dataclasses import dataclass, asdict
from config import Config
from ..errors import ConfigurationMissing


@dataclass(frozen=True)
class ResourceHandle:
    """Referencia inmutable a un node group de EKS."""

    cluster_name: str
    nodegroup_name: str
    region: Optional[str] = None

    @property
    def key(self) -> str:
        """Clave del handle dentro del archivo de estado."""
        return f"{self.region or 'default'}/{self.cluster_name}/{self.nodegroup_name}"

    def to_dict(self) -> Dict:
        """Convierte el handle a diccionario."""
        return asdict(self)

    def __str__(self) -> str:
        return self.key


def resolve_handle(
    cluster_name: str = None,
    nodegroup_name: str = None,
    region: str = None,
) -> ResourceHandle:
    """
    Construye el handle a partir de argumentos o de la configuración.

    Args:
        cluster_name: Nombre del cluster EKS
        nodegroup_name: Nombre del node group
        region: Región AWS

    Returns:
        Handle resuelto

    Raises:
        ConfigurationMissing: si falta el cluster o el node group
    """
    cluster_name = cluster_name or Config.EKS_CLUSTER_NAME
    nodegroup_name = nodegroup_name or Config.EKS_NODEGROUP_NAME
    region = region or Config.AWS_REGION

    missing = []
    if not cluster_name:
        missing.append("cluster (--cluster / EKS_CLUSTER_NAME)")
    if not nodegroup_name:
        missing.append("node group (--nodegroup / EKS_NODEGROUP_NAME)")
    if missing:
        raise ConfigurationMissing("Falta configuración: " + ", ".join(missing))

    return ResourceHandle(cluster_name, nodegroup_name, region)
