"""
Acción externa vía API de EKS (boto3).
"""
from typing import Optional
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from config import Config
from ..discovery import ResourceHandle
from ..errors import ExternalActionFailed
from ..utils.logger import get_logger
from .base import ActionResult, ExternalAction, NodeGroupScaling

logger = get_logger(__name__)


class EksApiAction(ExternalAction):
    """Llama a UpdateNodegroupConfig directamente con boto3."""

    name = "boto3"

    def __init__(self, client=None, profile: str = None):
        """
        Args:
            client: Cliente EKS ya creado (opcional)
            profile: Perfil AWS para la sesión
        """
        self._client = client
        self.profile = profile or Config.AWS_PROFILE
        self._clients = {}

    def client_for(self, handle: ResourceHandle):
        """Cliente EKS para la región del handle."""
        if self._client is not None:
            return self._client

        region = handle.region
        if region not in self._clients:
            session = boto3.session.Session(profile_name=self.profile)
            self._clients[region] = session.client("eks", region_name=region)
        return self._clients[region]

    def apply(self, handle: ResourceHandle, desired_size: int) -> ActionResult:
        logger.info("UpdateNodegroupConfig %s desiredSize=%s", handle, desired_size)

        try:
            response = self.client_for(handle).update_nodegroup_config(
                clusterName=handle.cluster_name,
                nodegroupName=handle.nodegroup_name,
                scalingConfig={"desiredSize": desired_size},
            )
        except ClientError as e:
            error = e.response.get("Error", {})
            code = error.get("Code", "")
            return ActionResult(
                success=False,
                message=f"{code}: {error.get('Message', str(e))}",
                invalid_value=code == "InvalidParameterException",
                details={"code": code},
            )
        except BotoCoreError as e:
            return ActionResult(False, str(e))

        update = response.get("update", {})
        return ActionResult(
            True,
            "UpdateNodegroupConfig aceptado",
            details={"update_id": update.get("id"), "update_status": update.get("status")},
        )

    def describe(self, handle: ResourceHandle) -> Optional[NodeGroupScaling]:
        try:
            response = self.client_for(handle).describe_nodegroup(
                clusterName=handle.cluster_name,
                nodegroupName=handle.nodegroup_name,
            )
        except (ClientError, BotoCoreError) as e:
            raise ExternalActionFailed(None, handle, e) from e

        return NodeGroupScaling.from_nodegroup(response.get("nodegroup", {}))
