"""
Acción externa vía AWS CLI (aws eks update-nodegroup-config).
"""
import json
import subprocess
from typing import List, Optional
from config import Config
from ..discovery import ResourceHandle
from ..errors import ExternalActionFailed
from ..utils.logger import get_logger
from .base import ActionResult, ExternalAction, NodeGroupScaling

logger = get_logger(__name__)


class AwsCliAction(ExternalAction):
    """Ejecuta el AWS CLI como un provisioner local-exec."""

    name = "awscli"

    def __init__(self, executable: str = None, profile: str = None, timeout: int = None):
        """
        Args:
            executable: Binario del AWS CLI
            profile: Perfil AWS (--profile)
            timeout: Segundos máximos por invocación
        """
        self.executable = executable or Config.AWS_CLI
        self.profile = profile or Config.AWS_PROFILE
        self.timeout = timeout or Config.AWS_CLI_TIMEOUT

    def build_command(self, handle: ResourceHandle, args: List[str]) -> List[str]:
        cmd = [self.executable, "eks"] + args + [
            "--cluster-name", handle.cluster_name,
            "--nodegroup-name", handle.nodegroup_name,
            "--output", "json",
        ]
        if handle.region:
            cmd.extend(["--region", handle.region])
        if self.profile:
            cmd.extend(["--profile", self.profile])
        return cmd

    def _run(self, cmd: List[str]) -> subprocess.CompletedProcess:
        logger.info("Ejecutando: %s", " ".join(cmd))
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=self.timeout,
        )

    def apply(self, handle: ResourceHandle, desired_size: int) -> ActionResult:
        cmd = self.build_command(
            handle,
            ["update-nodegroup-config", "--scaling-config", f"desiredSize={desired_size}"],
        )

        try:
            result = self._run(cmd)
        except FileNotFoundError:
            return ActionResult(False, f"No se encontró el ejecutable '{self.executable}'")
        except subprocess.TimeoutExpired:
            return ActionResult(False, f"Timeout tras {self.timeout}s esperando al AWS CLI")

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            return ActionResult(
                success=False,
                message=stderr or f"exit code {result.returncode}",
                invalid_value="InvalidParameterException" in stderr,
                details={"returncode": result.returncode},
            )

        details = {}
        if result.stdout:
            try:
                update = json.loads(result.stdout).get("update", {})
                details = {"update_id": update.get("id"), "update_status": update.get("status")}
            except (ValueError, AttributeError):
                details = {"stdout": result.stdout.strip()}

        return ActionResult(True, "update-nodegroup-config aceptado", details=details)

    def describe(self, handle: ResourceHandle) -> Optional[NodeGroupScaling]:
        cmd = self.build_command(handle, ["describe-nodegroup"])

        try:
            result = self._run(cmd)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            raise ExternalActionFailed(None, handle, e) from e

        if result.returncode != 0:
            raise ExternalActionFailed(None, handle, (result.stderr or "").strip())

        try:
            data = json.loads(result.stdout)
        except ValueError as e:
            raise ExternalActionFailed(None, handle, f"respuesta no es JSON: {e}") from e

        return NodeGroupScaling.from_nodegroup(data.get("nodegroup", {}))
