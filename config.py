"""
Configuración central del sincronizador de desired_size.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Configuración global del sistema."""

    # AWS
    AWS_REGION = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION")
    AWS_PROFILE = os.getenv("AWS_PROFILE")

    # Node group objetivo
    EKS_CLUSTER_NAME = os.getenv("EKS_CLUSTER_NAME")
    EKS_NODEGROUP_NAME = os.getenv("EKS_NODEGROUP_NAME")
    DESIRED_SIZE = os.getenv("DESIRED_SIZE")

    # Acción externa: "awscli" o "boto3"
    SYNC_BACKEND = os.getenv("SYNC_BACKEND", "awscli")
    AWS_CLI = os.getenv("AWS_CLI", "aws")
    AWS_CLI_TIMEOUT = int(os.getenv("AWS_CLI_TIMEOUT", "60"))

    # Cache and state
    CACHE_DIR = Path(os.getenv("SYNC_CACHE_DIR", ".cache"))
    STATE_FILE = CACHE_DIR / "state.json"
    LOCK_DIR = CACHE_DIR / "locks"
    STATE_LOCK_TIMEOUT = float(os.getenv("STATE_LOCK_TIMEOUT", "10"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
    LOG_FILE = os.getenv("LOG_FILE")

    @classmethod
    def ensure_cache_dir(cls):
        """Crear directorio de cache si no existe."""
        cls.CACHE_DIR.mkdir(parents=True, exist_ok=True)
