"""
Logging del sincronizador.

Todo cuelga del logger raíz del paquete ("desired_sync"); los módulos piden
su logger con get_logger(__name__) y heredan sus handlers. La salida va a
stderr para no mezclarse con las tablas de rich.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER = "desired_sync"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Marca los handlers propios para poder reemplazarlos sin tocar los ajenos
_HANDLER_ATTR = "_desired_sync_handler"


def resolve_level(level: Union[int, str, None], verbose: bool = False) -> int:
    """
    Nivel efectivo: --verbose fuerza al menos INFO; un nombre desconocido cae en WARNING.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    if verbose:
        level = min(level, logging.INFO)
    return level


def _build_handlers(log_file: Optional[Path]):
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_ATTR, True)
    return handlers


def setup_logger(
    level: Union[int, str, None] = None,
    log_file: Path = None,
    verbose: bool = False,
) -> logging.Logger:
    """
    Configura el logger raíz del sincronizador.

    Puede llamarse varias veces (una por invocación del CLI): los handlers
    instalados antes se cierran y se sustituyen, así que nunca se duplican
    líneas ni queda abierto un LOG_FILE anterior.

    Args:
        level: Nivel por nombre o numérico (LOG_LEVEL)
        log_file: Archivo de log opcional (LOG_FILE)
        verbose: Si es True el nivel baja al menos a INFO

    Returns:
        El logger raíz del paquete
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(resolve_level(level, verbose))

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_ATTR, False):
            logger.removeHandler(handler)
            handler.close()

    for handler in _build_handlers(log_file):
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger de un módulo del paquete."""
    return logging.getLogger(name)
