"""
Locks de estado: una pasada por node group y una escritura a la vez por archivo de estado.
"""
import os
import re
import time
import threading
from pathlib import Path
from datetime import datetime
from config import Config
from ..discovery import ResourceHandle
from ..errors import StateLocked
from ..utils.logger import get_logger

logger = get_logger(__name__)

_process_locks = {}
_process_locks_guard = threading.Lock()


def _process_lock(key: str) -> threading.Lock:
    with _process_locks_guard:
        return _process_locks.setdefault(key, threading.Lock())


def lock_path(lock_dir: Path, handle: ResourceHandle) -> Path:
    """Ruta del archivo de lock de un handle."""
    safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", handle.key)
    return Path(lock_dir) / f"{safe_key}.lock"


class FileLock:
    """
    Lock exclusivo respaldado por un archivo.

    Combina un threading.Lock (mismo proceso) con un archivo creado con
    O_EXCL (entre procesos). Con timeout=0 no espera: si el lock está
    tomado lanza StateLocked.
    """

    poll_interval = 0.05

    def __init__(self, path: Path, description: str, timeout: float = 0):
        self.path = Path(path)
        self.description = description
        self.timeout = timeout
        self._thread_lock = _process_lock(str(self.path.absolute()))
        self._held = False

    def _busy(self) -> StateLocked:
        return StateLocked(f"{self.description} está bloqueado por {self.path} ({self._read_owner()})")

    def _try_create(self) -> bool:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False

        try:
            with os.fdopen(fd, "w") as f:
                f.write(f"pid={os.getpid()} at={datetime.now().isoformat()}\n")
        except OSError:
            self.path.unlink()
            raise
        return True

    def acquire(self):
        deadline = time.monotonic() + self.timeout

        if self.timeout > 0:
            acquired = self._thread_lock.acquire(timeout=self.timeout)
        else:
            acquired = self._thread_lock.acquire(blocking=False)
        if not acquired:
            raise StateLocked(f"Hay otra operación en curso sobre {self.description}")

        try:
            while not self._try_create():
                if time.monotonic() >= deadline:
                    raise self._busy()
                time.sleep(self.poll_interval)
        except BaseException:
            self._thread_lock.release()
            raise

        self._held = True
        logger.debug("Lock adquirido: %s", self.path)

    def release(self):
        if not self._held:
            return
        try:
            self.path.unlink()
        except FileNotFoundError:
            logger.warning("El archivo de lock %s desapareció antes de liberarlo", self.path)
        finally:
            self._held = False
            self._thread_lock.release()
        logger.debug("Lock liberado: %s", self.path)

    def _read_owner(self) -> str:
        try:
            return self.path.read_text().strip()
        except OSError:
            return "propietario desconocido"

    def __enter__(self):
        """Context manager enter."""
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.release()


class HandleLock(FileLock):
    """Lock de un node group durante toda la pasada de reconciliación. No espera."""

    def __init__(self, handle: ResourceHandle, lock_dir: Path = None):
        """
        Args:
            handle: Node group a bloquear
            lock_dir: Directorio de archivos de lock
        """
        self.handle = handle
        self.lock_dir = Path(lock_dir or Config.LOCK_DIR)
        super().__init__(lock_path(self.lock_dir, handle), str(handle))

    def _busy(self) -> StateLocked:
        return StateLocked(
            f"{self.handle} está bloqueado por {self.path} "
            f"({self._read_owner()}); usa force-unlock si es un lock huérfano"
        )


class StateFileLock(FileLock):
    """
    Lock del archivo de estado, sólo durante leer-modificar-escribir.

    Todos los handles comparten el archivo, así que cada escritura relee
    el estado bajo este lock antes de reemplazarlo.
    """

    def __init__(self, state_file: Path, timeout: float = None):
        state_file = Path(state_file)
        super().__init__(
            state_file.with_name(state_file.name + ".lock"),
            f"el archivo de estado {state_file}",
            timeout=Config.STATE_LOCK_TIMEOUT if timeout is None else timeout,
        )


def held_locks(lock_dir: Path = None):
    """Archivos de lock de handles presentes en el directorio."""
    lock_dir = Path(lock_dir or Config.LOCK_DIR)
    if not lock_dir.exists():
        return []
    return sorted(lock_dir.glob("*.lock"))


def force_unlock(handle: ResourceHandle, lock_dir: Path = None) -> bool:
    """
    Elimina un archivo de lock huérfano.

    Returns:
        True si había un lock
    """
    path = lock_path(Path(lock_dir or Config.LOCK_DIR), handle)
    if not path.exists():
        return False
    path.unlink()
    logger.warning("Lock eliminado manualmente: %s", path)
    return True
