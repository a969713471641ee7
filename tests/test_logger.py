import logging

from desired_sync.utils.logger import ROOT_LOGGER, get_logger, resolve_level, setup_logger


def _own_handlers(logger):
    return [h for h in logger.handlers if getattr(h, "_desired_sync_handler", False)]


def test_resolve_level():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level("nonsense") == logging.WARNING
    assert resolve_level(None) == logging.WARNING
    assert resolve_level("WARNING", verbose=True) == logging.INFO
    assert resolve_level("DEBUG", verbose=True) == logging.DEBUG


def test_setup_logger_replaces_handlers(tmp_path):
    log_file = tmp_path / "logs" / "sync.log"

    setup_logger("WARNING", log_file=log_file)
    logger = setup_logger("WARNING", log_file=log_file, verbose=True)

    assert logger.name == ROOT_LOGGER
    assert logger.level == logging.INFO
    assert len(_own_handlers(logger)) == 2

    get_logger("desired_sync.reconcile").info("pasada completada")
    for handler in _own_handlers(logger):
        handler.flush()
    assert "pasada completada" in log_file.read_text()

    setup_logger("WARNING")
    assert len(_own_handlers(logger)) == 1
