import logging
import sys
from rasterkit.kernel.system.config import APP_CONFIG

_ROOT_NAME = "rasterkit"
_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger(_ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(APP_CONFIG.log_format))
        root.addHandler(handler)
    root.setLevel(APP_CONFIG.log_level)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Module logger under the shared 'rasterkit' root.
    """
    _configure_root()
    if name != _ROOT_NAME and not name.startswith(f"{_ROOT_NAME}."):
        name = f"{_ROOT_NAME}.{name}"
    return logging.getLogger(name)
