"""
Logging for the achievement pipeline.

Every message carries the call's run id and the pipeline layer that wrote it:

    [run:1a2b3c4d] [extraction] Extracted 3 achievement(s) in 1 attempt(s)

Set DEBUG_MODE=true (or call set_global_debug_mode) for DEBUG level on every
pipeline logger created afterwards.
"""

import logging
import os
import sys
from typing import Optional


_GLOBAL_DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"

_FORMATS = {
    "simple": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    # Parseable by log aggregators in CI
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}',
}


def set_global_debug_mode(enabled: bool) -> None:
    global _GLOBAL_DEBUG_MODE
    _GLOBAL_DEBUG_MODE = enabled


class PipelineLogger:
    """
    Wraps a stdlib logger and prefixes messages with run and layer context.

    Loggers are cheap: a module keeps one per layer and calls bind() to get
    a per-call logger tagged with that call's run id.
    """

    def __init__(
        self,
        name: str,
        run_id: Optional[str] = None,
        layer: Optional[str] = None,
        debug_mode: Optional[bool] = None,
    ):
        self.logger = logging.getLogger(name)
        self.run_id = run_id
        self.layer = layer
        self._debug_mode = _GLOBAL_DEBUG_MODE if debug_mode is None else debug_mode

        if self._debug_mode:
            self.logger.setLevel(logging.DEBUG)

    def bind(self, run_id: Optional[str] = None, layer: Optional[str] = None) -> "PipelineLogger":
        """Return a logger sharing this one's name with a different context."""
        return PipelineLogger(
            self.logger.name,
            run_id=run_id if run_id is not None else self.run_id,
            layer=layer if layer is not None else self.layer,
            debug_mode=self._debug_mode,
        )

    @property
    def prefix(self) -> str:
        parts = []
        if self.run_id:
            parts.append(f"[run:{self.run_id[:8]}]")
        if self.layer:
            parts.append(f"[{self.layer}]")
        return " ".join(parts)

    def log(self, level: int, message: str, **kwargs) -> None:
        prefix = self.prefix
        self.logger.log(level, f"{prefix} {message}" if prefix else message, **kwargs)

    def debug(self, message: str, **kwargs):
        self.log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self.log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self.log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self.log(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log at ERROR with the active exception's traceback."""
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, message, **kwargs)


def setup_logging(level: str = "INFO", format: str = "simple") -> None:
    """
    Configure the root logger to write to stdout.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: "simple" or "json"
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(_FORMATS.get(format, _FORMATS["simple"]), datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(
    name: str,
    run_id: Optional[str] = None,
    layer: Optional[str] = None,
    debug_mode: Optional[bool] = None,
) -> PipelineLogger:
    return PipelineLogger(name, run_id, layer, debug_mode)
