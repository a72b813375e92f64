"""Root logger setup: one marked stream handler, plain or JSON lines.

Only the handler added here is replaced on reconfiguration, so handlers
installed by others (pytest caplog, for one) stay attached.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

NOISY_LIBRARIES = ("httpx", "httpcore", "openai", "urllib3")


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 (concise)
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    level: str = "WARNING",
    fmt: str = "plain",
    verbose: bool = False,
    log_libraries: bool = False,
) -> None:
    level_value = getattr(logging, level.upper(), logging.WARNING)
    root = logging.getLogger()
    root.setLevel(level_value)

    # Remove only handlers previously added by this configurator so pytest's
    # caplog and other external handlers stay attached.
    for existing in list(root.handlers):
        if getattr(existing, "_st_handler", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    if fmt.lower() == "json":
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
    setattr(handler, "_st_handler", True)
    root.addHandler(handler)

    verbose_enabled = verbose or (
        os.environ.get("SCALETRACK_VERBOSE", "").strip().lower() in {"1", "true", "yes", "on"}
    )
    package_level = logging.DEBUG if verbose_enabled else logging.NOTSET
    logging.getLogger("scaletrack").setLevel(package_level)

    for noisy in NOISY_LIBRARIES:
        if log_libraries:
            logging.getLogger(noisy).setLevel(level_value)
        else:
            logging.getLogger(noisy).setLevel(max(level_value, logging.WARNING))
