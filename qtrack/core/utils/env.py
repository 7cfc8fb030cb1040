from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def load_env_file_if_present(path: str | Path = ".env", override: bool = False) -> dict[str, str]:
    """Load KEY=VALUE pairs from a .env file into os.environ if the file exists.

    Used for settings such as ``DB_PASSWORD`` or ``QTRACK_CREDENTIAL_BACKEND``.
    Blank lines and ``#`` comments are skipped, an optional leading ``export``
    is accepted and surrounding quotes are stripped. Existing variables win
    unless ``override`` is set.

    Returns the parsed key-values, whether or not they were applied.
    """
    env_path = Path(path)
    loaded: dict[str, str] = {}
    if not env_path.exists():
        return loaded

    for raw in env_path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if override or key not in os.environ:
            os.environ[key] = value
        loaded[key] = value

    logger.debug(f"Loaded {len(loaded)} variables from {env_path}")
    return loaded


def env_int(key: str, default: int) -> int:
    """Read a positive integer from the environment, falling back to ``default``."""
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {key}={value!r}, using {default}")
        return default
    if parsed < 1:
        logger.warning(f"Ignoring non-positive {key}={parsed}, using {default}")
        return default
    return parsed
