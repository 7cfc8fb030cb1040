"""Configuration loading from Python modules.

Configuration lives in plain Python modules (``configs/credential_backends.py``,
``configs/portfolio.py``) that expose a named dict. Modules are imported with
importlib so a deployment can point at its own module without code changes.

Entries of a ``CONFIGURATION`` dict may extend another entry through the
``__inherits__`` key.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any

logger = logging.getLogger(__name__)

INHERITS_KEY = "__inherits__"


class ConfigError(Exception):
    """Raised when configuration loading or resolution fails."""

    pass


def load_config_from_module(
    module_path: str,
    config_name: str = "CONFIGURATION",
    default: Any | None = None,
) -> Any:
    """Import ``module_path`` and return its ``config_name`` attribute.

    Args:
        module_path: Dotted module path (e.g., "configs.credential_backends")
        config_name: Attribute holding the configuration object
        default: Value returned when the module or attribute is unavailable

    Returns:
        The configuration object, or ``default``

    Examples:
        >>> backends = load_config_from_module("configs.credential_backends")
        >>> policy = load_config_from_module("configs.portfolio", "CLASSIFICATION")
    """
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        logger.warning(f"Could not import config module '{module_path}': {e}")
        return default

    if not hasattr(module, config_name):
        logger.warning(f"Config module '{module_path}' has no attribute '{config_name}'")
        return default

    logger.debug(f"Loaded configuration from {module_path}.{config_name}")
    return getattr(module, config_name)


def resolve_config_inheritance(config_dict: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any]]:
    """Expand ``__inherits__`` references into fully populated entries.

    A child entry starts from a copy of its resolved parent and overrides any
    keys it defines itself. Chains of any depth are supported.

    Args:
        config_dict: Named configuration entries

    Returns:
        A new dict with every entry resolved and ``__inherits__`` removed

    Raises:
        ConfigError: On circular inheritance or a missing parent

    Examples:
        >>> resolved = resolve_config_inheritance({
        ...     "mongodb": {"type": "mongodb", "host": "localhost", "database": "qtrack"},
        ...     "atlas": {"__inherits__": "mongodb", "uri": "mongodb+srv://cluster0"},
        ... })
        >>> resolved["atlas"]["database"]
        'qtrack'
    """
    resolved_configs: dict[str, dict[str, Any]] = {}

    def _resolve(name: str, chain: tuple[str, ...]) -> dict[str, Any]:
        if name in chain:
            raise ConfigError(f"Circular inheritance detected: {' -> '.join(chain + (name,))}")
        if name in resolved_configs:
            return resolved_configs[name]

        config = config_dict[name]
        parent_name = config.get(INHERITS_KEY)
        if parent_name is None:
            resolved = dict(config)
        else:
            if parent_name not in config_dict:
                raise ConfigError(
                    f"Configuration '{name}' inherits from '{parent_name}', "
                    f"but '{parent_name}' not found"
                )
            resolved = dict(_resolve(parent_name, chain + (name,)))
            resolved.update({k: v for k, v in config.items() if k != INHERITS_KEY})
            logger.debug(f"Resolved inheritance for '{name}' from '{parent_name}'")

        resolved_configs[name] = resolved
        return resolved

    for name in config_dict:
        _resolve(name, ())

    return resolved_configs


def load_and_resolve_config(
    module_path: str,
    config_name: str = "CONFIGURATION",
    default: dict[str, dict[str, Any]] | None = None,
) -> dict[str, dict[str, Any]]:
    """Load a named-entry configuration dict and resolve its inheritance.

    Returns ``default`` (or an empty dict) when the module cannot supply a dict.
    """
    raw_config = load_config_from_module(module_path, config_name, default)

    if not isinstance(raw_config, dict):
        logger.warning(f"Invalid configuration loaded from {module_path}, using default")
        return default or {}

    resolved = resolve_config_inheritance(raw_config)
    logger.info(f"Loaded and resolved {len(resolved)} configurations from {module_path}")
    return resolved
