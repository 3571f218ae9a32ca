"""Config module.

  - load_config(defaults, file_path) -> dict   (defaults < file < env)
  - providers for composing other sources
"""

from __future__ import annotations

from .loader import DEFAULTS, load_config  # noqa: F401
from .providers import (  # noqa: F401
    ConfigManager,
    ConfigProvider,
    DictProvider,
    EnvProvider,
    FileProvider,
    coerce_value,
    deep_merge,
)

__all__ = [
    "DEFAULTS",
    "load_config",
    "ConfigProvider",
    "ConfigManager",
    "DictProvider",
    "EnvProvider",
    "FileProvider",
    "coerce_value",
    "deep_merge",
]
