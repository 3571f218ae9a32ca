from __future__ import annotations

from typing import Any, Dict, Optional

from .providers import ConfigManager, DictProvider, EnvProvider, FileProvider

DEFAULTS: Dict[str, Any] = {
    "engine": {},
    "batch": {"max_bars": 365},
    "log": {"level": "info", "json": False},
}


def load_config(
    defaults: Optional[Dict[str, Any]] = None,
    file_path: Optional[str] = None,
    *,
    use_env: bool = True,
    env_prefix: str = "WAVECOUNT_",
) -> Dict[str, Any]:
    """Load layered config: defaults < file < env.

    A missing file is an error here: the caller asked for it explicitly.
    """
    providers = [DictProvider(data=dict(DEFAULTS if defaults is None else defaults))]
    if file_path:
        providers.append(FileProvider(path=file_path, optional=False))
    if use_env:
        providers.append(EnvProvider(prefix=env_prefix))
    return ConfigManager(providers).load()
