"""Config providers.

Each provider returns a plain dict; `ConfigManager` merges them in order so
later providers override earlier ones (defaults < file < env). The CLI applies
its own flags on top of the merged result.
"""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Protocol, runtime_checkable


@runtime_checkable
class ConfigProvider(Protocol):
    name: str

    def load(self) -> Dict[str, Any]:
        """Return the provider config as a plain dict."""
        ...


def deep_merge(a: Dict[str, Any], b: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge mapping b into dict a (recursive for dict values)."""
    for k, v in b.items():
        if isinstance(v, Mapping) and isinstance(a.get(k), Mapping):
            a[k] = deep_merge(dict(a[k]), v)
        else:
            a[k] = v
    return a


def _set_nested(d: Dict[str, Any], keys: List[str], value: Any) -> None:
    cur = d
    for k in keys[:-1]:
        if not isinstance(cur.get(k), dict):
            cur[k] = {}
        cur = cur[k]
    cur[keys[-1]] = value


def coerce_value(s: str) -> Any:
    """Best-effort typing of an environment string: bool, int, float, JSON, else str."""
    sl = s.strip().lower()
    if sl in {"true", "yes", "on"}:
        return True
    if sl in {"false", "no", "off"}:
        return False
    for cast in (int, float):
        try:
            return cast(sl)
        except ValueError:
            pass
    if (sl.startswith("{") and sl.endswith("}")) or (sl.startswith("[") and sl.endswith("]")):
        try:
            return json.loads(s)
        except json.JSONDecodeError:
            return s
    return s


@dataclass
class DictProvider:
    name: str = "dict"
    data: Dict[str, Any] = field(default_factory=dict)

    def load(self) -> Dict[str, Any]:
        return dict(self.data)


@dataclass
class EnvProvider:
    """Reads WAVECOUNT_* variables and builds a nested dict via the '__' separator.

    Example:
      WAVECOUNT_ENGINE__ZIGZAG_PCT=2.5
    becomes:
      {"engine": {"zigzag_pct": 2.5}}
    """

    name: str = "env"
    prefix: str = "WAVECOUNT_"
    sep: str = "__"

    def load(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for k, v in sorted(os.environ.items()):
            if not k.startswith(self.prefix):
                continue
            parts = [p.strip().lower() for p in k[len(self.prefix):].split(self.sep) if p.strip()]
            if not parts:
                continue
            _set_nested(out, parts, coerce_value(v))
        return out


@dataclass
class FileProvider:
    """Reads a .json or .toml config file."""

    name: str = "file"
    path: str = ""
    optional: bool = True

    def load(self) -> Dict[str, Any]:
        if not self.path:
            return {}
        if not os.path.exists(self.path):
            if self.optional:
                return {}
            raise FileNotFoundError(self.path)

        with open(self.path, "rb") as f:
            raw = f.read()

        p = self.path.lower()
        if p.endswith(".toml"):
            return tomllib.loads(raw.decode("utf-8"))
        if p.endswith(".json"):
            return json.loads(raw.decode("utf-8"))
        raise ValueError(f"Unsupported config format: {self.path} (use .toml or .json)")


@dataclass
class ConfigManager:
    """Compose providers in precedence order (later overrides earlier)."""

    providers: List[ConfigProvider]

    def load(self) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for p in self.providers:
            payload = p.load()
            if payload:
                deep_merge(merged, payload)
        return merged
