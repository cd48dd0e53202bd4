"""
Engine configuration.

Loaded from a YAML mapping such as:

    charset: utf-8
    escape_single_quotes: true
    max_depth: 100
    strict_partials: false
    partials_dir: partials
    partials_extension: .mustache
"""

from __future__ import annotations

import codecs
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .context import DEFAULT_MAX_DEPTH
from .errors import ConfigError

_yaml = YAML(typ="safe")


@dataclass
class EngineConfig:
    charset: str = "utf-8"
    escape_single_quotes: bool = True
    max_depth: int = DEFAULT_MAX_DEPTH
    strict_partials: bool = False
    partials_dir: Optional[Path] = None
    partials_extension: str = ".mustache"

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "EngineConfig":
        """
        Create a config from a mapping (usually parsed YAML).

        Args:
            data: Raw settings
            base_dir: Directory relative partials_dir values are resolved against

        Raises:
            ConfigError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        cfg = cls()
        if "charset" in data:
            cfg.charset = _expect(data, "charset", str)
            try:
                codecs.lookup(cfg.charset)
            except LookupError:
                raise ConfigError(f"Unknown charset '{cfg.charset}'")
        if "escape_single_quotes" in data:
            cfg.escape_single_quotes = _expect(data, "escape_single_quotes", bool)
        if "max_depth" in data:
            cfg.max_depth = _expect(data, "max_depth", int)
            if cfg.max_depth < 1:
                raise ConfigError("max_depth must be at least 1")
        if "strict_partials" in data:
            cfg.strict_partials = _expect(data, "strict_partials", bool)
        if data.get("partials_dir") is not None:
            partials_dir = Path(_expect(data, "partials_dir", str))
            if base_dir is not None and not partials_dir.is_absolute():
                partials_dir = base_dir / partials_dir
            cfg.partials_dir = partials_dir
        if "partials_extension" in data:
            cfg.partials_extension = _expect(data, "partials_extension", str)
        return cfg

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        if self.partials_dir is not None:
            result["partials_dir"] = str(self.partials_dir)
        return result


def _expect(data: Dict[str, Any], key: str, tp: type) -> Any:
    value = data[key]
    # bool is an int subclass; reject it where a number is expected
    if not isinstance(value, tp) or (tp is int and isinstance(value, bool)):
        raise ConfigError(f"Config key '{key}' must be {tp.__name__}, got {type(value).__name__}")
    return value


def load_config(path: Path) -> EngineConfig:
    """
    Read an EngineConfig from a YAML file.

    Relative partials_dir values are resolved against the file's directory.

    Raises:
        ConfigError: If the file is missing, unparsable or invalid
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
    except YAMLError as e:
        raise ConfigError(f"Failed to parse {path}: {e}")
    if not isinstance(raw, dict):
        raise ConfigError(f"YAML must be a mapping: {path}")
    return EngineConfig.from_dict(raw, base_dir=path.parent)


__all__ = ["EngineConfig", "load_config"]
