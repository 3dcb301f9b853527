"""
relaunch configuration management (layered YAML + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from relaunch.core.exceptions import ConfigError
from relaunch.core.utils.io import iter_yaml_files, read_yaml
from relaunch.core.utils.merge import deep_merge
from relaunch.core.utils.paths import get_project_config_dir, resolve_project_root
from relaunch.data import get_data_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "RELAUNCH_"
# Environment variables with the prefix that are not configuration overrides.
_RESERVED_ENV = {"RELAUNCH_PROJECT_ROOT"}


class ConfigManager:
    """Load, merge, and validate relaunch configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: RELAUNCH_<SECTION>__<KEY>
    2. Project config: <repo_root>/.relaunch/config/*.yaml (alphabetical order)
    3. Bundled defaults: relaunch.data/config/*.yaml (alphabetical order)
    """

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root) if repo_root is not None else resolve_project_root()
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = get_project_config_dir(self.repo_root) / "config"

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Fail closed: configuration must never silently ignore invalid YAML.
        data = read_yaml(path, default={}, raise_on_error=True)
        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping: {path}", context={"path": str(path)})
        return data

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        for path in iter_yaml_files(directory):
            cfg = deep_merge(cfg, self.load_yaml(path))
        return cfg

    # ---------- environment overrides ----------

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX) or key in _RESERVED_ENV:
                continue
            raw = key[len(ENV_PREFIX):]
            segs = [s.lower() for s in raw.split("__")]
            if not raw or any(not s for s in segs):
                logger.warning("Ignoring malformed override %s", key)
                continue
            yield segs, self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[str], value: Any) -> None:
        cur: Dict[str, Any] = root
        for i, part in enumerate(path):
            # Case-insensitive match so RELAUNCH_CLIENT__STITCHASYNCCODE hits stitchAsyncCode.
            lower_map = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
            use_key = lower_map.get(part, part)
            if i == len(path) - 1:
                cur[use_key] = value
                return
            nxt = cur.get(use_key)
            if not isinstance(nxt, dict):
                nxt = {}
                cur[use_key] = nxt
            cur = nxt

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, typed_value in self._iter_env_overrides():
            self._set_nested(cfg, path, typed_value)

    # ---------- loading ----------

    def validate_schema(self, config: Dict[str, Any]) -> None:
        from relaunch.core.schemas.validation import SchemaValidationError, validate_payload

        try:
            validate_payload(config, "config.schema.yaml")
        except SchemaValidationError as exc:
            raise ConfigError(str(exc), context={"repo_root": str(self.repo_root)}) from exc

    def _load_config_uncached(self, validate: bool = False) -> Dict[str, Any]:
        cfg: Dict[str, Any] = {}
        cfg = self._load_directory(self.core_config_dir, cfg)
        cfg = self._load_directory(self.project_config_dir, cfg)
        self.apply_env_overrides(cfg)
        if validate:
            self.validate_schema(cfg)
        return cfg

    def load_config(self, validate: bool = False) -> Dict[str, Any]:
        """Return the merged configuration (cached per project root)."""
        from .cache import get_cached_config

        return get_cached_config(repo_root=self.repo_root, validate=validate)


__all__ = ["ConfigManager", "ENV_PREFIX"]
