from dataclasses import dataclass, field
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Set

import yaml

from .exceptions import ConfigError


@dataclass
class RenderJob:
    src: Path
    dst: Path
    context: Dict[str, Any] = field(default_factory=dict)

    def make_context(self) -> SimpleNamespace:
        return SimpleNamespace(**self.context)


@dataclass
class WatchConfig:
    jobs: List[RenderJob]
    watch_paths: Set[Path]


def load_config(config_path: Path, base_path: Path = Path('.')) -> WatchConfig:
    """
    Reads the YAML watcher configuration.
    `write` lists the src/dst pairs, `watch` holds extra globs whose changes trigger a
    re-render and `context` the attributes every template sees on `self`.
    """
    with open(config_path, "r", encoding="utf-8") as f:
        try:
            cfg = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{config_path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError(f"{config_path}: top level must be a mapping.")
    if 'write' not in cfg:
        raise ConfigError(f"{config_path}: missing 'write' section.")
    if not isinstance(cfg['write'], list):
        raise ConfigError(f"{config_path}: 'write' must be a list of src/dst entries.")
    if not isinstance(cfg.get('watch') or [], list):
        raise ConfigError(f"{config_path}: 'watch' must be a list of globs.")

    global_context = cfg.get('context') or {}
    if not isinstance(global_context, dict):
        raise ConfigError(f"{config_path}: 'context' must be a mapping.")

    jobs = []
    for to_write in cfg['write']:
        if not isinstance(to_write, dict) or 'src' not in to_write or 'dst' not in to_write:
            raise ConfigError(f"{config_path}: every 'write' entry needs 'src' and 'dst'.")
        context = dict(global_context)
        context.update(to_write.get('context') or {})
        jobs.append(RenderJob(base_path / to_write['src'], base_path / to_write['dst'], context))

    watch_paths = {watch_path for watch_path_str in cfg.get('watch') or [] for watch_path in base_path.glob(watch_path_str)}
    return WatchConfig(jobs, watch_paths)
