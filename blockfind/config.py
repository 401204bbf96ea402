"""
Search settings, read from an optional TOML file and the command line.

Example ``config.toml``::

    block = "diamond_ore"
    path = "/home/steve/.minecraft/saves/world/region"
    home = [120, -340]
    max_distance = 500
"""

import dataclasses
import logging
import os
import tomllib
from typing import Optional, Tuple

from blockfind.errors import ConfigError
from blockfind.ranking import METRICS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'config.toml'


@dataclasses.dataclass(frozen=True)
class SearchConfig:
    block: str
    path: str
    home: Tuple[int, int] = (0, 0)
    show_all: bool = False
    max_distance: Optional[float] = None
    substring: bool = False
    limit: Optional[int] = None
    workers: Optional[int] = None
    metric: str = 'euclidean'
    include_partial: bool = False

    def __post_init__(self):
        if not self.block:
            raise ConfigError("No block provided")
        if not self.path:
            raise ConfigError("No region path provided (directory of .mca files)")
        if self.metric not in METRICS:
            raise ConfigError(
                f"Unknown metric {self.metric!r}, expected one of {sorted(METRICS)}")
        if self.max_distance is not None and self.max_distance < 0:
            raise ConfigError("max_distance must not be negative")
        if self.limit is not None and self.limit < 1:
            raise ConfigError("limit must be at least 1")
        if self.workers is not None and self.workers < 1:
            raise ConfigError("workers must be at least 1")


_field_types = {
    'block': (str,),
    'path': (str,),
    'home': (list,),
    'show_all': (bool,),
    'max_distance': (int, float),
    'substring': (bool,),
    'limit': (int,),
    'workers': (int,),
    'metric': (str,),
    'include_partial': (bool,),
}


def load_config_file(path=DEFAULT_CONFIG_FILE, required=False):
    """
    Reads settings from a TOML file. A missing file yields no settings unless
    *required* is set.
    """
    if not os.path.exists(path):
        if required:
            raise ConfigError(f"Config file not found: {path}")
        return {}

    try:
        with open(path, 'rb') as fd:
            values = tomllib.load(fd)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e

    logger.debug("Loaded config file %s", path)
    settings = {}
    for key, value in values.items():
        if key not in _field_types:
            logger.warning("Ignoring unknown setting %r in %s", key, path)
            continue
        if isinstance(value, bool) and bool not in _field_types[key]:
            raise ConfigError(f"Setting {key!r} in {path} has the wrong type")
        if not isinstance(value, _field_types[key]):
            raise ConfigError(f"Setting {key!r} in {path} has the wrong type")
        settings[key] = value

    if 'home' in settings:
        settings['home'] = _parse_home(settings['home'], path)
    return settings


def _parse_home(value, source):
    if len(value) != 2 or not all(
            isinstance(v, int) and not isinstance(v, bool) for v in value):
        raise ConfigError(f"home in {source} must be two integers [x, z]")
    return tuple(value)


def build_config(file_settings=None, **overrides):
    """
    Combines file settings with overrides (typically from the command line).
    Overrides that are ``None`` leave the file's value in place.
    """
    settings = dict(file_settings or {})
    for key, value in overrides.items():
        if value is not None:
            settings[key] = value

    for key in ('block', 'path'):
        if not settings.get(key):
            raise ConfigError(f"No {key} provided")
    settings['path'] = os.fspath(settings['path'])
    if 'home' in settings:
        settings['home'] = tuple(settings['home'])
    return SearchConfig(**settings)
