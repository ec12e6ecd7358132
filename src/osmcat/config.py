import json
import logging
from dataclasses import dataclass, field

from osmcat import __version__
from osmcat.clean import CleanOptions
from osmcat.exceptions import ConfigError
from osmcat.osm_io import BUFFER_SIZE_DEFAULT

log = logging.getLogger(__name__)

GENERATOR_DEFAULT = f"osmcat/{__version__}"

DEFAULTS = {
    "buffer_size": BUFFER_SIZE_DEFAULT,
    "generator": GENERATOR_DEFAULT,
    "output_header": {},
    "progress": None,
    "log_level": None,
    "overwrite": False,
    "fsync": False,
}

_TYPES = {
    "buffer_size": int,
    "generator": str,
    "output_header": dict,
    "progress": (bool, type(None)),
    "log_level": (str, type(None)),
    "overwrite": bool,
    "fsync": bool,
}


def load_config(path=None) -> dict:
    """
    Read a JSON config file and merge it over DEFAULTS.

    Known keys: buffer_size, generator, output_header (object of header
    options), progress, log_level, overwrite, fsync.
    """
    cfg = dict(DEFAULTS)
    if path is None:
        return cfg

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    unknown = sorted(set(data) - set(DEFAULTS))
    if unknown:
        raise ConfigError(f"Unknown keys in config file {path}: {', '.join(unknown)}")

    for key, value in data.items():
        expected = _TYPES[key]
        # bool is an int subclass, don't let true pass as a buffer size
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(f"Config key '{key}' has invalid value {value!r}")
    if data.get("buffer_size", 1) < 1:
        raise ConfigError("Config key 'buffer_size' must be positive")

    cfg.update(data)
    cfg["output_header"] = {str(k): str(v) for k, v in cfg["output_header"].items()}
    log.debug(f"Loaded config {path}: {cfg}")
    return cfg


@dataclass(frozen=True)
class CatSettings:
    """Everything one cat run needs, resolved from options and config."""

    input_files: tuple[str, ...]
    output_file: str
    object_types: tuple[str, ...] = ()
    clean: CleanOptions = field(default_factory=CleanOptions)
    output_header: dict[str, str] = field(default_factory=dict)
    generator: str = GENERATOR_DEFAULT
    input_format: str | None = None
    output_format: str | None = None
    overwrite: bool = False
    fsync: bool = False
    progress: bool = False
    buffer_size: int = BUFFER_SIZE_DEFAULT
