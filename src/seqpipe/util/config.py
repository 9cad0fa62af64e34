"""Configuration and logging setup for seqpipe.

Settings come from an optional TOML file (~/.seqpipe.toml) with environment
variables prefixed SEQPIPE_ layered on top.  The command line app uses them
for the input encoding and for logger levels and log files.
"""
from typing import Dict, Optional
import logging
import os
import tomllib
from logging.handlers import TimedRotatingFileHandler
from seqpipe.util.constants import LOGGER_LEVELS, LOGGER_FILES

logger = logging.getLogger(__name__)

_config = None

ENV_PREFIX = "SEQPIPE_"

LOG_FORMAT = '%(asctime)s - %(levelname)s:%(name)s:%(message)s'


def parse_assignments(text: str) -> Dict[str, str]:
    """Parse "name:value,name:value" into a dictionary.

    Only the first colon of each assignment separates the name from the
    value, so values may contain colons (such as Windows paths).

    Raises:
        ValueError: If an assignment has no value.
    """
    result = {}
    for assignment in text.split(","):
        name, sep, value = assignment.partition(":")
        if not sep:
            raise ValueError(f"Value required for '{name.strip()}'")
        result[name.strip()] = value.strip()
    return result


def reset_config():
    """Forget the cached configuration so the next get_config() reloads it."""
    global _config
    _config = None


def _environment_overrides() -> Dict[str, str]:
    return {name[len(ENV_PREFIX):].lower(): value
            for name, value in os.environ.items() if name.startswith(ENV_PREFIX)}


def get_config(reload=False, path="~/.seqpipe.toml"):
    """Get the configuration from the config file and environment variables.

    Args:
        reload (bool, optional): Force reload config from disk. Defaults to False.
        path (str, optional): Path to config file. Defaults to "~/.seqpipe.toml".

    Returns:
        dict: The file settings, overridden by SEQPIPE_* environment variables
            (prefix removed, name lower-cased).  A missing file counts as empty.
            The result is cached until reload=True or reset_config().
    """
    global _config
    if _config is None or reload:
        config_path = os.path.expanduser(path)
        if os.path.exists(config_path):
            logger.info(f"Reading config from {config_path}")
            with open(config_path, 'rb') as f:
                _config = tomllib.load(f)
        else:
            logger.debug(f"Config file {config_path} not found, using empty config")
            _config = {}

        overrides = _environment_overrides()
        if overrides:
            logger.debug(f"Config keys set from the environment: {sorted(overrides)}")
        _config.update(overrides)

    return _config


def _named_logger(name: str) -> logging.Logger:
    return logging.getLogger(None if name == "root" else name)


def configure_logger(logger_levels: Optional[str] = None, base_level="WARNING", logger_files: Optional[str] = None):
    """Configure logging levels and outputs for specified loggers.

    Args:
        logger_levels (str): "logger:LEVEL" pairs separated by commas; "root"
            names the root logger.  Falls back to the "logger_levels" config key.
        base_level (str, optional): Level for basicConfig. Defaults to "WARNING".
        logger_files (str, optional): "logger:path" pairs.  Each file rotates at
            midnight and keeps a week of backups.  Falls back to the
            "logger_files" config key.

    Examples:
        >>> configure_logger("root:INFO,seqpipe.pipe.core:DEBUG")
        >>> configure_logger("seqpipe:DEBUG", logger_files="seqpipe:/tmp/seqpipe.log")
    """
    logger_levels = logger_levels or get_config().get(LOGGER_LEVELS)
    logger_files = logger_files or get_config().get(LOGGER_FILES)

    logging.basicConfig(level=base_level.upper())
    formatter = logging.Formatter(LOG_FORMAT)

    if logger_levels:
        for name, level in parse_assignments(logger_levels).items():
            configured = _named_logger(name)
            configured.setLevel(level.upper())
            # One console handler per configured logger
            configured.handlers.clear()
            console_handler = logging.StreamHandler()
            console_handler.setLevel(level.upper())
            console_handler.setFormatter(formatter)
            configured.addHandler(console_handler)

    if logger_files:
        for name, file_name in parse_assignments(logger_files).items():
            configured = _named_logger(name)
            file_handler = TimedRotatingFileHandler(file_name, when='midnight', backupCount=7)
            file_handler.setLevel(configured.getEffectiveLevel())
            file_handler.setFormatter(formatter)
            configured.addHandler(file_handler)
