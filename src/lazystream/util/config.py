from typing import Optional
import logging
import os
import tomllib
from logging.handlers import TimedRotatingFileHandler
from typing import Dict

logger = logging.getLogger(__name__)

_config = None

ENV_PREFIX = "LAZYSTREAM_"


def parse_key_value_str(field_list: str, default: Optional[str] = None) -> Dict[str, str]:
    """Parse a property assignment list into a dictionary.

    Args:
        field_list (str): A comma-separated string of key-value pairs in the format "key:value,key:value".
        default (str, optional): Value given to keys listed without one.  If None, every
            key must carry a value.

    Returns:
        Dict[str, str]: A dictionary where keys are property names and values are assigned values.

    Raises:
        ValueError: If default is None and a key is missing a value.
    """
    result = {}
    for property in field_list.split(","):
        key, *value = property.split(":", 1)
        key = key.strip()
        value = value[0].strip() if len(value) > 0 else None

        if value is None:
            if default is None:
                raise ValueError(f"Value required for property '{key}'")
            value = default

        result[key] = value

    return result


def reset_config():
    """Reset the configuration to None.

    The next call to get_config() reloads configuration from disk and
    environment variables.
    """
    global _config
    _config = None


def get_config(reload=False, path="~/.lazystream.toml", ignore_env=False):
    """Get the configuration from the config file and environment variables.

    Args:
        reload (bool, optional): Force reload config from disk. Defaults to False.
        path (str, optional): Path to config file. Defaults to "~/.lazystream.toml".
        ignore_env (bool, optional): Skip LAZYSTREAM_ environment variables.

    Returns:
        dict: Configuration dictionary combining file and environment settings.

    Notes:
        - Environment variables prefixed with 'LAZYSTREAM_' take precedence
          over the file; the prefix is stripped and the key lower-cased
        - If config file doesn't exist, returns environment variables only
        - Configuration is cached after first load unless reload=True
    """
    global _config
    if _config is None or reload:
        logger.debug("Loading configuration")
        config_path = os.path.expanduser(path)
        if os.path.exists(config_path):
            logger.info(f"Reading config from {config_path}")
            with open(config_path, 'rb') as f:
                _config = tomllib.load(f)
                logger.debug(f"Loaded config: {_config}")
        else:
            logger.debug(f"Config file {config_path} not found, using empty config")
            _config = {}

        if not ignore_env:
            for env_var in os.environ:
                if env_var.startswith(ENV_PREFIX):
                    config_key = env_var[len(ENV_PREFIX):].lower()
                    _config[config_key] = os.environ[env_var]
                    logger.debug(f"Set {config_key} from environment variable {env_var}")

    return _config


def configure_logger(logger_levels: Optional[str] = None, base_level="WARNING", logger_files: Optional[str] = None):
    """Configure logging levels and handlers for specified loggers.

    Args:
        logger_levels (str): Logger name and level pairs in the format
            "logger1:LEVEL1,logger2:LEVEL2". Use "root" as logger name for root logger.
            A logger listed without a level gets base_level.
            Falls back to the `logger_levels` configuration key.
        base_level (str, optional): Default logging level. Defaults to "WARNING".
        logger_files (str, optional): Loggers mapped to file paths in "logger:path" format.
            Falls back to the `logger_files` configuration key.

    Examples:
        >>> configure_logger("root:INFO,lazystream.pipe:DEBUG")
        >>> configure_logger("lazystream", base_level="INFO")
        >>> configure_logger("lazystream:DEBUG", logger_files="lazystream:/tmp/lazystream.log")

    Note:
        - Each configured logger gets a StreamHandler with formatted output
        - Format: '%(asctime)s - %(levelname)s:%(name)s:%(message)s'
        - File targets rotate at midnight and keep a week of backups
    """
    if not logger_levels:
        logger_levels = get_config().get("logger_levels", None)

    if not logger_files:
        logger_files = get_config().get("logger_files", None)

    logging.basicConfig(level=base_level.upper())

    formatter = logging.Formatter('%(asctime)s - %(levelname)s:%(name)s:%(message)s')

    levels = parse_key_value_str(logger_levels, default=base_level) if logger_levels else {}
    for logger_name, level in levels.items():
        level = level.upper()
        target = logging.getLogger(logger_name if logger_name != "root" else None)
        target.setLevel(level)

        # Remove existing handlers to prevent duplicate logs
        target.handlers.clear()

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        target.addHandler(console_handler)

    if logger_files:
        for logger_name, file_name in parse_key_value_str(logger_files).items():
            target = logging.getLogger(logger_name if logger_name != "root" else None)

            file_handler = TimedRotatingFileHandler(file_name, when='midnight', backupCount=7)
            file_handler.setLevel(levels.get(logger_name, base_level).upper())
            file_handler.setFormatter(formatter)
            target.addHandler(file_handler)
