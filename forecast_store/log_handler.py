import logging
import logging.config
import sys
import yaml

from pathlib import Path

from typing import Dict, Any

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# SQL echo, pool checkouts and executor bookkeeping
NOISY_LOGGERS = [
    'sqlalchemy.engine',
    'sqlalchemy.pool',
    'concurrent.futures',
]

class LogHandler:
    """
    Logging setup for the store, its sync task and the notification threads.

    The ``logging`` section of the runtime config is a plain dictConfig. Without
    one, records go to stdout with the thread name included, since change
    notifications are delivered from the ``forecast-notify`` pool.
    """

    def __init__(self, config: Dict[str, Any] | None = None):
        self.config = config

    @classmethod
    def from_file(cls, config_file: str | Path):
        """
        Read the ``logging`` section of a YAML config file.

        A missing or unreadable file falls back to the default configuration.
        """
        config_file = Path(config_file)
        if not config_file.exists():
            logger.info(f"No config file found at {config_file}. Using default logging configuration")
            return cls()

        try:
            with open(config_file) as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Error loading config from config_file {config_file}: {e}")
            return cls()

        return cls(config=config.get('logging', config))

    def start_logger(self, verbose: bool = False):
        """
        Apply the dictConfig, or the stdout default when there is none.

        ``verbose`` lowers the default level to DEBUG and leaves SQLAlchemy and
        the executor at their own levels.
        """
        if self.config:
            logging.config.dictConfig(self.config)
            logger.debug("Applied logging configuration from runtime config")
        else:
            logging.basicConfig(
                level=logging.DEBUG if verbose else logging.INFO,
                format=DEFAULT_FORMAT,
                datefmt=DEFAULT_DATE_FORMAT,
                stream=sys.stdout,
            )
            logger.debug("No logging configuration given. Logging to stdout")

        if not verbose:
            self.silence_noisy_loggers()

    def silence_noisy_loggers(self, log_level=logging.WARNING):
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(log_level)
