from pathlib import Path
from dataclasses import dataclass, field
import yaml

import logging

from . import contract
from .database.db import WeatherStore
from .log_handler import LogHandler
from .notifications import ChangeNotifier
from .provider import WeatherProvider
from .query_manager import QueryManager
from .router import build_router
from .sync import SyncTask

logger = logging.getLogger(__name__)

def load_config_file(config_file: str | Path) -> dict:
    """Load configuration from YAML file."""
    try:
        with open(config_file, 'r') as file:
            config = yaml.safe_load(file) or {}
            logger.info(f"Loaded config file from {config_file}")
    except FileNotFoundError:
        logger.error(f"Configuration file {config_file} not found")
        raise
    except yaml.YAMLError as e:
        logger.error(f"Error parsing configuration file: {e}")
        raise

    #Make sure log directory exists
    for handler_name, handler in config.get('logging', {}).get('handlers', {}).items():
        if "filename" in handler.keys():
            Path(handler['filename']).parent.mkdir(parents=True, exist_ok=True)

    return config

@dataclass
class RuntimeContext:
    """One store, notifier and provider per process, plus the sync and query entry points."""
    config: dict
    config_file: str | Path | None = None
    configure_logging: bool = field(default=False, repr=False)

    @classmethod
    def from_config_file(cls, config_file: str | Path, configure_logging: bool = True):
        config = load_config_file(config_file)
        return cls(config=config, config_file=config_file, configure_logging=configure_logging)

    def __post_init__(self):
        if self.config is None:
            raise ValueError("RuntimeContext requires a config dictionary")
        self.initialize_runtime(self.config)

    def initialize_runtime(self, config: dict):

        if self.configure_logging:
            LogHandler(config.get('logging')).start_logger(verbose=config.get('settings', {}).get('verbose', False))

        logger.info("Initializing Runtime Context")

        ## Timezone used to decide which day is "today"
        self.timezone = config.get('settings', {}).get('timezone', 'UTC')

        ## Locators
        self.authority = config.get('contract', {}).get('authority', contract.CONTENT_AUTHORITY)
        self.router = build_router(self.authority)

        ## Database
        self.store = WeatherStore(config.get('database', {}).get('path', 'sqlite:///weather.db'))

        ## Change notification
        self.notifier = ChangeNotifier(max_workers=int(config.get('notifications', {}).get('max_workers', 2)))

        ## Provider
        self.provider = WeatherProvider(self.store, self.notifier, router=self.router, authority=self.authority)

        ## Sync entry point
        self.sync_task = SyncTask(
            self.provider,
            prune_stale=bool(config.get('sync', {}).get('prune_stale', False)),
            timezone=self.timezone,
        )

        ## Query entry point
        self.query_manager = QueryManager(self.provider, timezone=self.timezone)

    def update_runtime(self, config_file: str | Path):
        self.close()
        self.config_file = Path(config_file)
        self.config = load_config_file(self.config_file)
        self.initialize_runtime(self.config)

    def close(self):
        self.notifier.close()
        self.provider.shutdown()
