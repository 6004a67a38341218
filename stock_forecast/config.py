import os
import configparser
from pathlib import Path

from stock_forecast.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path('config') / 'settings.ini'


class Config:
    """Configuration manager for the Stock Forecast system."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the configuration if not already initialized."""
        if self._initialized:
            return

        self._config_path = Path(os.environ.get('STOCK_FORECAST_CONFIG', DEFAULT_CONFIG_PATH))
        self._config = configparser.ConfigParser(interpolation=None)
        self._load_defaults()

        # Values in the settings file override the built-in defaults
        if self._config_path.exists():
            self._config.read(self._config_path)

        self._initialized = True

    def _load_defaults(self):
        """Populate the built-in default configuration."""
        self._config['FORECAST'] = {
            'warning_days': '225',           # ~7.5 months of cover
            'horizon_days': '365',
            'analysis_horizon_days': '400',
            'cache_size': '256'
        }

        self._config['ORDER_DEFAULTS'] = {
            'qty': '1000',
            'prod_days': '30',
            'leg1_days': '30',
            'leg2_days': '15',
            'leg3_days': '0'
        }

        self._config['DATABASE'] = {
            'url': 'sqlite:///stock_forecast.db',
            'echo': 'False'
        }

        self._config['LOGGING'] = {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'directory': 'logs',
            'max_size_mb': '10',
            'backup_count': '5',
            'console_output': 'True',
            'file_output': 'False'
        }

    def reload(self, config_path=None):
        """Reset to defaults and re-read the settings file.

        Args:
            config_path: Optional path replacing the current settings file
        """
        if config_path is not None:
            self._config_path = Path(config_path)
        self._config = configparser.ConfigParser(interpolation=None)
        self._load_defaults()
        if self._config_path.exists():
            self._config.read(self._config_path)

    def save(self):
        """Save configuration to file."""
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._config_path, 'w') as configfile:
                self._config.write(configfile)
        except OSError as e:
            raise ConfigError(f"Could not write settings to {self._config_path}", details=str(e))

    @property
    def config_path(self):
        """Path of the settings file."""
        return self._config_path

    def get(self, section, key, default=None):
        """Get configuration value."""
        try:
            return self._config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_int(self, section, key, default=None):
        """Get configuration value as integer."""
        try:
            return self._config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_float(self, section, key, default=None):
        """Get configuration value as float."""
        try:
            return self._config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        try:
            return self._config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def set(self, section, key, value):
        """Set configuration value and persist it."""
        if not self._config.has_section(section):
            self._config.add_section(section)

        self._config.set(section, key, str(value))
        self.save()

    def get_db_url(self):
        """Get the SQLAlchemy database URL."""
        return self.get('DATABASE', 'url', 'sqlite:///stock_forecast.db')

    @property
    def forecast_config(self):
        """Get forecasting configuration."""
        return {
            'warning_days': self.get_int('FORECAST', 'warning_days', 225),
            'horizon_days': self.get_int('FORECAST', 'horizon_days', 365),
            'analysis_horizon_days': self.get_int('FORECAST', 'analysis_horizon_days', 400),
            'cache_size': self.get_int('FORECAST', 'cache_size', 256)
        }

    @property
    def order_defaults(self):
        """Get defaults applied to newly created purchase orders."""
        return {
            'qty': self.get_float('ORDER_DEFAULTS', 'qty', 1000.0),
            'prod_days': self.get_int('ORDER_DEFAULTS', 'prod_days', 30),
            'leg1_days': self.get_int('ORDER_DEFAULTS', 'leg1_days', 30),
            'leg2_days': self.get_int('ORDER_DEFAULTS', 'leg2_days', 15),
            'leg3_days': self.get_int('ORDER_DEFAULTS', 'leg3_days', 0)
        }

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            'directory': self.get('LOGGING', 'directory', 'logs'),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True),
            'file_output': self.get_boolean('LOGGING', 'file_output', False)
        }

# Global config instance
config = Config()
