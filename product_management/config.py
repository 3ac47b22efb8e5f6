import os
import configparser
from pathlib import Path

class Config:
    """Configuration manager for the Product Management System."""

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

        self._config_dir = Path(os.environ.get('PMS_CONFIG_DIR', 'config'))
        self._config_path = self._config_dir / 'settings.ini'
        self._config = configparser.ConfigParser(interpolation=None)

        # Create config directory if it doesn't exist
        if not self._config_dir.exists():
            self._config_dir.mkdir(parents=True)

        # Load config or create default
        if self._config_path.exists():
            self._config.read(self._config_path)
        else:
            self._create_default_config()

        self._initialized = True

    def _create_default_config(self):
        """Create default configuration file."""
        self._config['STORAGE'] = {
            'data_file': 'data/products.dat',
            'backup_suffix': '.bak',
            'temp_suffix': '.tmp',
            'max_entries': '100000'
        }

        self._config['CATALOG'] = {
            'low_stock_threshold': '10'
        }

        self._config['REPORTING'] = {
            'report_file': 'data/report.txt'
        }

        self._config['LOGGING'] = {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'directory': 'logs',
            'max_size_mb': '10',
            'backup_count': '5',
            'console_output': 'False'
        }

        self._save_config()

    def _save_config(self):
        """Save configuration to file."""
        with open(self._config_path, 'w') as configfile:
            self._config.write(configfile)

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

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        try:
            return self._config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    @property
    def storage_config(self):
        """Get storage configuration."""
        return {
            'data_file': self.get('STORAGE', 'data_file', 'data/products.dat'),
            'backup_suffix': self.get('STORAGE', 'backup_suffix', '.bak'),
            'temp_suffix': self.get('STORAGE', 'temp_suffix', '.tmp'),
            'max_entries': self.get_int('STORAGE', 'max_entries', 100000)
        }

    @property
    def catalog_config(self):
        """Get catalog rules configuration."""
        return {
            'low_stock_threshold': self.get_int('CATALOG', 'low_stock_threshold', 10)
        }

    @property
    def reporting_config(self):
        """Get reporting configuration."""
        return {
            'report_file': self.get('REPORTING', 'report_file', 'data/report.txt')
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
            'console_output': self.get_boolean('LOGGING', 'console_output', False)
        }

# Global config instance
config = Config()
