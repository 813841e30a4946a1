"""
Configuration loader for the Home Gateway
Loads and validates configuration from YAML files; every setting has a default
so the gateway also runs without a configuration file.
"""

import yaml
import logging
from typing import Dict, Any, Optional
from pathlib import Path
from datetime import datetime
import pytz

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"

DEFAULTS: Dict[str, Dict[str, Any]] = {
    'network': {
        'multicast_address': '224.0.1.187',  # IPv4 All-CoAP-Nodes
        'coap_port': 5683,
        'discovery_timeout': 3,
    },
    'discovery': {
        'period_seconds': 600,
    },
    'cleanup': {
        'initial_delay_seconds': 30,
        'period_seconds': 600,
        'timeout_seconds': 3600,
    },
    'api': {
        'host': '::',
        'port': 3000,
    },
    'logging': {
        'level': 'INFO',
        'file': None,
        'console_output': True,
        'timezone': 'UTC',
    },
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file with validation.
    Without an explicit path, config/config.yaml is used when present and
    the built-in defaults otherwise.
    """
    try:
        if config_path is None:
            config_file = Path(DEFAULT_CONFIG_PATH)
            if not config_file.exists():
                logger.info("No configuration file found, using defaults")
                return _apply_defaults({})
        else:
            config_file = Path(config_path)
            if not config_file.exists():
                logger.error(f"Configuration file not found: {config_path}")
                raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        _validate_config(config)
        config = _apply_defaults(config)

        logger.info(f"Configuration loaded from {config_file}")
        return config

    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise


def _validate_config(config: Dict) -> None:
    """Validate section types and value ranges"""
    if not isinstance(config, dict):
        raise ValueError("Configuration must be a mapping")

    for section in DEFAULTS:
        if section in config and not isinstance(config[section], dict):
            raise ValueError(f"Configuration section {section} must be a mapping")

    positive_fields = [
        ('network', 'discovery_timeout'),
        ('discovery', 'period_seconds'),
        ('cleanup', 'period_seconds'),
        ('cleanup', 'timeout_seconds'),
    ]
    for section, field in positive_fields:
        value = config.get(section, {}).get(field)
        if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0):
            raise ValueError(f"{section}.{field} must be a positive number")

    delay = config.get('cleanup', {}).get('initial_delay_seconds')
    if delay is not None and (isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0):
        raise ValueError("cleanup.initial_delay_seconds must be a non-negative number")

    for section, field in [('network', 'coap_port'), ('api', 'port')]:
        port = config.get(section, {}).get(field)
        if port is not None and (isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536):
            raise ValueError(f"{section}.{field} must be a port number")

    tz_name = config.get('logging', {}).get('timezone')
    if tz_name is not None and tz_name not in pytz.all_timezones_set:
        raise ValueError(f"Unknown logging.timezone: {tz_name}")

    # Check that a missed discovery cycle does not evict live services
    discovery_period = config.get('discovery', {}).get('period_seconds', DEFAULTS['discovery']['period_seconds'])
    cleanup_timeout = config.get('cleanup', {}).get('timeout_seconds', DEFAULTS['cleanup']['timeout_seconds'])
    if cleanup_timeout <= discovery_period:
        logger.warning(f"cleanup.timeout_seconds ({cleanup_timeout}) is not greater than "
                       f"discovery.period_seconds ({discovery_period}) - live services may expire")


def _apply_defaults(config: Dict) -> Dict:
    """Apply default values to configuration"""
    for section, defaults in DEFAULTS.items():
        if section not in config:
            config[section] = {}
        for key, default_value in defaults.items():
            if key not in config[section]:
                config[section][key] = default_value

    return config


class TimezoneFormatter(logging.Formatter):
    """Formatter rendering timestamps in a configured timezone"""

    def __init__(self, fmt=None, tz_name: str = 'UTC'):
        super().__init__(fmt)
        self.tz = pytz.timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.tz)
        if datefmt:
            return dt.strftime(datefmt)
        else:
            # Default format: YYYY-MM-DD HH:MM:SS TZ
            return dt.strftime('%Y-%m-%d %H:%M:%S %Z')


def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = TimezoneFormatter(log_format, log_config.get('timezone', 'UTC'))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))

    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    log_file = log_config.get('file')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logger.info(f"Logging configured: level={level}, timezone={log_config.get('timezone', 'UTC')}, "
                f"console={log_config.get('console_output', True)}, file={log_file}")


def get_sample_config() -> Dict:
    """Return a sample configuration for reference"""
    return {
        "network": {
            "multicast_address": "224.0.1.187",  # or e.g. "ff02::fd%eth0"
            "coap_port": 5683,
            "discovery_timeout": 3,              # response window, seconds
        },
        "discovery": {
            "period_seconds": 600,
        },
        "cleanup": {
            "initial_delay_seconds": 30,
            "period_seconds": 600,
            "timeout_seconds": 3600,             # keep well above discovery.period_seconds
        },
        "api": {
            "host": "::",
            "port": 3000,
        },
        "logging": {
            "level": "INFO",
            "file": None,
            "console_output": True,
            "timezone": "Europe/Prague",
        },
    }
