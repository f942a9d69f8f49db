import json
import os

CONFIG_FILE = os.path.join(os.path.dirname(__file__), 'config.json')

DEFAULT_CONFIG = {
    "performance": {
        "default_period_days": 30
    },
    "contracts": {
        "expiry_warning_days": 30
    },
    "planning": {
        "warning_days": 3
    }
}


def _config_path() -> str:
    # CMMS_CONFIG_FILE overrides the bundled location
    return os.environ.get('CMMS_CONFIG_FILE', CONFIG_FILE)


def get_config() -> dict:
    """Loads the configuration from the JSON file, filling in defaults for missing sections."""
    config = {section: dict(values) for section, values in DEFAULT_CONFIG.items()}
    path = _config_path()
    if not os.path.exists(path):
        return config
    with open(path, 'r') as f:
        stored = json.load(f)
    for section, values in stored.items():
        if isinstance(values, dict):
            config.setdefault(section, {}).update(values)
        else:
            config[section] = values
    return config


def set_config(config: dict):
    """Saves the configuration to the JSON file."""
    with open(_config_path(), 'w') as f:
        json.dump(config, f, indent=4)


def get_setting(section: str, key: str):
    """Single value from the configuration, e.g. get_setting('planning', 'warning_days')."""
    return get_config().get(section, {}).get(key)
