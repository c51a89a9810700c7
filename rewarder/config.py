import json
from pathlib import Path

from pydantic import ValidationError

from rewarder.errors import BadConfigException
from rewarder.models import Settings

CONF_FILE = "rewarder-conf.json"


def load_conf(config_path: str) -> Settings:
    """Loads an existing settings file from the directory `config_path`"""
    path = Path(config_path) / CONF_FILE
    try:
        return Settings.model_validate_json(path.read_text())
    except FileNotFoundError:
        raise BadConfigException(f"No {CONF_FILE} found in {config_path}")
    except ValidationError as e:
        raise BadConfigException(f"Invalid settings in {path}: {e}")


def write_conf(settings: Settings, config_path: str) -> Path:
    """Saves settings in `config_path`, creating the directory if needed"""
    Path(config_path).mkdir(parents=True, exist_ok=True)
    path = Path(config_path) / CONF_FILE
    with open(path, "w+") as j:
        j.write(json.dumps(settings.model_dump(), indent=4))
    return path
