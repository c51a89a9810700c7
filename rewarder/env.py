import os
from typing import Optional

from dotenv import load_dotenv
from rewarder.errors import MissingEnvironmentVariableException

load_dotenv()


def env_var(accessor: str, default: Optional[str] = None) -> str:
    """
    Attempt to fetch an environment variable and throw
    an error if not found and no default is given
    """
    var = os.environ.get(accessor, default)
    if not var:
        raise MissingEnvironmentVariableException(accessor)
    return var


DB_PATH = env_var("REWARDER_DB_PATH", "reports/rewarder-db.json")
LOG_LEVEL = env_var("REWARDER_LOG_LEVEL", "INFO")

# optional: only needed when pulling rewards from an upstream source
REWARD_SOURCE_URL = os.environ.get("REWARD_SOURCE_URL")
