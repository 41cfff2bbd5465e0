"""
Configuration for the Kala command-line client.

The configuration is resolved once at process start and handed to the
dispatcher and the scheduler client. Nothing here is cached globally.

Resolution order for each setting (highest to lowest priority):
1. Explicit argument (command-line option)
2. Environment variable (KALA_ENDPOINT, KALA_TIMEOUT)
3. Config file (~/.kala_cli/config.json, or KALA_CLI_CONFIG)
4. Default
"""

import getpass
import json
import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import find_dotenv, load_dotenv

from kala_cli.errors import UsageError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:8000"
DEFAULT_TIMEOUT = 30.0
CONFIG_FILE = "~/.kala_cli/config.json"

# Environment variables
ENV_ENDPOINT = "KALA_ENDPOINT"
ENV_TIMEOUT = "KALA_TIMEOUT"
ENV_CONFIG_PATH = "KALA_CLI_CONFIG"


def _load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load settings from the JSON config file, if there is one."""
    if config_path:
        path = Path(config_path).expanduser()
    elif os.getenv(ENV_CONFIG_PATH):
        path = Path(os.environ[ENV_CONFIG_PATH]).expanduser()
    else:
        path = Path(CONFIG_FILE).expanduser()

    if not path.exists():
        logger.debug(f"No config file at {path}")
        return {}

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to load config file {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: expected a JSON object")
        return {}

    logger.debug(f"Loaded config file {path}")
    return data


def _default_owner(file_settings: Dict[str, Any]) -> str:
    if file_settings.get('owner'):
        return str(file_settings['owner'])
    if os.getenv('USER'):
        return os.environ['USER']
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        logger.debug("Could not determine the invoking user")
        return ""


def _parse_timeout(value: Union[str, float, int]) -> float:
    if isinstance(value, bool):
        raise UsageError(f"Invalid timeout {value!r}: expected a number of seconds.")
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise UsageError(f"Invalid timeout {value!r}: expected a number of seconds.")
    if not math.isfinite(timeout) or timeout <= 0:
        raise UsageError(f"Invalid timeout {value!r}: must be a finite number greater than zero.")
    return timeout


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings shared by the dispatcher and the scheduler client.

    Attributes:
        endpoint: Base URL of the Kala API, without trailing slash
        timeout: Request timeout in seconds
        owner: Default owner for new jobs
    """
    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = DEFAULT_TIMEOUT
    owner: str = ""

    @property
    def api_url(self) -> str:
        return f"{self.endpoint}/api/v1/"

    @classmethod
    def resolve(
        cls,
        endpoint: Optional[str] = None,
        timeout: Optional[Union[str, float]] = None,
        config_path: Optional[str] = None
    ) -> 'ClientConfig':
        """
        Build the configuration from arguments, environment and config file.

        Args:
            endpoint: Explicit endpoint (e.g. from --endpoint)
            timeout: Explicit timeout in seconds (e.g. from --timeout)
            config_path: Explicit config file path (e.g. from --config)

        Returns:
            ClientConfig instance

        Raises:
            UsageError: If the timeout is not a positive number
        """
        load_dotenv(find_dotenv(usecwd=True))
        file_settings = _load_config_file(config_path)

        if endpoint:
            logger.debug(f"Using explicitly provided endpoint: {endpoint}")
        elif os.getenv(ENV_ENDPOINT):
            endpoint = os.environ[ENV_ENDPOINT]
            logger.debug(f"Using endpoint from {ENV_ENDPOINT}: {endpoint}")
        elif file_settings.get('endpoint'):
            endpoint = str(file_settings['endpoint'])
            logger.debug(f"Using endpoint from config file: {endpoint}")
        else:
            endpoint = DEFAULT_ENDPOINT

        if timeout is not None:
            logger.debug(f"Using explicitly provided timeout: {timeout}")
        elif os.getenv(ENV_TIMEOUT):
            timeout = os.environ[ENV_TIMEOUT]
            logger.debug(f"Using timeout from {ENV_TIMEOUT}: {timeout}")
        elif file_settings.get('timeout') is not None:
            timeout = file_settings['timeout']
            logger.debug(f"Using timeout from config file: {timeout}")
        else:
            timeout = DEFAULT_TIMEOUT

        return cls(
            endpoint=endpoint.rstrip('/'),
            timeout=_parse_timeout(timeout),
            owner=_default_owner(file_settings),
        )

    def __repr__(self):
        return f"ClientConfig(endpoint={self.endpoint}, timeout={self.timeout})"
