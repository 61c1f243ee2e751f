import dataclasses
import logging
import os
import typing as t
from dataclasses import dataclass
from pathlib import Path

import anyconfig
import dotenv

from .error import ConfigError
from .utils import DEFAULT_DEV_STAGE
from .utils import get_app_stage
from .utils import get_env_filenames

DEFAULT_PROJECT_DIR = '.'
DEFAULT_HOST = '127.0.0.1'
DEFAULT_SERVER_PORT = 8080
DEFAULT_LOG_LEVEL = 'INFO'

CONFIG_FILE_NAME = 'application'
CONFIG_FILE_SUFFIX = '.yml'

# Configuration field -> (environment variable, keys in the YAML configuration file)
SETTINGS: t.Dict[str, t.Tuple[str, t.Tuple[str, str]]] = {
    'server_host': ('SERVER_HOST', ('server', 'address')),
    'server_port': ('SERVER_PORT', ('server', 'port')),
    'management_host': ('MANAGEMENT_HOST', ('management', 'address')),
    'management_port': ('MANAGEMENT_PORT', ('management', 'port')),
    'log_level': ('LOG_LEVEL', ('logging', 'level')),
}


@dataclass
class Config:
    """Hosting configuration of the greetings microservice.

    The management host and port are the server ones if not defined: in this case the management
    endpoints are served by the greetings microservice itself.
    """

    stage: str = DEFAULT_DEV_STAGE
    server_host: str = DEFAULT_HOST
    server_port: int = DEFAULT_SERVER_PORT
    management_host: t.Optional[str] = None
    management_port: t.Optional[int] = None
    log_level: str = DEFAULT_LOG_LEVEL
    project_dir: str = DEFAULT_PROJECT_DIR

    def __post_init__(self):
        self.server_port = as_port('server_port', self.server_port)
        if self.management_port is None:
            self.management_port = self.server_port
        else:
            self.management_port = as_port('management_port', self.management_port)
        if self.management_host is None:
            self.management_host = self.server_host
        self.log_level = as_log_level(self.log_level)

    @property
    def separate_management(self) -> bool:
        """True if the management endpoints are served on their own server."""
        return (self.management_host, self.management_port) != (self.server_host, self.server_port)

    @classmethod
    def load(cls, project_dir: t.Union[str, Path] = DEFAULT_PROJECT_DIR, stage: str = None,
             **overrides) -> "Config":
        """Loads the configuration, later source overriding the previous one:
        default values, configuration files, dotenv files, environment variables and finally the keyword overrides.

        :param project_dir: directory of the configuration and dotenv files.
        :param stage: the configuration stage (defined by the environment if not set).
        :param overrides: explicit values (None values are ignored).
        """
        stage = stage or get_app_stage()
        values: t.Dict[str, t.Any] = {}

        for file in existing_config_files(project_dir, stage):
            values.update(from_config_file(file))

        environ = {**read_dotenv(project_dir, stage), **os.environ}
        for field, (env_var, _) in SETTINGS.items():
            if env_var in environ:
                values[field] = environ[env_var]

        values.update({k: v for k, v in overrides.items() if v is not None})
        unknown = set(values) - set(SETTINGS)
        if unknown:
            raise ConfigError(f"Unknown configuration parameter(s): {', '.join(sorted(unknown))}")
        return cls(stage=stage, project_dir=Path(project_dir).as_posix(), **values)

    def asdict(self):
        return dataclasses.asdict(self)


def as_port(name: str, value: t.Any) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Wrong {name} value: {value!r} is not an integer")
    if not 0 <= port <= 65535:
        raise ConfigError(f"Wrong {name} value: {port} is not a valid port")
    return port


def as_log_level(value: t.Any) -> str:
    level = str(value).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Wrong log_level value: {value!r} is not a logging level")
    return level


def existing_config_files(project_dir: t.Union[str, Path], stage: str) -> t.List[Path]:
    """Returns the configuration files found in the project dir, general one first then stage specific."""
    project_dir_path = Path(project_dir)
    files = [project_dir_path / f"{CONFIG_FILE_NAME}{CONFIG_FILE_SUFFIX}",
             project_dir_path / f"{CONFIG_FILE_NAME}.{stage}{CONFIG_FILE_SUFFIX}"]
    return [file for file in files if file.is_file()]


def from_config_file(file: Path) -> t.Dict[str, t.Any]:
    """Returns the configuration values defined in a YAML configuration file."""
    logging.getLogger('anyconfig').setLevel(logging.WARNING)
    try:
        params = anyconfig.load(file) or {}
    except Exception as e:
        raise ConfigError(f"Syntax error in file {file}: {str(e)}")
    if not isinstance(params, dict):
        raise ConfigError(f"Wrong configuration file {file}: a mapping is expected")

    values = {}
    for field, (_, (section, key)) in SETTINGS.items():
        section_params = params.get(section) or {}
        if key in section_params:
            values[field] = section_params[key]
    return values


def read_dotenv(project_dir: t.Union[str, Path], stage: str) -> t.Dict[str, str]:
    """Returns the variables defined in the dotenv files, stage specific files overriding the general ones."""
    variables = {}
    for env_filename in get_env_filenames(stage):
        path = Path(project_dir) / env_filename
        if path.is_file():
            variables.update({k: v for k, v in dotenv.dotenv_values(path).items() if v is not None})
    return variables
