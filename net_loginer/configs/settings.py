"""Layered settings: defaults < ~/.net_loginer.toml < environment (.env) < CLI flags."""

import logging
import os
import tomllib
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from net_loginer.configs.common import (
    ADDRESS_PREFIX,
    BASE_URL_ENV,
    CHARSET_PATH,
    CONFIG_PATH,
    CREDENTIAL_ENV_PASSWORD,
    CREDENTIAL_ENV_USER,
    HTTP_TIMEOUT,
    MAX_MISREAD_RETRY,
    MAX_VERIFY_CODE_RETRY,
    MODEL_PATH,
    NET_AUTH_BASEURL,
    NUM_CHANNELS,
    RESIZE_PARAM,
)
from net_loginer.errors import ConfigError
from net_loginer.ml.preprocess import ResizeParam
from net_loginer.model.credentials import Credentials

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    user_id: Optional[str] = None
    password: Optional[str] = Field(None, repr=False)
    base_url: str = NET_AUTH_BASEURL
    timeout: float = Field(HTTP_TIMEOUT, gt=0)
    verify_tls: bool = True
    address_prefix: str = ADDRESS_PREFIX
    addresses: List[str] = Field(default_factory=list)
    model_path: str = MODEL_PATH
    charset_path: str = CHARSET_PATH
    resize: Tuple[int, int] = RESIZE_PARAM
    channels: Literal[1, 3] = NUM_CHANNELS
    verify_code_length: Optional[int] = Field(None, gt=0)
    max_verify_code_retry: int = Field(MAX_VERIFY_CODE_RETRY, ge=1)
    max_misread_retry: int = Field(MAX_MISREAD_RETRY, ge=0)
    retry_delay: float = Field(1.0, ge=0)
    abort_on_failure: bool = True
    auto_captcha: bool = True
    save_captcha_dir: Optional[str] = None
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    @field_validator('resize')
    @classmethod
    def _resize_pair(cls, v):
        ResizeParam.from_pair(v)
        return v

    @field_validator('log_level')
    @classmethod
    def _known_level(cls, v):
        if v.upper() not in logging.getLevelNamesMapping():
            raise ValueError(f'unknown log level {v!r}')
        return v.upper()

    def credentials(self) -> Credentials:
        if not self.user_id:
            raise ConfigError(f'{CREDENTIAL_ENV_USER} is not set!')
        if not self.password:
            raise ConfigError(f'{CREDENTIAL_ENV_PASSWORD} is not set!')
        return Credentials(self.user_id, self.password)


CONFIG_KEYS = set(Settings.model_fields)


def load_config_file(config_path: str = CONFIG_PATH) -> Dict[str, Any]:
    """Load defaults from the TOML config if it exists; unknown keys are ignored."""
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, 'rb') as f:
            config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning('Failed to read config file %s: %s', config_path, e)
        return {}

    unknown = set(config) - CONFIG_KEYS
    if unknown:
        logger.warning('Ignoring unknown config keys: %s', ', '.join(sorted(unknown)))
    return {k: v for k, v in config.items() if k in CONFIG_KEYS}


def load_environment(env: Optional[Mapping[str, str]] = None, dotenv_path: Optional[str] = None) -> Dict[str, Any]:
    if env is None:
        load_dotenv(dotenv_path=dotenv_path)
        env = os.environ

    values: Dict[str, Any] = {}
    for key, env_name in (
        ('user_id', CREDENTIAL_ENV_USER),
        ('password', CREDENTIAL_ENV_PASSWORD),
        ('base_url', BASE_URL_ENV),
    ):
        if env.get(env_name):
            values[key] = env[env_name]
    return values


def load_settings(
    cli_values: Optional[Mapping[str, Any]] = None,
    config_path: str = CONFIG_PATH,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    values = load_config_file(config_path)
    values.update(load_environment(env))
    values.update({k: v for k, v in (cli_values or {}).items() if v is not None and k in CONFIG_KEYS})
    try:
        return Settings.model_validate(values)
    except ValidationError as e:
        raise ConfigError(f'Invalid settings: {e}') from e
