"""
Configuration loading.

Settings come from three layers, later layers winning:

1. Built-in defaults
2. ``config/pumping_iron.yaml`` (or an explicit path)
3. Environment variables (``.env`` is loaded first via python-dotenv)
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from dotenv import load_dotenv

from .errors import ValidationError
from .preferences import (
    InMemoryPreferenceStore,
    JsonFilePreferenceStore,
    PostgresPreferenceStore,
    StaticIdentityProvider,
)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "pumping_iron.yaml"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

PREFERENCE_BACKENDS = ('memory', 'json', 'postgres')


@dataclass(frozen=True)
class Settings:
    default_readiness: float = 8
    history_window_days: int = 30
    preferences_backend: str = 'memory'
    preferences_path: str = '~/.pumping_iron/preferences.json'
    postgres_dsn: str = 'postgresql://localhost:5432/pumping_iron'
    user_id: Optional[str] = 'local'
    log_level: str = 'INFO'
    log_file: Optional[str] = None


# Environment variable -> settings field
ENV_OVERRIDES = {
    'PUMPING_IRON_DEFAULT_READINESS': 'default_readiness',
    'PUMPING_IRON_HISTORY_WINDOW_DAYS': 'history_window_days',
    'PUMPING_IRON_PREFERENCES_BACKEND': 'preferences_backend',
    'PUMPING_IRON_PREFERENCES_PATH': 'preferences_path',
    'POSTGRES_DSN': 'postgres_dsn',
    'PUMPING_IRON_USER_ID': 'user_id',
    'PUMPING_IRON_LOG_LEVEL': 'log_level',
    'PUMPING_IRON_LOG_FILE': 'log_file',
}


def _flatten_yaml(config: Dict[str, Any]) -> Dict[str, Any]:
    """Map the sectioned YAML layout onto flat settings fields."""
    engine = config.get('engine') or {}
    prefs = config.get('preferences') or {}
    identity = config.get('identity') or {}
    log = config.get('logging') or {}

    values = {
        'default_readiness': engine.get('default_readiness'),
        'history_window_days': engine.get('history_window_days'),
        'preferences_backend': prefs.get('backend'),
        'preferences_path': prefs.get('path'),
        'postgres_dsn': prefs.get('postgres_dsn'),
        'user_id': identity.get('user_id'),
        'log_level': log.get('level'),
        'log_file': log.get('file'),
    }
    return {k: v for k, v in values.items() if v is not None}


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    try:
        if 'default_readiness' in values:
            values['default_readiness'] = float(values['default_readiness'])
        if 'history_window_days' in values:
            values['history_window_days'] = int(values['history_window_days'])
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid numeric setting: {e}") from e

    backend = values.get('preferences_backend')
    if backend is not None:
        values['preferences_backend'] = str(backend).lower()
        if values['preferences_backend'] not in PREFERENCE_BACKENDS:
            raise ValidationError(
                f"Unknown preferences backend '{backend}' (expected one of {PREFERENCE_BACKENDS})"
            )
    return values


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
    use_dotenv: bool = True,
) -> Settings:
    """
    Load settings.

    Args:
        config_path: Path to a YAML config file. If None, uses the default
            location when it exists.
        environ: Environment mapping (defaults to os.environ)
        use_dotenv: Load a ``.env`` file into the environment first

    Returns:
        Settings instance

    Raises:
        ValidationError: If a setting has an invalid value
        FileNotFoundError: If an explicit config_path does not exist
    """
    if use_dotenv:
        load_dotenv()

    if environ is None:
        environ = os.environ

    values: Dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
    else:
        path = DEFAULT_CONFIG_PATH

    if path.exists():
        with open(path) as f:
            values.update(_flatten_yaml(yaml.safe_load(f) or {}))

    for env_name, field_name in ENV_OVERRIDES.items():
        if environ.get(env_name):
            values[field_name] = environ[env_name]

    known = {f.name for f in fields(Settings)}
    return replace(Settings(), **_coerce({k: v for k, v in values.items() if k in known}))


def configure_logging(settings: Settings):
    """Configure root logging for an entry point (CLI, MCP server)."""
    handlers = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(os.path.expanduser(settings.log_file)))

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def build_preference_store(settings: Settings):
    """Instantiate the preference store selected by ``preferences_backend``."""
    if settings.preferences_backend == 'json':
        return JsonFilePreferenceStore(settings.preferences_path)
    if settings.preferences_backend == 'postgres':
        return PostgresPreferenceStore(settings.postgres_dsn, create_schema=True)
    return InMemoryPreferenceStore()


def build_identity_provider(settings: Settings) -> StaticIdentityProvider:
    return StaticIdentityProvider(settings.user_id)
