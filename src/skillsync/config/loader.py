"""
Almacén de configuración y cargador con deep merge.

Orden de precedencia de una ejecución (de menor a mayor):
1. Defaults (definidos en los schemas Pydantic)
2. Archivo de configuración (JSON, o YAML para rutas .yaml/.yml)
3. Variables de entorno
4. Argumentos CLI

Solo se escribe la capa del archivo. Los overrides de entorno y CLI afectan
al proceso actual y no se persisten, así ``register`` nunca guarda en el
archivo un SKILL_SYNC_USER_SKILLS temporal.
"""

import json
import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from ..core.atomic import atomic_write_text
from ..errors import ConfigError
from .schema import SyncConfig

logger = structlog.get_logger()

CONFIG_ENV_VAR = "SKILL_SYNC_CONFIG"

_YAML_SUFFIXES = {".yaml", ".yml"}


def default_config_path() -> Path:
    """~/.claude/sync-config.json, salvo que SKILL_SYNC_CONFIG apunte a otro sitio."""
    if env_path := os.environ.get(CONFIG_ENV_VAR):
        return Path(env_path).expanduser()
    return Path.home() / ".claude" / "sync-config.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge recursivo de diccionarios.

    Args:
        base: Diccionario base
        override: Diccionario cuyos valores tienen prioridad sobre base

    Returns:
        Nuevo diccionario mergeado. Override gana en conflictos de hojas.

    Ejemplo:
        >>> deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"b": 99}, "e": 4})
        {'a': {'b': 99, 'c': 2}, 'e': 4}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class ConfigStore:
    """Lee y escribe el archivo de configuración.

    Si el archivo no existe, la primera carga lo crea con los defaults.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path).expanduser() if path else default_config_path()

    @property
    def is_yaml(self) -> bool:
        return self.path.suffix.lower() in _YAML_SUFFIXES

    def load(self) -> SyncConfig:
        """Carga la configuración guardada.

        Raises:
            ConfigError: Si el archivo no se puede leer, parsear o validar.
        """
        if not self.path.exists():
            config = SyncConfig()
            self.save(config)
            logger.info("config.created_default", path=str(self.path))
            return config

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read configuration {self.path}: {e}") from e
        except UnicodeDecodeError as e:
            raise ConfigError(f"Configuration {self.path} is not valid UTF-8: {e}") from e

        try:
            data = yaml.safe_load(raw) if self.is_yaml else json.loads(raw)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot parse configuration {self.path}: {e}") from e

        try:
            return SyncConfig.model_validate(data or {})
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration {self.path}: {e}") from e

    def save(self, config: SyncConfig) -> None:
        """Escribe la configuración, creando los directorios padre si hace falta.

        Raises:
            ConfigError: Si el archivo no se puede escribir.
        """
        data = config.model_dump(mode="json", by_alias=True, exclude_none=True)
        if self.is_yaml:
            text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
        else:
            text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

        try:
            atomic_write_text(self.path, text)
        except OSError as e:
            raise ConfigError(f"Cannot write configuration {self.path}: {e}") from e
        logger.debug("config.saved", path=str(self.path))


def load_env_overrides() -> dict[str, Any]:
    """Carga overrides desde variables de entorno.

    Variables soportadas:
        SKILL_SYNC_USER_SKILLS: sobreescribe sources.user_skills
        SKILL_SYNC_PLUGIN_SCAN_PATH: sobreescribe sources.plugin_scan_path
        SKILL_SYNC_LOG_LEVEL: sobreescribe logging.level ("warning" equivale a "warn")
        SKILL_SYNC_LOG_FILE: sobreescribe logging.file
    """
    overrides: dict[str, Any] = {}

    if user_skills := os.environ.get("SKILL_SYNC_USER_SKILLS"):
        overrides.setdefault("sources", {})["user_skills"] = user_skills

    if scan_path := os.environ.get("SKILL_SYNC_PLUGIN_SCAN_PATH"):
        overrides.setdefault("sources", {})["plugin_scan_path"] = scan_path

    if log_level := os.environ.get("SKILL_SYNC_LOG_LEVEL"):
        level = log_level.lower()
        if level == "warning":
            level = "warn"
        overrides.setdefault("logging", {})["level"] = level

    if log_file := os.environ.get("SKILL_SYNC_LOG_FILE"):
        overrides.setdefault("logging", {})["file"] = log_file

    return overrides


def apply_cli_overrides(config_dict: dict[str, Any], cli_args: dict[str, Any]) -> dict[str, Any]:
    """Aplica overrides desde argumentos CLI sobre un dict ya mergeado."""
    overrides: dict[str, Any] = {}

    if cli_args.get("log_file"):
        overrides.setdefault("logging", {})["file"] = cli_args["log_file"]

    if cli_args.get("verbose"):
        overrides.setdefault("logging", {})["verbose"] = cli_args["verbose"]

    if cli_args.get("pattern"):
        overrides["artifact_pattern"] = cli_args["pattern"]

    return deep_merge(config_dict, overrides)


def load_settings(
    store: ConfigStore,
    cli_args: dict[str, Any] | None = None,
) -> SyncConfig:
    """Configuración efectiva de una ejecución: archivo + entorno + CLI, validada.

    Raises:
        ConfigError: Si el archivo o el resultado del merge no son válidos.
    """
    stored = store.load().model_dump()
    merged = deep_merge(stored, load_env_overrides())
    merged = apply_cli_overrides(merged, cli_args or {})
    try:
        return SyncConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration overrides: {e}") from e
