import dataclasses
import importlib
import json
import logging
import os
import re
import uuid
from enum import Enum
from typing import Any, cast

import yaml

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


YamlValue = dict[str, Any] | list[Any] | str | int | float | bool | None

_MAX_DEPTH = 50  # Maximum recursion depth for to_jsonable


def import_from_string(import_string: str) -> Any:
    """
    Import a function or class from a string specification.

    Args:
        import_string: String in format "module.path:attribute_name"

    Returns:
        Imported function or class
    """
    if ":" not in import_string:
        raise ConfigError(f"Import string must contain ':' separator: {import_string!r}")

    module_path, attr_name = import_string.rsplit(":", 1)
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ConfigError(f"Could not import module from '{import_string}': {e}") from e

    if not hasattr(module, attr_name):
        raise ConfigError(f"Could not import attribute from '{import_string}': module '{module_path}' has no attribute '{attr_name}'")
    return getattr(module, attr_name)


def load_yaml_with_vars(path: str | os.PathLike[str]) -> YamlValue:
    """Load a YAML file, resolving ``${this_file_dir}``, ``${env.X}`` and ``${variables.x.y}``."""
    with open(path, encoding="utf-8") as f:
        config_text = f.read()

    base_dir = os.path.dirname(os.path.abspath(path))
    config_text = config_text.replace("${this_file_dir}", base_dir)

    env_pattern = re.compile(r"\$\{env\.([A-Za-z_][A-Za-z0-9_]*)\}")

    def _replace_env(match: re.Match[str]) -> str:
        env_name = match.group(1)
        if env_name not in os.environ:
            raise ConfigError(f"Environment variable '{env_name}' is not set")
        return os.environ[env_name]

    config_text = env_pattern.sub(_replace_env, config_text)

    loaded_config: YamlValue = yaml.safe_load(config_text)
    if not isinstance(loaded_config, dict):
        return loaded_config

    yaml_variables = loaded_config.get("variables")
    if yaml_variables is None:
        return loaded_config
    if not isinstance(yaml_variables, dict):
        raise ConfigError("'variables' must be a mapping if provided in YAML")
    yaml_variables = cast(dict[str, Any], yaml_variables)

    var_pattern = re.compile(
        r"\$\{variables\.([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)\}",
    )

    def _resolve_var(match: re.Match[str]) -> str:
        current: YamlValue = yaml_variables
        for part in match.group(1).split("."):
            if not isinstance(current, dict) or part not in current:
                raise ConfigError(f"Variable '{match.group(1)}' is not defined in 'variables'")
            current = current[part]
        if isinstance(current, (dict, list)):
            raise ConfigError(
                f"Variable '{match.group(1)}' resolves to a non-scalar value and cannot be embedded in a string",
            )
        return str(current)

    config_text = var_pattern.sub(_resolve_var, config_text)
    resolved_config: YamlValue = yaml.safe_load(config_text)
    if isinstance(resolved_config, dict):
        resolved_config.pop("variables", None)
    return resolved_config


def to_jsonable(obj: Any, _depth: int = 0) -> Any:
    """Convert tool results (dataclasses, pydantic models, datetimes...) into JSON-safe values."""
    if _depth > _MAX_DEPTH:
        raise ValueError(f"Maximum serialization depth ({_MAX_DEPTH}) exceeded")

    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, Enum):
        return to_jsonable(obj.value, _depth + 1)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name), _depth + 1) for f in dataclasses.fields(obj)}
    if hasattr(obj, "model_dump"):
        return to_jsonable(obj.model_dump(mode="json"), _depth + 1)
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v, _depth + 1) for k, v in cast(dict[Any, Any], obj).items()}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(v, _depth + 1) for v in cast(list[Any], list(obj))]
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    if isinstance(obj, uuid.UUID):
        return str(obj)

    try:
        json.dumps(obj)
        return obj
    except TypeError:
        logger.debug(f"Falling back to str() for non-serializable {type(obj).__name__}")
        return str(obj)
