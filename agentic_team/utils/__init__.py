"""Shared helpers: YAML loading, dynamic imports, JSON coercion."""

from .common import ConfigError, YamlValue, import_from_string, load_yaml_with_vars, to_jsonable

__all__ = [
    "ConfigError",
    "YamlValue",
    "import_from_string",
    "load_yaml_with_vars",
    "to_jsonable",
]
