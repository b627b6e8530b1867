# promptdoc/config/loader.py
"""
Handles loading and merging of configurations from TOML files, and turning
the merged mapping into a RenderConfig.
"""
import toml
from pathlib import Path
from typing import Any, Dict, Optional
import structlog

from promptdoc.exceptions import ConfigError

from .settings import RenderConfig, Syntax, TruncateDirection, UnknownTagPolicy

log = structlog.get_logger(__name__)

PROJECT_CONFIG_FILENAMES = [".promptdoc.toml", "promptdoc.toml", "pyproject.toml"]
USER_CONFIG_DIR = Path.home() / ".config" / "promptdoc"
USER_CONFIG_FILE = USER_CONFIG_DIR / "config.toml"

CONFIG_KEY_TO_RENDERCONFIG_ATTR_MAP: Dict[str, str] = {
    "syntax": "syntax",
    "unknown_tags": "unknown_tag_policy",
    "unknown_tag_policy": "unknown_tag_policy",
    "truncate_marker": "truncate_marker",
    "truncate_direction": "truncate_direction",
    "concurrent_children": "concurrent_children",
    "base_dir": "base_dir",
}

ENUM_ATTRS = {
    "syntax": Syntax,
    "unknown_tag_policy": UnknownTagPolicy,
    "truncate_direction": TruncateDirection,
}

def _load_toml_file_data(file_path: Path) -> Dict[str, Any]:
    if not file_path.is_file():
        return {}
    log.debug("loading_toml_config_file", path=str(file_path))
    try:
        data = toml.load(file_path)
    except (toml.TomlDecodeError, OSError) as e:
        log.error("config_file_load_error", path=str(file_path), error=str(e))
        return {}
    if file_path.name == "pyproject.toml":
        return data.get("tool", {}).get("promptdoc", {})
    return data

def load_and_merge_configs(
    start_dir: Optional[Path] = None, user_config_file: Optional[Path] = None
) -> Dict[str, Any]:
    # user-global config first, then the first project-local file found; profiles merge by name.
    merged: Dict[str, Any] = {}
    user_file = user_config_file if user_config_file is not None else USER_CONFIG_FILE
    if user_file.is_file():
        log.info("loading_user_global_config", path=str(user_file))
        merged.update(_load_toml_file_data(user_file))

    base = start_dir or Path.cwd()
    for filename in PROJECT_CONFIG_FILENAMES:
        candidate = base / filename
        if not candidate.is_file():
            continue
        project_settings = _load_toml_file_data(candidate)
        if not project_settings:
            continue
        log.info("loading_project_local_config", path=str(candidate))
        user_profiles = merged.get("profiles", {})
        project_profiles = project_settings.pop("profiles", {})
        if isinstance(user_profiles, dict) and isinstance(project_profiles, dict):
            user_profiles.update(project_profiles)
            merged["profiles"] = user_profiles
        elif isinstance(project_profiles, dict):
            merged["profiles"] = project_profiles
        merged.update(project_settings)
        break

    if not merged:
        log.debug("no_configuration_files_loaded")
    return merged

def _coerce(attr: str, value: Any) -> Any:
    if attr in ENUM_ATTRS:
        parsed = ENUM_ATTRS[attr].from_string(value)
        if parsed is None:
            raise ConfigError(f"invalid value {value!r} for '{attr}'")
        return parsed
    if attr == "concurrent_children":
        if not isinstance(value, bool):
            raise ConfigError(f"'concurrent_children' must be a boolean, got {value!r}")
        return value
    if attr == "truncate_marker":
        if not isinstance(value, str):
            raise ConfigError(f"'truncate_marker' must be a string, got {value!r}")
        return value
    if attr == "base_dir":
        return Path(value)
    return value

def config_from_mapping(raw: Dict[str, Any], profile: Optional[str] = None, **overrides: Any) -> RenderConfig:
    """
    Builds a RenderConfig from a merged TOML mapping.

    Top-level keys apply first, then the named profile's keys, then explicit
    keyword overrides (already attribute-named, e.g. from the CLI). None
    overrides are ignored so unset CLI flags keep file values.
    """
    options: Dict[str, Any] = {}

    def _apply(section: Dict[str, Any], source: str):
        for key, value in section.items():
            if key == "profiles":
                continue
            attr = CONFIG_KEY_TO_RENDERCONFIG_ATTR_MAP.get(key)
            if attr is None:
                log.debug("ignoring_unknown_config_key", key=key, source=source)
                continue
            options[attr] = _coerce(attr, value)

    _apply(raw, "top_level")

    if profile:
        profile_values = raw.get("profiles", {}).get(profile)
        if profile_values is None:
            raise ConfigError(f"profile '{profile}' not found in configuration files")
        log.info("applying_profile_settings", profile=profile)
        _apply(profile_values, f"profile:{profile}")

    for attr, value in overrides.items():
        if value is None:
            continue
        options[attr] = _coerce(attr, value)

    return RenderConfig(**options)
