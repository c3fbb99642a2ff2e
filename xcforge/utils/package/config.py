#
# Copyright 2024 xcforge Project Authors. All rights reserved.
# Use of this source code is governed by a MIT-style
# license that can be found at
#
# https://opensource.org/license/MIT
#
# The above copyright notice and this permission
# notice shall be included in all copies or
# substantial portions of the Software.

"""
xcforge configuration file handling.

Build defaults can be kept in ``xcforge.toml`` at the package root:

    [build]
    configuration = "release"
    platforms = ["ios", "macos"]
    output = "dist"
    zip = true
    debug_symbols = true
    timeout = 3600

    [build.xc_settings]
    IPHONEOS_DEPLOYMENT_TARGET = "13.0"

    [build.framework_subpath]
    workspace = "Products/usr/local/lib"
    project = "Products/Library/Frameworks"

Values given on the command line always win over the file.
"""

import os
import sys
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from xcforge.build_scripts.build_utils import CONFIGURATION_NAMES
from xcforge.utils.context.errors import XcforgeError

CONFIG_FILE_NAME = "xcforge.toml"

EXIT_CONFIG_ERROR = 64

# where xcodebuild places the framework inside an archive; unverified conventions
WORKSPACE_FRAMEWORK_SUBPATH = "Products/usr/local/lib"
PROJECT_FRAMEWORK_SUBPATH = "Products/Library/Frameworks"


class ConfigError(XcforgeError):
    exit_code = EXIT_CONFIG_ERROR


@dataclass
class BuildConfig:
    """Options of one ``xcforge build`` run."""

    package_path: str = "."
    build_path: str = ".build"
    configuration: str = "release"
    clean: bool = True
    list_products: bool = False
    xcconfig: Optional[str] = None
    xc_settings: Dict[str, str] = field(default_factory=dict)
    platforms: List[str] = field(default_factory=list)
    output: str = "."
    zip: bool = False
    zip_version: Optional[str] = None
    stack_evolution: bool = False
    debug_symbols: bool = True
    legacy: bool = False
    github_action: bool = False
    products: List[str] = field(default_factory=list)
    timeout: Optional[float] = None
    workspace_framework_subpath: str = WORKSPACE_FRAMEWORK_SUBPATH
    project_framework_subpath: str = PROJECT_FRAMEWORK_SUBPATH

    def merged(self, overrides: Dict[str, Any]) -> "BuildConfig":
        """Copy of this config with every non-None value of ``overrides`` applied."""
        known = {f.name for f in fields(self)}
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for key, value in overrides.items():
            if key not in known or value is None:
                continue
            if key == "xc_settings":
                value = {**values["xc_settings"], **value}
            values[key] = value
        return BuildConfig(**values)


def _expect(section: Dict[str, Any], key: str, kind, path: str):
    value = section[key]
    if not isinstance(value, kind):
        kinds = kind if isinstance(kind, tuple) else (kind,)
        raise ConfigError(f"{path}: '{key}' must be {' or '.join(k.__name__ for k in kinds)}")
    return value


def parse_build_section(data: Dict[str, Any], path: str = CONFIG_FILE_NAME) -> Dict[str, Any]:
    """Turn the ``[build]`` table of a config file into BuildConfig values."""
    section = data.get("build") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"{path}: [build] must be a table")

    values: Dict[str, Any] = {}
    # zip_version must be quoted, 1.10 would otherwise read as 1.1
    for key in ("configuration", "output", "build_path", "xcconfig", "zip_version"):
        if key in section:
            values[key] = _expect(section, key, str, path)
    if "configuration" in values and values["configuration"].lower() not in CONFIGURATION_NAMES:
        raise ConfigError(
            f"{path}: unknown configuration '{values['configuration']}',"
            f" expected one of: {', '.join(CONFIGURATION_NAMES)}"
        )
    if "timeout" in section:
        timeout = section["timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError(f"{path}: 'timeout' must be a positive number of seconds")
        values["timeout"] = float(timeout)
    for key in ("clean", "zip", "stack_evolution", "debug_symbols", "legacy"):
        if key in section:
            values[key] = _expect(section, key, bool, path)
    for key in ("platforms", "products"):
        if key in section:
            items = _expect(section, key, (list, str), path)
            if isinstance(items, str):
                items = [p.strip() for p in items.split(",") if p.strip()]
            values[key] = [str(item) for item in items]
    if "xc_settings" in section:
        settings = _expect(section, "xc_settings", dict, path)
        values["xc_settings"] = {str(k): str(v) for k, v in settings.items()}
    if "framework_subpath" in section:
        subpaths = _expect(section, "framework_subpath", dict, path)
        if "workspace" in subpaths:
            values["workspace_framework_subpath"] = str(subpaths["workspace"])
        if "project" in subpaths:
            values["project_framework_subpath"] = str(subpaths["project"])
    return values


def load_build_config(package_path: str = ".", config_file: Optional[str] = None) -> BuildConfig:
    """
    Load build defaults for the package at ``package_path``.

    Args:
        package_path: Package root, searched for xcforge.toml
        config_file: Explicit config file; it must exist when given

    Raises:
        ConfigError: if the file cannot be read or has invalid values
    """
    path = config_file or os.path.join(package_path, CONFIG_FILE_NAME)
    if not os.path.isfile(path):
        if config_file:
            raise ConfigError(f"Config file not found: {config_file}")
        return BuildConfig(package_path=package_path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Unable to read {path}: {e}")

    return BuildConfig(package_path=package_path).merged(parse_build_section(data, path))
