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

"""Swift package model and xcforge configuration."""

from .config import BuildConfig, ConfigError, load_build_config
from .package_info import PackageInfo, ValidationError

__all__ = ["BuildConfig", "ConfigError", "load_build_config", "PackageInfo", "ValidationError"]
