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

"""Build, merge and packaging stages for XCFrameworks."""

__all__ = [
    "build_utils",
    "debug_symbols",
    "platforms",
    "project_generator",
    "xcode_builder",
    "zipper",
]
