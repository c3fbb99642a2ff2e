#!/usr/bin/env python3
# -- coding: utf-8 --
#
# project_generator.py
# xcforge
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
Distribution xcconfig and Xcode project generation.

Every archive build is handed ``Distribution.xcconfig``. It pulls in the
user's own ``--xcconfig`` file and switches on library evolution
(``BUILD_LIBRARY_FOR_DISTRIBUTION``), either for the whole dependency stack
or only for the products being built. Some dependencies fail to build with
library evolution, so the default is to scope it to the requested products:

    XCFORGE_DISTRIBUTION_MyLib=YES
    BUILD_LIBRARY_FOR_DISTRIBUTION=$(XCFORGE_DISTRIBUTION_$(TARGET_NAME:c99extidentifier):default=NO)
"""

import os

from xcforge.build_scripts.build_utils import product_name, write_text_file

DISTRIBUTION_SETTING = "BUILD_LIBRARY_FOR_DISTRIBUTION"
SCOPED_SETTING_PREFIX = "XCFORGE_DISTRIBUTION_"


def distribution_xcconfig_text(product_names, stack_evolution, overrides_include=None):
    """
    Render the contents of Distribution.xcconfig.

    Args:
        product_names: Products/targets being built
        stack_evolution: Enable library evolution for every target
        overrides_include: Path of the user's xcconfig, relative to the
            Distribution.xcconfig directory, or None
    """
    lines = []
    if overrides_include:
        lines.append(f'#include "{overrides_include}"')
        lines.append("")

    if stack_evolution:
        lines.append(f"{DISTRIBUTION_SETTING}=YES")
    else:
        for name in product_names:
            lines.append(f"{SCOPED_SETTING_PREFIX}{product_name(name)}=YES")
        lines.append(
            f"{DISTRIBUTION_SETTING}="
            f"$({SCOPED_SETTING_PREFIX}$(TARGET_NAME:c99extidentifier):default=NO)"
        )
    return "\n".join(lines) + "\n"


class ProjectGenerator:
    """Writes the build configuration files xcodebuild is pointed at."""

    def __init__(self, package, context):
        self.package = package
        self.context = context

    @property
    def project_path(self):
        return os.path.join(self.package.project_build_directory, f"{self.package.name}.xcodeproj")

    def write_distribution_xcconfig(self, product_names, stack_evolution=False):
        """Write Distribution.xcconfig and return its path."""
        path = self.package.distribution_xcconfig
        include = None
        overrides = self.package.overrides_xcconfig
        if overrides:
            include = os.path.relpath(overrides, os.path.dirname(path))
        text = distribution_xcconfig_text(product_names, stack_evolution, include)
        self.context.diagnostics.info(f"Writing {path}")
        return write_text_file(path, text)

    def generate(self):
        """
        Generate an Xcode project for the package (legacy builds only).

        Returns:
            str: Path of the generated .xcodeproj

        Raises:
            ProcessError: if SwiftPM fails to generate the project
        """
        os.makedirs(self.package.project_build_directory, exist_ok=True)
        self.context.run(
            [
                self.context.swift,
                "package",
                "--package-path",
                self.package.root_directory,
                "generate-xcodeproj",
                "--output",
                self.package.project_build_directory,
                "--xcconfig-overrides",
                self.package.distribution_xcconfig,
            ]
        )
        return self.project_path
