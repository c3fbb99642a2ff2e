#!/usr/bin/env python3
# -- coding: utf-8 --
#
# xcode_builder.py
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
Archive builds and XCFramework merging with xcodebuild.

For every (target, SDK) pair one ``xcodebuild archive`` is run, one after
the other; xcodebuild parallelises internally and concurrent invocations
against the same BUILD_DIR corrupt its incremental state. Once every SDK
has been built the per-SDK frameworks of a target are merged with
``xcodebuild -create-xcframework``.

xcodebuild does not report where it put the framework inside the archive.
The path is assumed from the build policy:

- WorkspacePolicy (builds the package directly):
      <archive>/Products/usr/local/lib/<Product>.framework
- ProjectPolicy (builds a generated .xcodeproj, ``--legacy``):
      <archive>/Products/Library/Frameworks/<Product>.framework

Both sub-paths can be overridden from xcforge.toml.
"""

import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from xcforge.build_scripts.build_utils import (
    product_name,
    remove_item,
    xcode_configuration_name,
)
from xcforge.build_scripts.debug_symbols import DebugSymbolResolver
from xcforge.build_scripts.project_generator import DISTRIBUTION_SETTING
from xcforge.utils.context.errors import XcforgeError


class LegacyRequiredError(XcforgeError):
    def __init__(self):
        super().__init__("Attempting to build using something that requires the --legacy option.")


@dataclass(frozen=True)
class BuildResult:
    """Output of one archive build, handed to the merge stage."""

    target: str
    framework_path: str
    debug_symbols_path: str


class BuildPolicy:
    """
    How xcodebuild is invoked and where it is assumed to put the output.

    Subclasses provide the project locator, the framework location inside an
    archive and the clean behaviour.
    """

    framework_subpath = ""

    def __init__(self, package, config, context):
        self.package = package
        self.config = config
        self.context = context

    @property
    def build_directory(self):
        return os.path.join(self.package.project_build_directory, "build")

    @property
    def configuration_name(self):
        return xcode_configuration_name(self.config.configuration)

    def locator(self) -> List[str]:
        raise NotImplementedError

    def archive_path(self, target, sdk):
        return os.path.join(self.build_directory, product_name(target), sdk.archive_name)

    def framework_path(self, target, sdk):
        return os.path.join(
            self.archive_path(target, sdk),
            self.framework_subpath,
            f"{product_name(target)}.framework",
        )

    def debug_symbols_path(self, target, sdk):
        return os.path.join(self.build_directory, sdk.release_folder_for(self.configuration_name))

    def extra_arguments(self) -> List[str]:
        return []

    def actions(self) -> List[str]:
        return ["archive"]

    def archive_command(self, target, sdk) -> List[str]:
        command = [self.context.xcrun, "xcodebuild"]
        command += self.locator()
        command += [
            "-configuration", self.configuration_name,
            "-archivePath", self.archive_path(target, sdk),
            "-destination", sdk.destination,
            f"BUILD_DIR={self.build_directory}",
            "SKIP_INSTALL=NO",
        ]

        # evolution for the whole stack, otherwise Distribution.xcconfig scopes it
        if self.config.stack_evolution:
            command.append(f"{DISTRIBUTION_SETTING}=YES")

        for key, value in sdk.build_settings.items():
            command.append(f"{key}={value}")

        command += self.extra_arguments()

        # after the SDK settings so they can be shadowed
        for key, value in self.config.xc_settings.items():
            command.append(f"{key}={value}")

        command += ["-scheme", target]
        command += self.actions()
        return command

    def clean_command(self) -> Optional[List[str]]:
        return None


class WorkspacePolicy(BuildPolicy):
    """Build the Swift package directly, xcodebuild treats it as a workspace."""

    def __init__(self, package, config, context):
        super().__init__(package, config, context)
        self.framework_subpath = config.workspace_framework_subpath

    def locator(self):
        return ["-workspace", self.package.root_directory]

    def extra_arguments(self):
        return ["-xcconfig", self.package.distribution_xcconfig]

    def actions(self):
        if self.config.clean:
            return ["clean", "archive"]
        return ["archive"]


class ProjectPolicy(BuildPolicy):
    """Build a generated .xcodeproj (``--legacy``)."""

    def __init__(self, package, config, context, project_path=None):
        if not project_path:
            raise LegacyRequiredError()
        super().__init__(package, config, context)
        self.project_path = project_path
        self.framework_subpath = config.project_framework_subpath

    def locator(self):
        return ["-project", self.project_path]

    def clean_command(self):
        return [
            self.context.xcrun,
            "xcodebuild",
            "-project", self.project_path,
            f"BUILD_DIR={self.build_directory}",
            "clean",
        ]


class XcodeBuilder:
    """Runs the archive builds and merges their output into XCFrameworks."""

    def __init__(self, package, config, context, policy: BuildPolicy, resolver=None):
        self.package = package
        self.config = config
        self.context = context
        self.policy = policy
        self.resolver = resolver or DebugSymbolResolver(context)

    # region clean

    def clean(self):
        command = self.policy.clean_command()
        if command:
            self.context.run(command)

    # endregion

    # region build

    def build(self, targets, sdk) -> Dict[str, BuildResult]:
        """
        Archive every target for ``sdk``.

        Returns:
            dict: target name -> BuildResult, in ``targets`` order

        Raises:
            ProcessError: on the first failed build; later targets are not built
        """
        for target in targets:
            self.context.diagnostics.info(f"\nBuilding {target} for {sdk.destination}\n")
            self.context.run(self.policy.archive_command(target, sdk))

        return {
            target: BuildResult(
                target=target,
                framework_path=self.policy.framework_path(target, sdk),
                debug_symbols_path=self.policy.debug_symbols_path(target, sdk),
            )
            for target in targets
        }

    # endregion

    # region merge

    def xcframework_path(self, target):
        return os.path.abspath(os.path.join(self.config.output, f"{product_name(target)}.xcframework"))

    def merge_command(self, output_path, build_results) -> List[str]:
        command = [self.context.xcrun, "xcodebuild", "-create-xcframework"]

        for result in build_results:
            command += ["-framework", result.framework_path]
            if self.config.debug_symbols:
                for path in self.resolver.resolve(result.target, result.debug_symbols_path):
                    command += ["-debug-symbols", path]

        command += ["-output", output_path]
        return command

    def merge(self, target, build_results) -> str:
        """
        Merge the per-SDK frameworks of ``target`` into one XCFramework.

        Any XCFramework already at the output path is removed first so
        repeated runs do not merge against stale content.

        Returns:
            str: Path of the XCFramework
        """
        output_path = self.xcframework_path(target)
        remove_item(output_path)

        self.context.diagnostics.info(f"\nMerging {target} into {output_path}\n")
        self.context.run(self.merge_command(output_path, build_results))
        return output_path

    # endregion


def make_policy(package, config, context, project_path=None) -> BuildPolicy:
    if config.legacy:
        return ProjectPolicy(package, config, context, project_path)
    return WorkspacePolicy(package, config, context)
