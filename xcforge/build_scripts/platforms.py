#!/usr/bin/env python3
# -- coding: utf-8 --
#
# platforms.py
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
Apple platforms xcforge can build and the SDK variants each one builds.

This table is the single place that knows what gets built for a platform:
the builder only ever iterates ``TargetPlatform.sdks``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional


@dataclass(frozen=True)
class SDK:
    """One buildable slice of a platform (device, simulator, desktop)."""

    destination: str
    archive_name: str
    # suffix of the folder xcodebuild puts debug output in, "" for macOS
    sdk_name: str
    build_settings: Dict[str, str] = field(default_factory=dict)

    def release_folder_for(self, configuration: str) -> str:
        """
        Folder name under BUILD_DIR that holds this SDK's products and dSYMs.

        Example:
            SDK("generic/platform=iOS", ...).release_folder_for("Release")
            # -> "Release-iphoneos"
        """
        if not self.sdk_name:
            return configuration
        return f"{configuration}-{self.sdk_name}"

    @property
    def release_folder(self) -> str:
        return self.release_folder_for("Release")


class TargetPlatform(Enum):
    IOS = "ios"
    MACOS = "macos"
    MACCATALYST = "maccatalyst"
    TVOS = "tvos"
    WATCHOS = "watchos"

    @classmethod
    def parse(cls, text: str) -> "TargetPlatform":
        try:
            return cls(text.strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown platform '{text}', expected one of: {valid}")

    @property
    def platform_name(self) -> str:
        """Platform name as Package.swift declares it."""
        if self is TargetPlatform.MACCATALYST:
            return "macos"
        return self.value

    @property
    def sdks(self) -> List[SDK]:
        return list(_SDKS[self])


_SDKS = {
    TargetPlatform.IOS: (
        SDK("generic/platform=iOS", "iphoneos.xcarchive", "iphoneos"),
        SDK("generic/platform=iOS Simulator", "iphonesimulator.xcarchive", "iphonesimulator"),
    ),
    TargetPlatform.MACOS: (
        SDK("platform=macOS", "macos.xcarchive", ""),
    ),
    TargetPlatform.MACCATALYST: (
        SDK(
            "platform=macOS,variant=Mac Catalyst",
            "maccatalyst.xcarchive",
            "maccatalyst",
            {"SUPPORTS_MACCATALYST": "YES"},
        ),
    ),
    TargetPlatform.TVOS: (
        SDK("generic/platform=tvOS", "appletvos.xcarchive", "appletvos"),
        SDK("generic/platform=tvOS Simulator", "appletvsimulator.xcarchive", "appletvsimulator"),
    ),
    TargetPlatform.WATCHOS: (
        SDK("generic/platform=watchOS", "watchos.xcarchive", "watchos"),
        SDK("generic/platform=watchOS Simulator", "watchsimulator.xcarchive", "watchsimulator"),
    ),
}


def supported_platforms(
    requested: Optional[Iterable[TargetPlatform]] = None,
    package_platform_names: Optional[Iterable[str]] = None,
) -> List[TargetPlatform]:
    """
    Work out which platforms to build.

    Args:
        requested: Platforms asked for on the command line (default: all)
        package_platform_names: Platform names declared in Package.swift, if any

    Returns:
        list: The requested platforms the package supports, in requested order
    """
    platforms = list(requested or []) or list(TargetPlatform)
    package_platform_names = [name.lower() for name in (package_platform_names or [])]
    if not package_platform_names:
        return platforms
    return [
        p for p in platforms
        if p.value in package_platform_names or p.platform_name in package_platform_names
    ]


def sdks_for(platforms: Iterable[TargetPlatform]) -> List[SDK]:
    """Every SDK variant of ``platforms``, platform by platform."""
    return [sdk for platform in platforms for sdk in platform.sdks]
