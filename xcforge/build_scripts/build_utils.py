#!/usr/bin/env python3
# -- coding: utf-8 --
#
# build_utils.py
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
Build utility functions shared by the xcforge stages.

This module provides:
- Product name mangling (the rule Xcode applies to target names)
- Build setting parsing (NAME=VALUE pairs from the command line or config)
- Best-effort file system helpers used as existence probes and cleanup
- Output decoding for captured tool output
"""

import os
import re
import shutil
from dataclasses import dataclass

CONFIGURATION_NAMES = {
    "debug": "Debug",
    "release": "Release",
}


def product_name(target):
    """
    Convert a target name into the module/product name Xcode builds it as.

    Xcode replaces every non-alphanumeric character in the target name with an
    underscore, and a leading digit with an underscore as well. The build
    output paths are derived from this name, not reported by xcodebuild, so
    if Xcode ever changes the rule path discovery breaks with it.

    Args:
        target: Target or product name as written in Package.swift

    Returns:
        str: The mangled name

    Example:
        product_name("MyLib-2")  # -> "MyLib_2"
        product_name("2Fast")    # -> "_Fast"
    """
    name = re.sub(r"[^0-9a-zA-Z]", "_", target)
    return re.sub(r"^[0-9]", "_", name)


def xcode_configuration_name(configuration):
    """Map ``debug``/``release`` to Xcode's ``Debug``/``Release``."""
    try:
        return CONFIGURATION_NAMES[configuration.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown configuration '{configuration}', expected one of: {', '.join(CONFIGURATION_NAMES)}"
        )


@dataclass(frozen=True)
class BuildSetting:
    """An Xcode build setting override, e.g. ``IPHONEOS_DEPLOYMENT_TARGET=13.0``."""

    name: str
    value: str

    @classmethod
    def parse(cls, argument):
        """
        Parse a ``NAME=VALUE`` argument.

        Exactly one ``=`` is accepted; whitespace around name and value is
        trimmed.

        Raises:
            ValueError: if the argument is not a single NAME=VALUE pair
        """
        components = argument.split("=")
        if len(components) != 2:
            raise ValueError(f"Invalid build setting '{argument}', expected NAME=VALUE")
        name = components[0].strip()
        if not name:
            raise ValueError(f"Invalid build setting '{argument}', the name is empty")
        return cls(name, components[1].strip())

    def argument(self):
        return f"{self.name}={self.value}"


def remove_item(path):
    """
    Remove a file or directory if it is there.

    Best effort: a missing path is the common case and any removal failure is
    ignored, the caller does not depend on it succeeding.
    """
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)
    except OSError:
        pass


def write_text_file(path, text):
    """Write ``text`` as UTF-8 to ``path``, creating the parent directory."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path


def decode_bytes(input: bytes) -> str:
    """
    Decode captured tool output.

    Attempts UTF-8 decoding first, falls back to latin-1 so undecodable
    bytes never abort parsing.
    """
    try:
        return bytes.decode(input, "UTF-8")
    except UnicodeDecodeError:
        return bytes.decode(input, "latin-1")
