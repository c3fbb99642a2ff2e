#!/usr/bin/env python3
# -- coding: utf-8 --
#
# zipper.py
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
Packaging of XCFrameworks into versioned, checksummed zip files.

    <output>/<Product>.xcframework
        -> <output>/<Product><suffix>.xcframework.zip
        -> <output>/<Product><suffix>.xcframework.sha256

The suffix is ``-<version>`` where the version is the one the target's
package was resolved to in the dependency graph, else the ``--zip-version``
given by the user, else empty.
"""

import hashlib
import os
import shutil
from typing import Optional

from xcforge.utils.context.errors import XcforgeError

ZIP_EXTENSION = ".zip"
CHECKSUM_EXTENSION = ".sha256"
XCFRAMEWORK_EXTENSION = ".xcframework"


class ChecksumError(XcforgeError):
    pass


def calculate_checksum(file_path) -> str:
    """
    Calculate SHA256 checksum of a file.

    Args:
        file_path: Path to file

    Returns:
        SHA256 checksum as lowercase hex string
    """
    sha256_hash = hashlib.sha256()
    with open(file_path, "rb") as f:
        for byte_block in iter(lambda: f.read(4096), b""):
            sha256_hash.update(byte_block)
    return sha256_hash.hexdigest()


def zip_path_for(bundle_path, suffix=""):
    """``Foo.xcframework`` -> ``Foo<suffix>.xcframework.zip``."""
    if bundle_path.endswith(XCFRAMEWORK_EXTENSION):
        stem = bundle_path[: -len(XCFRAMEWORK_EXTENSION)]
        return f"{stem}{suffix}{XCFRAMEWORK_EXTENSION}{ZIP_EXTENSION}"
    return f"{bundle_path}{suffix}{ZIP_EXTENSION}"


def checksum_path_for(zip_path):
    """``Foo-1.0.xcframework.zip`` -> ``Foo-1.0.xcframework.sha256``."""
    return os.path.splitext(zip_path)[0] + CHECKSUM_EXTENSION


class Zipper:
    """Zips merged XCFrameworks and writes their checksum files."""

    def __init__(self, package, context):
        self.package = package
        self.context = context

    # region version

    def resolved_version(self, target, fallback=None) -> Optional[str]:
        """
        Version string the package owning ``target`` was resolved to.

        Returns:
            The resolved version; ``fallback`` when the owning package has no
            resolved version (root or local package); None when no package
            declares the target or the fallback is empty.
        """
        package_ref = self.package.graph.package_for_target(target)
        if package_ref is None:
            return None

        dependency = self.package.workspace_state.get(package_ref.identity)
        if dependency is None or not dependency.version:
            return fallback or None

        return str(dependency.version)

    def version_suffix(self, target, fallback=None) -> str:
        version = self.resolved_version(target, fallback)
        return f"-{version}" if version else ""

    # endregion

    # region zip

    def zip(self, target, version, file) -> str:
        """
        Compress the XCFramework at ``file`` with ditto, keeping the
        ``.xcframework`` directory as the single top-level entry.

        Returns:
            str: Path of the zip file

        Raises:
            ProcessError: if ditto fails
        """
        suffix = self.version_suffix(target, version)
        if version and suffix != f"-{version}":
            self.context.diagnostics.warning(
                f"zip version {version} not used for {target}, the resolved suffix is '{suffix}'"
            )
        zip_path = zip_path_for(file, suffix)

        self.context.diagnostics.info(f"\nPackaging {file} into {zip_path}\n")
        self.context.run(self.zip_command(file, zip_path))
        return zip_path

    def zip_command(self, source, target):
        return [self.context.ditto, "-c", "-k", "--keepParent", source, target]

    def checksum(self, file) -> str:
        """
        Write the SHA256 of the zip at ``file`` next to it.

        Returns:
            str: Path of the checksum file

        Raises:
            ChecksumError: if ``file`` is not an existing .zip file
        """
        if not file.endswith(ZIP_EXTENSION):
            raise ChecksumError(f"unexpected file type; supported extensions are: {ZIP_EXTENSION[1:]}")
        if not os.path.isfile(file):
            raise ChecksumError(f"file not found at path: {file}")

        checksum_file = checksum_path_for(file)
        with open(checksum_file, "w", encoding="utf-8", newline="") as f:
            f.write(calculate_checksum(file))
        return checksum_file

    # endregion

    # region clean

    def clean(self, file):
        """Remove the XCFramework once it has been zipped; failures propagate."""
        if os.path.isdir(file) and not os.path.islink(file):
            shutil.rmtree(file)
        else:
            os.remove(file)

    # endregion
