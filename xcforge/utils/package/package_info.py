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
Swift package model used by xcforge.

xcforge does not parse Package.swift itself. It asks SwiftPM:

- ``swift package dump-package`` for the root manifest (products, targets,
  platforms) and for every dependency checkout (targets),
- ``swift package show-dependencies --format json`` for the dependency tree,
- ``Package.resolved`` for the versions dependencies were pinned to.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from xcforge.build_scripts.build_utils import decode_bytes
from xcforge.build_scripts.platforms import TargetPlatform, supported_platforms
from xcforge.utils.context.errors import XcforgeError

# sysexits.h EX_USAGE
EXIT_VALIDATION_ERROR = 64

PROJECT_BUILD_FOLDER = "xcforge"
DISTRIBUTION_XCCONFIG = "Distribution.xcconfig"
RESOLVED_FILE = "Package.resolved"
UNSPECIFIED_VERSION = "unspecified"

# target types xcodebuild can turn into a framework
FRAMEWORK_TARGET_TYPES = ("regular",)


class ValidationError(XcforgeError):
    """The requested products cannot be built from this package."""

    exit_code = EXIT_VALIDATION_ERROR


class ManifestError(XcforgeError):
    """SwiftPM produced output xcforge cannot read."""


def package_identity(location: str) -> str:
    """
    Derive SwiftPM's package identity from a URL or path.

    Example:
        package_identity("https://github.com/apple/swift-nio.git")  # -> "swift-nio"
    """
    last = location.rstrip("/").split("/")[-1]
    if last.endswith(".git"):
        last = last[: -len(".git")]
    return last.lower()


def _load_json(data, what):
    try:
        return json.loads(decode_bytes(data) if isinstance(data, bytes) else data)
    except ValueError as e:
        raise ManifestError(f"Unable to read {what}: {e}")


@dataclass
class Product:
    name: str
    type: str

    @property
    def is_library(self) -> bool:
        return self.type == "library"


@dataclass
class Manifest:
    """The parts of a package manifest xcforge needs."""

    name: str
    products: List[Product] = field(default_factory=list)
    targets: List[str] = field(default_factory=list)
    platforms: List[str] = field(default_factory=list)

    @property
    def library_product_names(self) -> List[str]:
        return [p.name for p in self.products if p.is_library]

    @classmethod
    def from_dump(cls, dump: dict) -> "Manifest":
        products = []
        for product in dump.get("products") or []:
            product_type = product.get("type") or {}
            if isinstance(product_type, dict):
                kind = next(iter(product_type), "")
            else:
                kind = str(product_type)
            products.append(Product(product["name"], kind))

        targets = [
            target["name"]
            for target in dump.get("targets") or []
            if target.get("type", "regular") in FRAMEWORK_TARGET_TYPES
        ]
        platforms = [p["platformName"].lower() for p in dump.get("platforms") or []]
        return cls(dump.get("name", ""), products, targets, platforms)


@dataclass
class ResolvedPackage:
    identity: str
    name: str
    path: str
    targets: List[str] = field(default_factory=list)
    is_root: bool = False


class PackageGraph:
    """Root package plus every package it depends on, root first."""

    def __init__(self, packages: Iterable[ResolvedPackage]):
        self.packages = list(packages)

    @property
    def root(self) -> Optional[ResolvedPackage]:
        return next((p for p in self.packages if p.is_root), None)

    @property
    def all_targets(self) -> List[str]:
        return [target for package in self.packages for target in package.targets]

    def package_for_target(self, target: str) -> Optional[ResolvedPackage]:
        """The first package that declares ``target``, or None."""
        return next((p for p in self.packages if target in p.targets), None)


@dataclass(frozen=True)
class DependencyState:
    # None for root, local (path) and branch/revision dependencies
    version: Optional[str] = None


class WorkspaceState:
    """What each dependency was resolved to, keyed by package identity."""

    def __init__(self, dependencies: Optional[Dict[str, DependencyState]] = None):
        self.dependencies = dict(dependencies or {})

    def get(self, identity: str) -> Optional[DependencyState]:
        return self.dependencies.get(identity)

    @classmethod
    def from_resolved(cls, data) -> "WorkspaceState":
        """Read Package.resolved (format 1 and format 2/3)."""
        resolved = _load_json(data, RESOLVED_FILE)
        if "object" in resolved:
            pins = resolved["object"].get("pins") or []
        else:
            pins = resolved.get("pins") or []

        dependencies = {}
        for pin in pins:
            identity = pin.get("identity") or package_identity(
                pin.get("repositoryURL") or pin.get("location") or pin.get("package", "")
            )
            state = pin.get("state") or {}
            dependencies[identity] = DependencyState(state.get("version"))
        return cls(dependencies)


class PackageInfo:
    """Everything xcforge knows about the package it is building."""

    def __init__(
        self,
        root_directory: str,
        build_directory: str,
        manifest: Manifest,
        graph: PackageGraph,
        workspace_state: WorkspaceState,
        xcconfig: Optional[str] = None,
    ):
        self.root_directory = os.path.abspath(root_directory)
        self.build_directory = os.path.abspath(os.path.join(self.root_directory, build_directory))
        self.manifest = manifest
        self.graph = graph
        self.workspace_state = workspace_state
        self.xcconfig = xcconfig

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def project_build_directory(self) -> str:
        return os.path.join(self.build_directory, PROJECT_BUILD_FOLDER)

    @property
    def distribution_xcconfig(self) -> str:
        return os.path.join(self.project_build_directory, DISTRIBUTION_XCCONFIG)

    @property
    def overrides_xcconfig(self) -> Optional[str]:
        """The user's ``--xcconfig`` file, resolved against the package root."""
        path = self.xcconfig
        if not path:
            return None
        if os.path.isabs(path):
            return path
        if path.startswith("./"):
            path = path[2:]
        return os.path.join(self.root_directory, path)

    # region loading

    @classmethod
    def load(cls, context, package_path=".", build_path=".build", xcconfig=None) -> "PackageInfo":
        """
        Load the package at ``package_path`` through SwiftPM.

        Raises:
            ProcessError: if a swift command fails
            ManifestError: if SwiftPM output cannot be read
        """
        root = os.path.abspath(package_path)
        manifest = Manifest.from_dump(cls._dump_package(context, root))

        tree = _load_json(
            context.run(
                [context.swift, "package", "--package-path", root, "show-dependencies", "--format", "json"],
                capture_output=True,
            ),
            "the dependency tree",
        )

        packages = [
            ResolvedPackage(
                identity=tree.get("identity") or package_identity(root),
                name=manifest.name,
                path=root,
                targets=list(manifest.targets),
                is_root=True,
            )
        ]
        versions = {}
        seen = {packages[0].identity}
        pending = list(tree.get("dependencies") or [])
        while pending:
            node = pending.pop(0)
            location = node.get("url") or node.get("path") or node.get("name", "")
            identity = node.get("identity") or package_identity(location)
            pending.extend(node.get("dependencies") or [])
            if identity in seen:
                continue
            seen.add(identity)

            path = node.get("path") or ""
            targets = []
            if path and os.path.isdir(path):
                targets = Manifest.from_dump(cls._dump_package(context, path)).targets
            packages.append(ResolvedPackage(identity, node.get("name", identity), path, targets))

            version = node.get("version")
            if version and version != UNSPECIFIED_VERSION:
                versions[identity] = DependencyState(version)

        state = WorkspaceState(versions)
        resolved_path = os.path.join(root, RESOLVED_FILE)
        if os.path.isfile(resolved_path):
            with open(resolved_path, "rb") as f:
                state.dependencies.update(WorkspaceState.from_resolved(f.read()).dependencies)

        return cls(root, build_path, manifest, PackageGraph(packages), state, xcconfig)

    @staticmethod
    def _dump_package(context, path) -> dict:
        output = context.run(
            [context.swift, "package", "--package-path", path, "dump-package"],
            capture_output=True,
        )
        return _load_json(output, f"the manifest of {path}")

    # endregion

    # region products

    def additional_target_names(self) -> List[str]:
        products = self.manifest.library_product_names
        return [t for t in self.graph.all_targets if t not in products]

    def valid_product_names(self, requested: Optional[List[str]] = None) -> List[str]:
        """
        The products/targets to build.

        Args:
            requested: Names given on the command line (default: every
                library product of the root package)

        Raises:
            ValidationError: if nothing is left to build or a name is unknown
        """
        product_names = list(requested or []) or self.manifest.library_product_names
        if not product_names:
            raise ValidationError(
                "No products to create frameworks for were found. Add library products to Package.swift"
                " or specify products/targets on the command line."
            )

        buildable = set(self.manifest.library_product_names) | set(self.graph.all_targets)
        invalid = [name for name in product_names if name not in buildable]
        if invalid:
            raise ValidationError(
                "Invalid product/target name(s):\n"
                + _indented(invalid)
                + f"\n\n{self.products_description()}"
            )
        return product_names

    def products_description(self) -> str:
        return (
            f"Available {self.name} products:\n"
            + _indented(sorted(self.manifest.library_product_names))
            + "\n\nAdditional available targets:\n"
            + _indented(sorted(self.additional_target_names()))
        )

    def print_all_products(self, diagnostics):
        diagnostics.info(f"\n{self.products_description()}\n")

    # endregion

    def supported_platforms(self, requested: Optional[List[TargetPlatform]] = None) -> List[TargetPlatform]:
        """Platforms from ``requested`` (or all) that Package.swift supports."""
        return supported_platforms(requested, self.manifest.platforms)


def _indented(names):
    return "\n".join(f"    {name}" for name in names)
