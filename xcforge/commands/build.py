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

import os
import sys
import argparse
import time

from xcforge.build_scripts.build_utils import BuildSetting, write_text_file, xcode_configuration_name
from xcforge.build_scripts.platforms import TargetPlatform, sdks_for
from xcforge.build_scripts.project_generator import ProjectGenerator
from xcforge.build_scripts.xcode_builder import XcodeBuilder, make_policy
from xcforge.build_scripts.zipper import Zipper
from xcforge.utils.context.command import CliCommand
from xcforge.utils.context.context import CliContext
from xcforge.utils.context.errors import XcforgeError
from xcforge.utils.context.namespace import CliNameSpace
from xcforge.utils.package.config import BuildConfig, ConfigError, load_build_config
from xcforge.utils.package.package_info import PackageInfo, ValidationError

# read by the CI action to upload the packaged artifacts
GITHUB_ACTION_OUTPUT_FILE = "xcframework-zipfile.url"


class Build(CliCommand):
    def description(self) -> str:
        return f"""Create XCFrameworks out of a Swift Package using xcodebuild.

Every product is archived once per SDK of every requested platform, then the
per-SDK frameworks of a product are merged into one .xcframework. With --zip
each XCFramework is packaged into a versioned zip next to a .sha256 file.

Only Apple platforms are supported.

SUPPORTED PLATFORMS:
    {", ".join(p.value for p in TargetPlatform)}

EXAMPLES:
    # Build every library product for every platform in Package.swift
    xcforge build

    # Build one product for iOS and macOS only
    xcforge build MyLib --platform ios --platform macos

    # Show what can be built
    xcforge build --list-products

    # Release zips for distribution, named MyLib-1.2.0.xcframework.zip
    xcforge build --zip --zip-version 1.2.0

    # Override a build setting
    xcforge build --xc-setting IPHONEOS_DEPLOYMENT_TARGET=13.0

CONFIGURATION:
    Defaults can be kept in xcforge.toml at the package root ([build] table).
    Command line options win over the file.
        """

    def cli(self, argv=None) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="xcforge build",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "products",
            nargs="*",
            help="products (or targets) to build, defaults to every .library product",
        )
        parser.add_argument(
            "--package-path",
            default=".",
            metavar="directory",
            help="the location of the Package (default: .)",
        )
        parser.add_argument(
            "--build-path",
            metavar="directory",
            help="the location of the build/cache directory to use (default: .build)",
        )
        parser.add_argument(
            "--configuration",
            choices=["debug", "release"],
            help="build with a specific configuration (default: release)",
        )
        parser.add_argument(
            "--clean",
            dest="clean",
            action="store_const",
            const=True,
            help="clean before building (default)",
        )
        parser.add_argument(
            "--no-clean",
            dest="clean",
            action="store_const",
            const=False,
            help="do not clean before building",
        )
        parser.add_argument(
            "--list-products",
            action="store_true",
            help="print the available products and targets",
        )
        parser.add_argument(
            "--xcconfig",
            help="path to a .xcconfig file overriding Xcode build settings, relative to the package path",
        )
        parser.add_argument(
            "--xc-setting",
            dest="xc_settings",
            action="append",
            type=BuildSetting.parse,
            metavar="NAME=VALUE",
            help="an Xcode build setting override, can be specified multiple times",
        )
        parser.add_argument(
            "--platform",
            dest="platforms",
            action="append",
            metavar="|".join(p.value for p in TargetPlatform),
            help="a platform to build for, can be specified multiple times"
            " (default: all platforms supported in Package.swift)",
        )
        parser.add_argument(
            "--output",
            metavar="directory",
            help="where to place the compiled .xcframework(s) (default: .)",
        )
        parser.add_argument(
            "--zip",
            dest="zip",
            action="store_const",
            const=True,
            help="wrap the .xcframework(s) up in a versioned zip file ready for deployment",
        )
        parser.add_argument(
            "--zip-version",
            metavar="version",
            help="the version number to append to the zip file name when the target's package"
            " has no resolved version in the dependency graph",
        )
        parser.add_argument(
            "--stack-evolution",
            dest="stack_evolution",
            action="store_const",
            const=True,
            help="enable library evolution for the whole dependency stack,"
            " not only for the products being built",
        )
        parser.add_argument(
            "--no-debug-symbols",
            dest="debug_symbols",
            action="store_const",
            const=False,
            help="do not add dSYM and BCSymbolMap files to the .xcframework(s)",
        )
        parser.add_argument(
            "--legacy",
            dest="legacy",
            action="store_const",
            const=True,
            help="build through a generated Xcode project instead of the package directly",
        )
        parser.add_argument(
            "--timeout",
            type=float,
            metavar="seconds",
            help="kill any external command still running after this many seconds (default: no limit)",
        )
        parser.add_argument(
            "--config",
            metavar="file",
            help="xcforge.toml to read defaults from (default: <package-path>/xcforge.toml)",
        )
        parser.add_argument(
            "--github-action",
            dest="github_action",
            action="store_const",
            const=True,
            help=argparse.SUPPRESS,
        )

        if argv is None:
            module_name = os.path.splitext(os.path.basename(__file__))[0]
            argv = [x for x in sys.argv[1:] if x != module_name]
        args, unknown = parser.parse_known_args(argv)
        return args

    def build_config(self, args: CliNameSpace) -> BuildConfig:
        """Merge xcforge.toml and the command line, the command line winning."""
        config = load_build_config(args.package_path, args.config)
        xc_settings = None
        if args.xc_settings:
            xc_settings = {setting.name: setting.value for setting in args.xc_settings}
        return config.merged(
            {
                "build_path": args.build_path,
                "configuration": args.configuration,
                "clean": args.clean,
                "list_products": args.list_products or None,
                "xcconfig": args.xcconfig,
                "xc_settings": xc_settings,
                "platforms": args.platforms,
                "output": args.output,
                "zip": args.zip,
                "zip_version": args.zip_version,
                "stack_evolution": args.stack_evolution,
                "debug_symbols": args.debug_symbols,
                "legacy": args.legacy,
                "github_action": args.github_action,
                "products": args.products or None,
                "timeout": args.timeout,
            }
        )

    def check_configuration(self, config: BuildConfig):
        try:
            xcode_configuration_name(config.configuration)
        except ValueError as e:
            raise ConfigError(str(e))
        if config.timeout is not None and config.timeout <= 0:
            raise ConfigError(f"--timeout must be a positive number of seconds, got {config.timeout:g}")

    def requested_platforms(self, config: BuildConfig) -> list:
        try:
            return [TargetPlatform.parse(p) for p in config.platforms]
        except ValueError as e:
            raise ConfigError(str(e))

    def run_pipeline(self, context: CliContext, config: BuildConfig) -> list:
        """
        Build, merge and optionally package every requested product.

        Returns:
            list: Paths of the produced .xcframework(s), or of the zip and
            checksum files when zipping
        """
        diagnostics = context.diagnostics
        self.check_configuration(config)
        requested = self.requested_platforms(config)
        context.timeout_second = config.timeout

        package = PackageInfo.load(context, config.package_path, config.build_path, config.xcconfig)
        if config.list_products:
            package.print_all_products(diagnostics)
            return []

        product_names = package.valid_product_names(config.products)
        platforms = package.supported_platforms(requested)
        if not platforms:
            raise ValidationError(
                "None of the requested platforms are supported by Package.swift.\n"
                f"Package platforms: {', '.join(package.manifest.platforms)}"
            )
        sdks = sdks_for(platforms)

        diagnostics.banner(
            f"Building {', '.join(product_names)} for {', '.join(p.value for p in platforms)}"
        )

        generator = ProjectGenerator(package, context)
        generator.write_distribution_xcconfig(product_names, config.stack_evolution)
        project_path = generator.generate() if config.legacy else None

        builder = XcodeBuilder(package, config, context, make_policy(package, config, context, project_path))
        if config.clean:
            builder.clean()

        # every product for each SDK, then group the frameworks by product
        framework_files = {}
        for sdk in sdks:
            for target, result in builder.build(product_names, sdk).items():
                framework_files.setdefault(target, []).append(result)

        xcframework_files = [
            (target, builder.merge(target, results)) for target, results in framework_files.items()
        ]

        if not config.zip:
            diagnostics.banner("Output")
            for _, path in xcframework_files:
                diagnostics.info(path)
            return [path for _, path in xcframework_files]

        zipper = Zipper(package, context)
        zipped = []
        for target, path in xcframework_files:
            zip_file = zipper.zip(target, config.zip_version, path)
            checksum = zipper.checksum(zip_file)
            zipper.clean(path)
            zipped += [zip_file, checksum]

        if config.github_action:
            write_text_file(
                os.path.join(package.build_directory, GITHUB_ACTION_OUTPUT_FILE),
                "\n".join(zipped),
            )

        diagnostics.banner("Output")
        for path in zipped:
            diagnostics.info(path)
        return zipped

    def exec(self, context: CliContext, args: CliNameSpace):
        start_time = time.time()
        try:
            config = self.build_config(args)
            self.run_pipeline(context, config)
        except XcforgeError as e:
            context.diagnostics.error(str(e))
            context.diagnostics.elapsed(start_time)
            sys.exit(e.exit_code)
        except OSError as e:
            context.diagnostics.error(str(e))
            context.diagnostics.elapsed(start_time)
            sys.exit(1)

        warnings = context.diagnostics.messages("warning")
        if warnings:
            context.diagnostics.info(f"\n{len(warnings)} warning(s), see above")
        context.diagnostics.elapsed(start_time)
