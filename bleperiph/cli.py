"""
Command-line interface for bleperiph.
"""

import argparse
import os
import sys

# Ensure logging subsystem is initialised immediately
import bleperiph.core.log  # noqa: F401  # side-effect import

from . import __version__
from .core.config import DEFAULT_ADAPTER
from .core.log import get_logger


def parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="bleperiph - publish a BlueZ GATT peripheral over D-Bus"
    )
    parser.add_argument("--version", action="version", version=f"bleperiph {__version__}")

    # Add subparsers for different modes
    subparsers = parser.add_subparsers(dest="mode", help="Operation mode")

    # Serve mode
    serve_parser = subparsers.add_parser("serve", help="Publish the peripheral described by a YAML file")
    serve_parser.add_argument("--config", help="Peripheral YAML file")
    serve_parser.add_argument("--adapter", default=DEFAULT_ADAPTER, help="Adapter to register with")
    serve_parser.add_argument("--no-advertise", action="store_true", help="Do not advertise")
    serve_parser.add_argument("--timeout", type=int, default=0, help="Stop after N seconds (0 = until Ctrl+C)")

    # Tree mode
    tree_parser = subparsers.add_parser("tree", help="List the objects under a running peripheral root")
    tree_parser.add_argument("name", help="Bus name of the peripheral")
    tree_parser.add_argument("path", help="Root object path")

    # UUID helper
    uuid_parser = subparsers.add_parser("uuid", help="Expand a short UUID to 128-bit form")
    uuid_parser.add_argument("value", help="4/8 hex digit alias or partial UUID")
    uuid_parser.add_argument("--base", default=None, help="Base prefix for values that are not 4 or 8 digits")

    return parser.parse_args(args)


def main(args=None):
    """Main entry point for bleperiph."""
    args = parse_args(args)

    # Optional: honour BLEPERIPH_LOG_LEVEL env var so users can tweak verbosity
    _lvl = os.getenv("BLEPERIPH_LOG_LEVEL")
    if _lvl:
        get_logger().setLevel(_lvl.upper())

    try:
        if args.mode == "serve":
            from bleperiph.modes.serve import main as _serve_main

            opts = ["--adapter", args.adapter, "--timeout", str(args.timeout)]
            if args.config:
                opts += ["--config", args.config]
            if args.no_advertise:
                opts.append("--no-advertise")
            return _serve_main(opts) or 0

        elif args.mode == "tree":
            from bleperiph.modes.tree import main as _tree_main

            return _tree_main([args.name, args.path]) or 0

        elif args.mode == "uuid":
            from bleperiph.bt_ref.constants import UUID_BASE__BLUETOOTH
            from bleperiph.bt_ref.utils import expand_alias, generate_uuid

            base = args.base if args.base is not None else UUID_BASE__BLUETOOTH
            print(generate_uuid(expand_alias(args.value), base))
            return 0

        else:
            parse_args(["--help"])

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
