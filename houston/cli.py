#!/usr/bin/env python3
"""houston CLI entrypoint."""

import argparse
import sys
from pathlib import Path

from houston import __version__
from houston.commands import check as cmd_check_module
from houston.lib.config import WorkspaceConfigError, load_config
from houston.lib.logs import setup_logging
from houston.lib.schemas import SchemaRegistryError
from houston.workspace.inventory import InventoryError


def get_config(args):
    """Load workspace config from --workspace or the current directory."""
    cwd = Path(args.workspace) if args.workspace else None
    return load_config(cwd)


def cmd_check(args):
    config = get_config(args)
    return cmd_check_module.cmd_check(args, config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='houston', description='Houston work tracking CLI')
    parser.add_argument('--version', action='version', version=f'houston {__version__}')
    parser.add_argument('--workspace', '-w', help='Workspace directory (default: search from cwd)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # houston check
    p_check = subparsers.add_parser('check', help='Validate the tracking workspace')
    p_check.add_argument('--file', '-f', help='Validate a single file instead of the whole workspace')
    p_check.add_argument('--format', choices=['text', 'json'], default='text', help='Output format')
    p_check.set_defaults(func=cmd_check)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        return args.func(args)
    except (WorkspaceConfigError, SchemaRegistryError, InventoryError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
