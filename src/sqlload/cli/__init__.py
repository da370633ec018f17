"""
Command-line interface for the load generator.

Available commands:
- run: Dispatch transactions at a fixed rate for a fixed duration
- report: Render a summary saved by a previous run
"""

import sys

from sqlload.utils.logging import configure_from_env

from .commands import cmd_report, cmd_run
from .parser import create_parser


def main() -> None:
    """Main entry point for the sqlload CLI"""
    parser = create_parser()
    args = parser.parse_args()

    configure_from_env(
        level=args.log_level,
        log_file=args.log_file,
        json_format=args.log_json,
    )

    if args.command == 'run':
        cmd_run(args)
    elif args.command == 'report':
        cmd_report(args)
    else:
        parser.print_help()
        sys.exit(1)


__all__ = [
    'main',
    'cmd_run',
    'cmd_report',
    'create_parser',
]


if __name__ == '__main__':
    main()
