#!/usr/bin/env python3
"""
CLI Router for the Paparazzi news pipeline.

Drives refresh cycles, duplicate sweeps, push broadcasts and the HTTP server
from the command line (cron, GitHub Actions, local runs).
"""

import argparse
import logging
import sys
from typing import Optional, List

# Load environment variables first
import core.env_loader  # noqa: F401  Auto-loads .env file

from commands import get_command, COMMANDS
from core.config import get_config_manager
from core.models.news import Category

logger = logging.getLogger(__name__)

CATEGORY_CHOICES = [category.value for category in Category]


class CLIRouter:
    """
    CLI router for news pipeline commands.

    Command structure:
    - python run.py news refresh --categories bollywood tv
    - python run.py news dedup
    - python run.py push broadcast
    - python run.py server start --port 8000
    """

    def __init__(self):
        """Initialize CLI router."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            description="Paparazzi celebrity news pipeline",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self._get_examples_text()
        )

        subparsers = parser.add_subparsers(
            dest='command',
            help='Available commands',
            metavar='{command}'
        )

        self._add_news_parser(subparsers)
        self._add_push_parser(subparsers)
        self._add_server_parser(subparsers)
        self._add_integrations_parser(subparsers)

        return parser

    def _add_news_parser(self, subparsers):
        """Add news command parser."""
        news_parser = subparsers.add_parser(
            'news',
            help='News refresh, deduplication and content operations'
        )

        news_subparsers = news_parser.add_subparsers(
            dest='subcommand',
            help='News operations',
            metavar='{refresh,dedup,expand,latest,body}'
        )

        # Refresh subcommand
        refresh_parser = news_subparsers.add_parser('refresh', help='Generate, enrich and store fresh news')
        refresh_parser.add_argument('--categories', nargs='+', choices=CATEGORY_CHOICES + ['all'], default=['all'], help='Categories to refresh (default: all)')
        refresh_parser.add_argument('--no-video', action='store_true', help='Skip video matching')
        refresh_parser.add_argument('--long-form', action='store_true', help='Ask for a body with every item')

        # Dedup subcommand
        dedup_parser = news_subparsers.add_parser('dedup', help='Delete duplicate news identified by the judge')
        dedup_parser.add_argument('--categories', nargs='+', choices=CATEGORY_CHOICES + ['all'], default=['all'], help='Categories to sweep (default: all)')

        # Expand subcommand
        expand_parser = news_subparsers.add_parser('expand', help='Stream the long-form content of one item')
        expand_parser.add_argument('--category', required=True, choices=CATEGORY_CHOICES)
        expand_parser.add_argument('--person', required=True, help='Subject name')
        expand_parser.add_argument('--title', required=True, help='Headline')
        expand_parser.add_argument('--id', default=None, help='Stored record id')
        expand_parser.add_argument('--force', action='store_true', help='Regenerate even if a body is stored')

        # Latest subcommand
        latest_parser = news_subparsers.add_parser('latest', help='Show the latest stored news')
        latest_parser.add_argument('--category', required=True, choices=CATEGORY_CHOICES)
        latest_parser.add_argument('--limit', type=int, default=15, help='Number of items (default: 15)')
        latest_parser.add_argument('--verbose', action='store_true', help='Show ids and image URLs')

        # Body subcommand
        body_parser = news_subparsers.add_parser('body', help='Store a body for one item')
        body_parser.add_argument('--category', required=True, choices=CATEGORY_CHOICES)
        body_parser.add_argument('--id', required=True, help='Stored record id')
        body_parser.add_argument('--text', default=None, help='Body text (read from stdin when omitted)')

    def _add_push_parser(self, subparsers):
        """Add push command parser."""
        push_parser = subparsers.add_parser('push', help='Web push notifications')
        push_subparsers = push_parser.add_subparsers(dest='subcommand', help='Push operations', metavar='{broadcast}')

        broadcast_parser = push_subparsers.add_parser('broadcast', help='Send the daily newsletter to all subscribers')
        broadcast_parser.add_argument('--dry-run', action='store_true', help='Print the payload without sending')

    def _add_server_parser(self, subparsers):
        """Add server command parser."""
        server_parser = subparsers.add_parser('server', help='HTTP API server')
        server_subparsers = server_parser.add_subparsers(dest='subcommand', help='Server operations', metavar='{start}')

        start_parser = server_subparsers.add_parser('start', help='Serve the API')
        start_parser.add_argument('--host', default=None, help='Bind address (default: API_HOST or 0.0.0.0)')
        start_parser.add_argument('--port', type=int, default=None, help='Port (default: API_PORT or 8000)')

    def _add_integrations_parser(self, subparsers):
        """Add integrations command parser."""
        integrations_parser = subparsers.add_parser(
            'integrations',
            help='External integration management'
        )

        integrations_subparsers = integrations_parser.add_subparsers(
            dest='subcommand',
            help='Integration operations',
            metavar='{status,test}'
        )

        integrations_subparsers.add_parser('status', help='Show which integrations are configured')
        integrations_subparsers.add_parser('test', help='Make a live call to each configured integration')

    def _get_examples_text(self) -> str:
        """Get examples text for help."""
        return """
Examples:
  # Scheduled jobs
  python run.py news refresh
  python run.py news dedup
  python run.py push broadcast

  # Manual runs
  python run.py news refresh --categories bollywood --no-video
  python run.py news latest --category tv --verbose
  python run.py news expand --category hollywood --person "Emma Stone" --title "Launches production company"

  # Other commands
  python run.py server start --port 8000
  python run.py integrations status

"""

    def route_command(self, args: Optional[List[str]] = None) -> int:
        """
        Route command to appropriate handler.

        Args:
            args: Command line arguments (uses sys.argv if None)

        Returns:
            Exit code
        """
        try:
            if args is None:
                args = sys.argv[1:]

            parsed_args = self.parser.parse_args(args)

            if not parsed_args.command:
                self.parser.print_help()
                return 1

            return self._handle_command(parsed_args)

        except SystemExit as e:
            # argparse calls sys.exit() on error or help
            return e.code if e.code is not None else 0
        except Exception as e:
            logger.error(f"CLI routing error: {e}", exc_info=True)
            return 1

    def _handle_command(self, args: argparse.Namespace) -> int:
        """Handle command structure."""
        logger.debug(f"Handling command: {args.command}")

        if args.command not in COMMANDS:
            available = ', '.join(COMMANDS.keys())
            logger.error(f"Unknown command '{args.command}'. Available: {available}")
            return 1

        subcommand = getattr(args, 'subcommand', None)
        if not subcommand:
            logger.error(f"No subcommand specified for '{args.command}'")
            try:
                self.parser.parse_args([args.command, '--help'])
            except SystemExit:
                pass
            return 1

        try:
            command = get_command(args.command)
            return command.execute(subcommand, args)
        except Exception as e:
            logger.error(f"Error executing {args.command} {subcommand}: {e}", exc_info=True)
            return 1


def main(args: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    try:
        get_config_manager().update_logging()
    except ValueError as e:
        logger.error(str(e))
        return 22

    router = CLIRouter()
    return router.route_command(args)


if __name__ == '__main__':
    exit_code = main()
    sys.exit(exit_code)
