#!/usr/bin/env python3
"""
HTTP server command endpoint.
"""

import logging
from argparse import Namespace

import uvicorn

from .base import BaseCommand

logger = logging.getLogger(__name__)


class ServerCommand(BaseCommand):
    """Run the HTTP API."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute server subcommand."""
        try:
            if subcommand == "start":
                return self.start(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except Exception as e:
            return self.handle_error(e, f"server {subcommand}")

    def start(self, args: Namespace) -> int:
        """Serve the API with uvicorn until interrupted."""
        from api import create_app

        host = getattr(args, 'host', None) or self.config.app.api_host
        port = getattr(args, 'port', None) or self.config.app.api_port

        print(f"🚀 Serving news API on http://{host}:{port}")
        uvicorn.run(
            create_app(self._container),
            host=host,
            port=port,
            log_level=self.config.app.log_level.lower(),
        )
        return 0
