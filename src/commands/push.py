#!/usr/bin/env python3
"""
Push notification command endpoints.
"""

import json
import logging
from argparse import Namespace

from .base import BaseCommand
from integrations.push_notifier import get_top_stories

logger = logging.getLogger(__name__)


class PushCommand(BaseCommand):
    """Handle web push operations."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute push subcommand."""
        try:
            if subcommand == "broadcast":
                return self.broadcast(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except Exception as e:
            return self.handle_error(e, f"push {subcommand}")

    def broadcast(self, args: Namespace) -> int:
        """Send the daily newsletter, or print its payload with --dry-run."""
        if getattr(args, 'dry_run', False):
            formatter = self._container.get('notification_formatter')

            async def preview():
                async with self.open_runtime() as runtime:
                    return formatter.format_push_payload(await get_top_stories(runtime.store))

            payload = self.run_async(preview())
            print(json.dumps(payload, ensure_ascii=False, indent=2))
            return 0

        notifier = self._container.get('push_notifier')

        async def run():
            async with self.open_runtime() as runtime:
                return await notifier.send_newsletter(runtime.store)

        print("📣 Sending push newsletter...")
        result = self.run_async(run())
        print(f"✅ Sent: {result.sent}  ❌ Failed: {result.failed}  🧹 Pruned: {result.pruned}")
        return 0
