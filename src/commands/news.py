#!/usr/bin/env python3
"""
News command endpoints: refresh cycles, duplicate sweeps, expansion and reads.
"""

import logging
import sys
from argparse import Namespace

from .base import BaseCommand
from core.models.events import DoneEvent, ErrorEvent, TextEvent
from core.models.news import Category

logger = logging.getLogger(__name__)


class NewsCommand(BaseCommand):
    """Handle news refresh, deduplication and content operations."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute news subcommand."""
        try:
            if subcommand == "refresh":
                return self.refresh(args)
            elif subcommand == "dedup":
                return self.dedup(args)
            elif subcommand == "expand":
                return self.expand(args)
            elif subcommand == "latest":
                return self.latest(args)
            elif subcommand == "body":
                return self.body(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except Exception as e:
            return self.handle_error(e, f"news {subcommand}")

    def refresh(self, args: Namespace) -> int:
        """Run one refresh cycle."""
        categories = self.parse_categories(getattr(args, 'categories', None))
        settings = self.config.pipeline
        if getattr(args, 'no_video', False):
            settings.attach_video = False
        if getattr(args, 'long_form', False):
            settings.long_form_body = True

        async def run():
            async with self.open_runtime() as runtime:
                return await runtime.orchestrator().refresh_all(categories)

        print(f"🔄 Refreshing {', '.join(c.value for c in categories)}...")
        summary = self.run_async(run())

        for result in summary.results:
            if result.success:
                print(f"✅ {result.category}: {result.count} items")
            else:
                print(f"❌ {result.category}: {result.error}")

        return 0 if summary.all_succeeded else 1

    def dedup(self, args: Namespace) -> int:
        """Sweep categories for duplicates."""
        categories = self.parse_categories(getattr(args, 'categories', None))

        async def run():
            async with self.open_runtime(prefer_proxy_judge=True) as runtime:
                return await runtime.cleaner().clean_all(categories)

        print("🔍 Checking for duplicate news...")
        results = self.run_async(run())

        failed = False
        for result in results:
            status = "⚠️ " if result.errors else "✅"
            print(f"{status} {result.category}: checked {result.checked}, "
                  f"pairs {result.pairs}, deleted {len(result.deleted)}")
            for error in result.errors:
                print(f"   - {error}")
            failed = failed or bool(result.errors)

        return 1 if failed else 0

    def expand(self, args: Namespace) -> int:
        """Stream the long-form content of one item to stdout."""
        category = Category.parse(args.category)

        async def run() -> int:
            async with self.open_runtime(with_store=self.config.database.is_configured()) as runtime:
                expander = runtime.expander()
                async for event in expander.expand(category, args.person, args.title,
                                                   record_id=args.id, force=args.force):
                    if isinstance(event, TextEvent):
                        sys.stdout.write(event.text)
                        sys.stdout.flush()
                    elif isinstance(event, ErrorEvent):
                        print(f"\n❌ {event.error}")
                        return 1
                    elif isinstance(event, DoneEvent):
                        print()
            return 0

        return self.run_async(run())

    def latest(self, args: Namespace) -> int:
        """Print the latest stored items of a category."""
        category = Category.parse(args.category)

        async def run():
            async with self.open_runtime() as runtime:
                return await runtime.store.latest(category, args.limit)

        records = self.run_async(run())
        if not records:
            print(f"No {category.value} news stored.")
            return 0

        print(f"\n=== {category.label} ({len(records)} items) ===")
        for record in records:
            created = record.created_at.strftime('%Y-%m-%d %H:%M') if record.created_at else '?'
            video = " 🎥" if record.video_url else ""
            print(f"[{created}] {record.subject_name} — {record.headline}{video}")
            if getattr(args, 'verbose', False):
                print(f"   id={record.id} image={record.image_url}")
        return 0

    def body(self, args: Namespace) -> int:
        """Store a body for one item, read from --text or stdin."""
        category = Category.parse(args.category)
        text = args.text if args.text is not None else sys.stdin.read()
        if not text.strip():
            print("❌ Empty body")
            return 22

        async def run():
            async with self.open_runtime() as runtime:
                return await runtime.store.update_body(category, args.id, text)

        updated = self.run_async(run())
        print(f"✅ Updated {updated} row(s) in {category.table_name}")
        return 0 if updated else 1
