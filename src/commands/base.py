#!/usr/bin/env python3
"""
Base command class for the modular command architecture.

Provides common functionality and interface that all commands inherit.
Uses dependency injection for better testability and maintainability.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from argparse import Namespace
from typing import Any, Awaitable, List, Optional

from core.container import get_container
from core.exceptions import ConfigurationError, NewsPipelineError
from core.models.news import Category
from core.runtime import NewsRuntime

logger = logging.getLogger(__name__)


class BaseCommand(ABC):
    """
    Base class for all command endpoints.

    Gives commands access to configuration and service factories through the
    dependency injection container, a way to run async pipeline work, and
    standard error handling.
    """

    def __init__(self, container=None):
        """
        Initialize base command with dependency injection container.

        Args:
            container: Optional container instance. If None, uses global container.
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self._container = container or get_container()

    @property
    def config(self):
        """Get configuration from container."""
        return self._container.get('config')

    def open_runtime(self, with_store: bool = True, prefer_proxy_judge: bool = False) -> NewsRuntime:
        """Create a runtime bound to this command's container (use with `async with`)."""
        return NewsRuntime(self._container, with_store=with_store, prefer_proxy_judge=prefer_proxy_judge)

    def run_async(self, coro: Awaitable[Any]) -> Any:
        """Run a coroutine to completion from synchronous command code."""
        return asyncio.run(coro)

    @staticmethod
    def parse_categories(names: Optional[List[str]]) -> List[Category]:
        """Categories named on the command line; all of them for None or 'all'."""
        if not names or 'all' in names:
            return list(Category)
        return [Category.parse(name) for name in names]

    @abstractmethod
    def execute(self, subcommand: str, args: Namespace) -> int:
        """
        Execute the command with given subcommand and arguments.

        Args:
            subcommand: The specific action to perform
            args: Parsed command line arguments

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        pass

    def get_available_subcommands(self) -> List[str]:
        """Public methods of the command, excluding the shared infrastructure."""
        excluded = {'execute', 'get_available_subcommands', 'handle_error', 'open_runtime',
                    'run_async', 'parse_categories', 'config'}
        return [
            name for name in dir(self)
            if not name.startswith('_') and name not in excluded and callable(getattr(self, name))
        ]

    def handle_error(self, error: Exception, context: str = "") -> int:
        """
        Standard error handling for commands.

        Args:
            error: The exception that occurred
            context: Additional context about where the error occurred

        Returns:
            Appropriate exit code
        """
        if isinstance(error, KeyboardInterrupt):
            self.logger.info("Command interrupted by user")
            return 130

        if isinstance(error, ConfigurationError):
            self.logger.error(f"{context}: {error.message}" if context else error.message)
            print(f"❌ {error.message}")
            return 1

        error_msg = f"{context}: {error}" if context else str(error)
        if isinstance(error, NewsPipelineError):
            self.logger.error(error_msg)
            return 1

        self.logger.error(error_msg, exc_info=True)
        if isinstance(error, ValueError):
            return 22
        return 1
