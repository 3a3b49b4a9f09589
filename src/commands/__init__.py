#!/usr/bin/env python3
"""
Command endpoints for the news pipeline.

Each major functionality is handled by a dedicated command class.
"""

from typing import Dict, Type
from .base import BaseCommand
from .news import NewsCommand
from .push import PushCommand
from .server import ServerCommand
from .integrations import IntegrationsCommand

# Command registry for easy extension
COMMANDS: Dict[str, Type[BaseCommand]] = {
    'news': NewsCommand,
    'push': PushCommand,
    'server': ServerCommand,
    'integrations': IntegrationsCommand,
}


def get_command(command_name: str) -> BaseCommand:
    """Get a command instance by name."""
    if command_name not in COMMANDS:
        available = ', '.join(COMMANDS.keys())
        raise ValueError(f"Unknown command '{command_name}'. Available: {available}")

    command_class = COMMANDS[command_name]
    return command_class()


def list_commands() -> Dict[str, str]:
    """Get list of available commands with descriptions."""
    return {
        name: getattr(command_class, '__doc__', 'No description available')
        for name, command_class in COMMANDS.items()
    }
