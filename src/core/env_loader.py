#!/usr/bin/env python3
"""
Environment variable loader with .env file support.

Values already present in the process environment always win over the file,
so deployments (cron, GitHub Actions, serverless) are never overridden by a
stray local .env.
"""

import os
from pathlib import Path
import logging
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
TRUE_VALUES = ('1', 'true', 'yes', 'on')


def parse_env_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Parse one `KEY=VALUE` line.

    Accepts an optional `export ` prefix and single or double quotes around
    the value. Blank lines and comments yield None.

    Raises:
        ValueError: If a non-comment line has no `=`
    """
    line = line.strip()
    if not line or line.startswith('#'):
        return None
    if line.startswith('export '):
        line = line[len('export '):].lstrip()
    if '=' not in line:
        raise ValueError(f"expected KEY=VALUE, got: {line}")

    key, value = (part.strip() for part in line.split('=', 1))
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        value = value[1:-1]
    return key, value


def load_env_file(env_path: Optional[Path] = None) -> int:
    """
    Load variables from a .env file into os.environ.

    Args:
        env_path: File to read (default: `.env` in the project root)

    Returns:
        Number of variables that were set
    """
    env_path = env_path or PROJECT_ROOT / '.env'
    if not env_path.exists():
        logger.debug(f"No .env file found at {env_path}")
        return 0

    loaded = 0
    try:
        with open(env_path, 'r', encoding='utf-8') as f:
            for line_num, line in enumerate(f, 1):
                try:
                    parsed = parse_env_line(line)
                except ValueError as e:
                    logger.warning(f"Invalid .env format at line {line_num}: {e}")
                    continue
                if parsed is None:
                    continue

                key, value = parsed
                if key in os.environ:
                    logger.debug(f"Skipped {key} (already in environment)")
                    continue
                os.environ[key] = value
                loaded += 1
    except OSError as e:
        logger.error(f"Error loading .env file {env_path}: {e}")
        return loaded

    logger.info(f"Loaded {loaded} variables from {env_path}")
    return loaded


def get_first_env(*keys: str, default: Optional[str] = None) -> Optional[str]:
    """Return the first non-empty value among several alias keys."""
    for key in keys:
        value = os.environ.get(key)
        if value:
            return value
    return default


def get_bool_env(key: str, default: bool = False) -> bool:
    """Parse a boolean flag such as ATTACH_VIDEO=true."""
    value = os.environ.get(key)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in TRUE_VALUES


# Auto-load .env file when module is imported
load_env_file()
