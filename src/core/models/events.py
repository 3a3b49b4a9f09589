#!/usr/bin/env python3
"""
Stream event models for incremental content delivery.

A caller consuming an expansion stream must tell "more data" from "done" and
"error"; each event knows how to render itself as a server-sent event frame.
"""

import json
from dataclasses import dataclass
from typing import Dict, Any, Union


@dataclass(frozen=True)
class TextEvent:
    """An incremental chunk of generated text."""
    text: str

    def payload(self) -> Dict[str, Any]:
        return {'text': self.text}


@dataclass(frozen=True)
class DoneEvent:
    """The stream finished normally."""

    def payload(self) -> Dict[str, Any]:
        return {'done': True}


@dataclass(frozen=True)
class ErrorEvent:
    """The stream was terminated by an error."""
    error: str

    def payload(self) -> Dict[str, Any]:
        return {'error': self.error}


StreamEvent = Union[TextEvent, DoneEvent, ErrorEvent]


def to_sse(event: StreamEvent) -> str:
    """Render an event as a `data: {...}` frame."""
    return f"data: {json.dumps(event.payload(), ensure_ascii=False)}\n\n"
