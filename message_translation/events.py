"""Structured events emitted by the translation strategies.

Strategies report each step to an injected sink instead of writing to a
module logger directly. The default sink forwards events to ``logging``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

logger = logging.getLogger("message_translation.events")

EventSink = Callable[["TranslationEvent"], None]


@dataclass(frozen=True)
class TranslationEvent:
    """One step of a translation call.

    Attributes:
        name: Dotted event name, e.g. ``"context_aware.persisted"``.
        message_id: Message being translated.
        level: ``logging`` level used by the default sink.
        fields: Extra structured data (counts, error kinds).
    """

    name: str
    message_id: int
    level: int = logging.DEBUG
    fields: dict[str, Any] = field(default_factory=dict)


def logging_sink(event: TranslationEvent) -> None:
    """Writes an event to the ``message_translation.events`` logger."""
    logger.log(
        event.level,
        "%s message_id=%s %s",
        event.name,
        event.message_id,
        " ".join(f"{key}={value}" for key, value in event.fields.items()),
    )


def emit(
    sink: Optional[EventSink],
    name: str,
    message_id: int,
    level: int = logging.DEBUG,
    **fields: Any,
) -> None:
    """Builds an event and hands it to the sink (or the logging sink)."""
    (sink or logging_sink)(
        TranslationEvent(name=name, message_id=message_id, level=level, fields=fields)
    )
