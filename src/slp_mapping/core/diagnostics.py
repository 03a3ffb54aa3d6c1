from __future__ import annotations

import logging
from typing import Callable, List, Optional

# A sink accepts one human-readable diagnostic message. What it does with it
# (log, collect, show in the UI) is up to the caller.
DiagnosticSink = Callable[[str], None]


def logging_sink(logger: logging.Logger, level: int = logging.WARNING) -> DiagnosticSink:
    """Adapt a stdlib logger to the sink interface."""

    def _emit(message: str) -> None:
        logger.log(level, "%s", message)

    return _emit


class CollectingSink:
    """
    Sink that keeps every message in memory.

    Used by the UI to show audit output on the page, and by tests to assert
    on what was reported. Optionally forwards to another sink as well.
    """

    def __init__(self, forward_to: Optional[DiagnosticSink] = None) -> None:
        self.messages: List[str] = []
        self._forward_to = forward_to

    def __call__(self, message: str) -> None:
        self.messages.append(message)
        if self._forward_to is not None:
            self._forward_to(message)

    def __len__(self) -> int:
        return len(self.messages)
