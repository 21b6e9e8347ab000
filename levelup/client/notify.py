from __future__ import annotations

import base64
import logging
import sys
from dataclasses import dataclass
from typing import Callable, List, TextIO

logger = logging.getLogger(__name__)

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = DEFAULT


Notifier = Callable[[Notification], None]
Clipboard = Callable[[str], None]


class LogNotifier:
    """Toasts for headless use: destructive ones go out as warnings."""

    def __init__(self, name: str = "levelup.notify"):
        self._logger = logging.getLogger(name)
        self.history: List[Notification] = []

    def __call__(self, notification: Notification) -> None:
        self.history.append(notification)
        level = logging.WARNING if notification.variant == DESTRUCTIVE else logging.INFO
        self._logger.log(level, "%s: %s", notification.title, notification.description)


class Osc52Clipboard:
    """Copy through the terminal with an OSC 52 escape sequence."""

    def __init__(self, stream: TextIO = sys.stdout):
        self.stream = stream

    def __call__(self, text: str) -> None:
        encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
        self.stream.write(f"\x1b]52;c;{encoded}\x07")
        self.stream.flush()
