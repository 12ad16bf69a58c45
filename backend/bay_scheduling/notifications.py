"""
Toast notifications for grid actions (success/failure of schedule writes).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Toast:
    title: str
    description: str = ""
    variant: str = "default"    # default | destructive
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


Notifier = Callable[[Toast], None]


class ToastCollector:
    """Notifier that keeps toasts in memory (newest last)."""

    def __init__(self, limit: Optional[int] = 100):
        self.limit = limit
        self.toasts: List[Toast] = []

    def __call__(self, toast: Toast) -> None:
        if toast.is_error:
            logger.warning(f"Toast: {toast.title} - {toast.description}")
        else:
            logger.info(f"Toast: {toast.title} - {toast.description}")
        self.toasts.append(toast)
        if self.limit is not None and len(self.toasts) > self.limit:
            del self.toasts[: len(self.toasts) - self.limit]

    @property
    def last(self) -> Optional[Toast]:
        return self.toasts[-1] if self.toasts else None

    def clear(self) -> None:
        self.toasts.clear()


def success(title: str, description: str = "") -> Toast:
    return Toast(title=title, description=description)


def failure(title: str, description: str = "") -> Toast:
    return Toast(title=title, description=description, variant="destructive")
