"""Undo stack for multi-store writes that share no transaction manager."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable

from .platform.exceptions import PlatformError

logger = logging.getLogger(__name__)


@dataclass
class UndoAction:
    description: str
    callback: Callable[[], object]
    tolerate: tuple[type[PlatformError], ...] = ()


class CompensationStack:
    """Ordered undo actions, pushed as each step succeeds.

    ``unwind`` pops and runs them in reverse order. Exceptions listed in an
    action's ``tolerate`` mean the resource is already gone and count as
    success. Other platform failures are collected, not retried.
    """

    def __init__(self) -> None:
        self._actions: list[UndoAction] = []

    def __len__(self) -> int:
        return len(self._actions)

    def push(self, description: str, callback: Callable[[], object],
             tolerate: tuple[type[PlatformError], ...] = ()) -> None:
        self._actions.append(UndoAction(description, callback, tolerate))

    def unwind(self) -> list[tuple[str, PlatformError]]:
        """Run every pending undo action, newest first.

        Returns:
            (description, error) for each action that failed
        """
        failures: list[tuple[str, PlatformError]] = []
        while self._actions:
            action = self._actions.pop()
            try:
                action.callback()
                logger.info(f"[compensation] Undid {action.description}")
            except action.tolerate:
                logger.info(f"[compensation] {action.description} already absent")
            except PlatformError as exc:
                logger.error(f"[compensation] Failed to undo {action.description}: {exc}")
                failures.append((action.description, exc))
        return failures
