"""Operator decisions from keyboard input."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from typing import Iterable, Optional

import cv2

from contracts import OperatorDecision

KEY_ESC = 27
KEY_ENTER = 13
KEY_NEWLINE = 10
KEY_SPACE = 32


def decision_for_key(key: int, block: bool) -> Optional[OperatorDecision]:
    """Map a ``cv2.waitKey`` code to a decision.

    ACCEPT and REJECT only apply while a detection is being presented
    (``block=True``); otherwise only CANCEL and FINISH are recognised.
    """
    if key < 0:
        return None
    key &= 0xFF
    if key in (KEY_ESC, ord("q")):
        return OperatorDecision.CANCEL
    if key in (KEY_ENTER, KEY_NEWLINE):
        return OperatorDecision.FINISH
    if not block:
        return None
    if key == KEY_SPACE:
        return OperatorDecision.ACCEPT
    return OperatorDecision.REJECT


class DecisionSource(ABC):
    @abstractmethod
    def next_decision(self, block: bool) -> Optional[OperatorDecision]:
        """Wait for a decision (``block=True``) or poll for one without waiting."""

    @abstractmethod
    def key_pressed(self) -> bool:
        """Poll without waiting; True if any key at all was pressed."""


class KeyboardDecisionSource(DecisionSource):
    """Reads keys from the OpenCV preview window."""

    def __init__(self, poll_ms: int = 30) -> None:
        self._poll_ms = poll_ms

    def next_decision(self, block: bool) -> Optional[OperatorDecision]:
        key = cv2.waitKey(0 if block else self._poll_ms)
        return decision_for_key(key, block)

    def key_pressed(self) -> bool:
        return cv2.waitKey(self._poll_ms) >= 0


class ScriptedDecisionSource(DecisionSource):
    """Replays decisions for unattended runs.

    Blocking requests consume ``decisions`` (CANCEL once exhausted); polls
    and key checks consume ``polls`` (None once exhausted).
    """

    def __init__(
        self,
        decisions: Iterable[OperatorDecision],
        polls: Iterable[Optional[OperatorDecision]] = (),
    ) -> None:
        self._decisions = deque(decisions)
        self._polls = deque(polls)
        self.blocking_requests = 0

    def next_decision(self, block: bool) -> Optional[OperatorDecision]:
        if block:
            self.blocking_requests += 1
            return self._decisions.popleft() if self._decisions else OperatorDecision.CANCEL
        return self._polls.popleft() if self._polls else None

    def key_pressed(self) -> bool:
        return bool(self._polls) and self._polls.popleft() is not None
