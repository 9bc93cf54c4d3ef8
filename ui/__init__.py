"""UI module."""

from .operator_input import DecisionSource, KeyboardDecisionSource, ScriptedDecisionSource, decision_for_key
from .preview import FramePresenter, NullPresenter, OpenCVPresenter

__all__ = [
    "DecisionSource",
    "FramePresenter",
    "KeyboardDecisionSource",
    "NullPresenter",
    "OpenCVPresenter",
    "ScriptedDecisionSource",
    "decision_for_key",
]
