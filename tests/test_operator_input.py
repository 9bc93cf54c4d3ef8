from unittest.mock import patch

import pytest

from contracts import OperatorDecision
from ui.operator_input import (
    KEY_ENTER,
    KEY_ESC,
    KEY_SPACE,
    KeyboardDecisionSource,
    ScriptedDecisionSource,
    decision_for_key,
)


@pytest.mark.parametrize(
    "key, block, expected",
    [
        (-1, True, None),
        (-1, False, None),
        (KEY_SPACE, True, OperatorDecision.ACCEPT),
        (KEY_SPACE, False, None),
        (ord("x"), True, OperatorDecision.REJECT),
        (ord("x"), False, None),
        (KEY_ESC, False, OperatorDecision.CANCEL),
        (ord("q"), True, OperatorDecision.CANCEL),
        (KEY_ENTER, True, OperatorDecision.FINISH),
        (KEY_ENTER, False, OperatorDecision.FINISH),
        (0x100 | KEY_SPACE, True, OperatorDecision.ACCEPT),
    ],
)
def test_key_mapping(key, block, expected) -> None:
    assert decision_for_key(key, block) is expected


def test_keyboard_source_blocks_only_when_asked() -> None:
    source = KeyboardDecisionSource(poll_ms=25)
    with patch("ui.operator_input.cv2.waitKey", return_value=-1) as wait_key:
        source.next_decision(block=True)
        source.next_decision(block=False)

    assert [c.args[0] for c in wait_key.call_args_list] == [0, 25]


def test_scripted_source_defaults() -> None:
    source = ScriptedDecisionSource([OperatorDecision.ACCEPT], polls=[OperatorDecision.FINISH])

    assert source.next_decision(block=True) is OperatorDecision.ACCEPT
    assert source.next_decision(block=True) is OperatorDecision.CANCEL
    assert source.next_decision(block=False) is OperatorDecision.FINISH
    assert source.next_decision(block=False) is None


@pytest.mark.parametrize("key, pressed", [(-1, False), (ord("x"), True), (KEY_SPACE, True), (KEY_ESC, True)])
def test_keyboard_key_pressed_accepts_any_key(key, pressed) -> None:
    source = KeyboardDecisionSource(poll_ms=25)
    with patch("ui.operator_input.cv2.waitKey", return_value=key) as wait_key:
        assert source.key_pressed() is pressed

    wait_key.assert_called_once_with(25)


def test_scripted_key_pressed_consumes_polls() -> None:
    source = ScriptedDecisionSource([], polls=[None, OperatorDecision.REJECT])

    assert not source.key_pressed()
    assert source.key_pressed()
    assert not source.key_pressed()
