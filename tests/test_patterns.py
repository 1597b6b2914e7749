from __future__ import annotations

import pytest


def test_suffix_wildcard_matches_and_rejects() -> None:
    from bridge.authz.patterns import matches

    assert matches("Tank1_AI_Assistant", "*_AI_Assistant") is True
    assert matches("Tank1_Safety", "*_AI_Assistant") is False


def test_matching_ignores_case() -> None:
    from bridge.authz.patterns import matches

    assert matches("tank1_ai_assistant", "*_AI_Assistant") is True
    assert matches("LINE2_demo_VALVE", "*_DEMO_*") is True


def test_matching_is_anchored_to_the_whole_identifier() -> None:
    from bridge.authz.patterns import matches

    assert matches("Tank1_AI_AssistantX", "*_AI_Assistant") is False
    assert matches("XTank1", "Tank*") is False


def test_star_matches_empty_run() -> None:
    from bridge.authz.patterns import matches

    assert matches("_AI_Assistant", "*_AI_Assistant") is True
    assert matches("A_B", "A*_*B") is True


@pytest.mark.parametrize("identifier,pattern", [("", "*"), ("x", ""), (None, "*"), ("x", None)])
def test_empty_inputs_never_match(identifier, pattern) -> None:
    from bridge.authz.patterns import matches

    assert matches(identifier, pattern) is False


def test_regex_metacharacters_are_literal() -> None:
    from bridge.authz.patterns import matches

    assert matches("System1:Pump.cmd", "System1:Pump.*") is True
    assert matches("System1:PumpXcmd", "System1:Pump.*") is False
    assert matches("A+B(1)", "A+B(*)") is True
