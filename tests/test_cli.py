from __future__ import annotations

import json
from pathlib import Path

import pytest


def test_print_rules_merges_documents(docs_dir: Path, capsys: pytest.CaptureFixture) -> None:
    import main

    rc = main.print_rules([str(docs_dir / "field.md"), str(docs_dir / "project.md")])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["allowed_patterns"] == ["*_AI_Assistant", "*_DEMO_*"]


def test_print_rules_check_exit_code(docs_dir: Path, capsys: pytest.CaptureFixture) -> None:
    import main

    docs = [str(docs_dir / "field.md"), str(docs_dir / "project.md")]
    assert main.print_rules(docs, check="Line2_DEMO_Valve") == 0
    assert capsys.readouterr().out.startswith("ALLOWED")
    assert main.print_rules(docs, check="Boiler1_Safety_ESD") == 1
    assert capsys.readouterr().out.startswith("DENIED")


def test_call_tool_rejects_non_object_args(capsys: pytest.CaptureFixture) -> None:
    import main

    assert main.call_tool("dp.get", "[1, 2]") == 2
