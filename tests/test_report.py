"""Tests for report materialization and rendering."""

import json

import pytest
from pydantic import ValidationError

from extcompat.contracts import CompatibilityReport
from extcompat.kernel.analysis import DynamicCommandCall, TraversalContext
from extcompat.kernel.report import (
    INSTALL_HINT,
    NO_USAGES_MESSAGE,
    build_report,
    no_usages_notice,
    render_canonical,
    render_report,
    report_document,
)


def _context():
    context = TraversalContext(symbol_index=frozenset())
    context.used_symbols.update({'"vscode".window', '"vscode".Uri'})
    context.missing_symbols.add('"vscode".SecretStorage')
    context.used_commands.add("vscode.open")
    context.missing_commands.update({"workbench.action.quit", "editor.action.format"})
    context.record_dynamic_call(DynamicCommandCall("id", "/p/src/a.ts", 9, 35))
    context.record_dynamic_call(DynamicCommandCall("id", "/p/src/a.ts", 9, 35))
    return context


def test_lists_are_sorted_and_deduplicated():
    report = build_report(_context())
    assert report.used_symbols == ['"vscode".Uri', '"vscode".window']
    assert report.missing_commands == ["editor.action.format", "workbench.action.quit"]
    assert report.dynamic_command_calls == ["id (/p/src/a.ts 9:35)"]


def test_model_sorts_on_construction():
    report = CompatibilityReport(used_commands=["b", "a", "b"])
    assert report.used_commands == ["a", "b"]


def test_document_key_order():
    document = report_document(build_report(_context()))
    assert list(document) == [
        "usedSymbols",
        "usedCommands",
        "missingSymbols",
        "missingCommands",
        "dynamicCommandCalls",
    ]


def test_render_report_is_two_space_json():
    report = build_report(_context())
    text = render_report(report)
    assert text.startswith('{\n  "usedSymbols": [\n    "\\"vscode\\".Uri",')
    assert json.loads(text) == report_document(report)


def test_rendering_is_deterministic():
    """Same usages, any insertion order: identical bytes."""
    first = build_report(_context())
    context = TraversalContext(symbol_index=frozenset())
    context.missing_commands.update({"editor.action.format", "workbench.action.quit"})
    context.used_commands.add("vscode.open")
    context.missing_symbols.add('"vscode".SecretStorage')
    context.used_symbols.update({'"vscode".Uri', '"vscode".window'})
    context.record_dynamic_call(DynamicCommandCall("id", "/p/src/a.ts", 9, 35))
    second = build_report(context)
    assert render_report(first) == render_report(second)
    assert render_canonical(first) == render_canonical(second)


def test_canonical_rendering_is_compact_and_sorted():
    text = render_canonical(CompatibilityReport(used_commands=["vscode.open"]))
    assert text == (
        '{"dynamicCommandCalls":[],"missingCommands":[],"missingSymbols":[],'
        '"usedCommands":["vscode.open"],"usedSymbols":[]}'
    )


def test_report_is_frozen_and_strict():
    report = CompatibilityReport()
    with pytest.raises(ValidationError):
        report.used_symbols = ["x"]
    with pytest.raises(ValidationError):
        CompatibilityReport(unknown=[])


def test_camel_case_input_is_accepted():
    report = CompatibilityReport.model_validate({"usedSymbols": ['"vscode".window']})
    assert report.used_symbols == ['"vscode".window']


def test_has_usages_only_looks_at_symbols():
    assert not CompatibilityReport(used_commands=["vscode.open"]).has_usages
    assert CompatibilityReport(missing_symbols=['"vscode".window']).has_usages


def test_no_usages_notice():
    assert no_usages_notice() == [NO_USAGES_MESSAGE, INSTALL_HINT]
    assert NO_USAGES_MESSAGE == "No usages of vscode.d.ts found"
    assert "npm i" in INSTALL_HINT and "yarn" in INSTALL_HINT
