"""Tests for building the Reference API symbol index."""

from extcompat.api import build_reference_index
from extcompat.kernel.symbol_index import build_symbol_index


def test_collects_names_in_reference_namespace(stubs):
    reference = stubs.source_file(
        stubs.node(
            "module",
            stubs.node("identifier", symbol='"@theia/plugin"'),
            stubs.node("interface", stubs.node("type_identifier", symbol='"@theia/plugin".PluginContext')),
            stubs.node("namespace", stubs.node("function", symbol='"@theia/plugin".window.showQuickPick')),
            stubs.node("type_identifier", symbol="Thenable"),
        ),
        file_name="theia.d.ts",
        declaration=True,
    )
    index = build_symbol_index(stubs.program(reference), reference)
    assert index == frozenset({
        '"@theia/plugin".PluginContext',
        '"@theia/plugin".window.showQuickPick',
    })


def test_unresolvable_nodes_do_not_stop_the_walk(stubs):
    reference = stubs.source_file(
        stubs.node("broken", stubs.node("identifier", symbol='"@theia/plugin".env'), raises=True),
        file_name="theia.d.ts",
        declaration=True,
    )
    assert build_symbol_index(stubs.program(reference), reference) == frozenset({'"@theia/plugin".env'})


def test_reference_fixture_index(theia_declarations):
    """The tree-sitter front end indexes the fixture declaration file."""
    index = build_reference_index(theia_declarations)
    expected = {
        '"@theia/plugin".Disposable',
        '"@theia/plugin".Disposable.from',
        '"@theia/plugin".Disposable.dispose',
        '"@theia/plugin".Uri',
        '"@theia/plugin".Uri.file',
        '"@theia/plugin".Memento',
        '"@theia/plugin".Memento.get',
        '"@theia/plugin".Memento.update',
        '"@theia/plugin".PluginContext',
        '"@theia/plugin".Plugin',
        '"@theia/plugin".TextDocument',
        '"@theia/plugin".TextDocument.getText',
        '"@theia/plugin".TextEditor',
        '"@theia/plugin".window',
        '"@theia/plugin".window.showInformationMessage',
        '"@theia/plugin".commands',
        '"@theia/plugin".commands.registerCommand',
        '"@theia/plugin".commands.executeCommand',
        '"@theia/plugin".plugins',
        '"@theia/plugin".plugins.getPlugin',
    }
    assert expected <= index
    assert all(name.startswith('"@theia/plugin".') for name in index)
    assert '"@theia/plugin".SecretStorage' not in index
