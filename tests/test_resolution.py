"""Tests for module specifier resolution."""

from pathlib import Path

from extcompat._internal.typescript.resolution import (
    ModuleResolver,
    is_relative_specifier,
    mangle_scoped_package,
    split_package_name,
)
from extcompat._internal.typescript.tsconfig import CompilerOptions


def _touch(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_specifier_helpers():
    assert is_relative_specifier("./a")
    assert is_relative_specifier("..")
    assert not is_relative_specifier("vscode")
    assert mangle_scoped_package("@theia/plugin") == "theia__plugin"
    assert mangle_scoped_package("vscode") == "vscode"
    assert split_package_name("@theia/plugin/src/theia") == ("@theia/plugin", "src/theia")
    assert split_package_name("lodash/fp") == ("lodash", "fp")


def test_relative_imports(tmp_path):
    main = _touch(tmp_path / "src" / "extension.ts")
    helper = _touch(tmp_path / "src" / "helper.ts")
    index = _touch(tmp_path / "src" / "util" / "index.ts")
    esm = _touch(tmp_path / "src" / "esm.ts")
    resolver = ModuleResolver(CompilerOptions(), tmp_path)
    assert resolver.resolve("./helper", main) == helper
    assert resolver.resolve("./util", main) == index
    assert resolver.resolve("./esm.js", main) == esm
    assert resolver.resolve("./missing", main) is None


def test_js_needs_allow_js(tmp_path):
    main = _touch(tmp_path / "src" / "extension.ts")
    _touch(tmp_path / "src" / "legacy.js")
    assert ModuleResolver(CompilerOptions(), tmp_path).resolve("./legacy", main) is None
    assert ModuleResolver(CompilerOptions(allow_js=True), tmp_path).resolve("./legacy", main) is not None


def test_node_modules_types_packages(tmp_path):
    main = _touch(tmp_path / "src" / "extension.ts")
    typings = _touch(tmp_path / "node_modules" / "@types" / "vscode" / "index.d.ts")
    _touch(tmp_path / "node_modules" / "lodash" / "index.js")
    resolver = ModuleResolver(CompilerOptions(), tmp_path)
    assert resolver.resolve("vscode", main) == typings
    # implementation-only packages contribute nothing
    assert resolver.resolve("lodash", main) is None


def test_package_json_types_field(tmp_path):
    main = _touch(tmp_path / "src" / "extension.ts")
    _touch(tmp_path / "node_modules" / "@theia" / "plugin" / "package.json", '{"types": "./src/theia.d.ts"}')
    theia = _touch(tmp_path / "node_modules" / "@theia" / "plugin" / "src" / "theia.d.ts")
    assert ModuleResolver(CompilerOptions(), tmp_path).resolve("@theia/plugin", main) == theia


def test_path_mapping(tmp_path):
    main = _touch(tmp_path / "src" / "extension.ts")
    shared = _touch(tmp_path / "shared" / "api.ts")
    options = CompilerOptions(base_url=str(tmp_path), paths={"@shared/*": ["shared/*"]})
    assert ModuleResolver(options, tmp_path).resolve("@shared/api", main) == shared


def test_automatic_type_files(tmp_path):
    vscode = _touch(tmp_path / "node_modules" / "@types" / "vscode" / "index.d.ts")
    node = _touch(tmp_path / "node_modules" / "@types" / "node" / "index.d.ts")
    assert ModuleResolver(CompilerOptions(), tmp_path).automatic_type_files() == [node, vscode]
    assert ModuleResolver(CompilerOptions(types=["vscode"]), tmp_path).automatic_type_files() == [vscode]
    assert ModuleResolver(CompilerOptions(types=[]), tmp_path).automatic_type_files() == []
