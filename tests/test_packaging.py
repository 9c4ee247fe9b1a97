"""Packaging regression tests.

Tests that verify the package structure and declared dependencies.
"""

from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent


def test_source_layout():
    """src layout: kernel and _internal ship inside extcompat."""
    src = REPO_ROOT / "src" / "extcompat"
    assert (src / "__init__.py").exists(), "extcompat package should exist in src/"
    assert (src / "kernel").is_dir(), "extcompat.kernel should exist"
    assert (src / "_internal" / "typescript" / "__init__.py").exists(), "the TypeScript front end should exist"


def test_pyproject_declares_runtime_stack():
    pyproject = (REPO_ROOT / "pyproject.toml").read_text(encoding="utf-8")
    for requirement in ("pydantic>=2", "tree-sitter>=0.23", "tree-sitter-typescript>=0.23"):
        assert f'"{requirement}"' in pyproject
    assert 'extcompat = "extcompat.cli:main"' in pyproject


def test_import_boundary():
    import extcompat
    import extcompat.kernel.analysis  # noqa: F401
    import extcompat._internal.typescript  # noqa: F401

    assert extcompat.__version__ == "dev" or extcompat.__version__[0].isdigit()
