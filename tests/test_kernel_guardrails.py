"""Guardrails to keep the kernel free of side effects and front-end dependencies."""

import re
from pathlib import Path


FORBIDDEN_PATTERNS = {
    "argparse": re.compile(r"\bargparse\b"),
    "pathlib.Path": re.compile(r"\bpathlib\b"),
    "open(": re.compile(r"(?<![A-Za-z0-9_])open\s*\("),
    "print(": re.compile(r"(?<![A-Za-z0-9_])print\s*\("),
    "os.path": re.compile(r"\bos\.path\b"),
    "tree_sitter": re.compile(r"\btree_sitter\b"),
    "typescript front end": re.compile(r"_internal\.typescript\b"),
}


def test_kernel_has_no_forbidden_tokens():
    kernel_dir = Path(__file__).resolve().parents[1] / "src" / "extcompat" / "kernel"
    offenders = []

    for path in kernel_dir.glob("*.py"):
        contents = path.read_text(encoding="utf-8")
        for token, pattern in FORBIDDEN_PATTERNS.items():
            if pattern.search(contents):
                offenders.append(f"{path.name}: {token}")

    assert not offenders, "Forbidden kernel tokens found: " + ", ".join(offenders)


def test_kernel_has_no_module_state():
    """Accumulators live on TraversalContext; module-level sets or dicts would leak between runs."""
    kernel_dir = Path(__file__).resolve().parents[1] / "src" / "extcompat" / "kernel"
    mutable_global = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\s*(:[^=\n]+)?=\s*(set\(|\{\}|\[\]|dict\()", re.MULTILINE)
    offenders = [path.name for path in kernel_dir.glob("*.py") if mutable_global.search(path.read_text(encoding="utf-8"))]
    assert not offenders, "Module-level mutable state in: " + ", ".join(offenders)
