"""Read a project's tsconfig.json into compiler options.

tsconfig files are JSONC: comments and trailing commas are allowed. Both are
stripped outside string literals before the text is handed to ``json``.
Relative paths (``baseUrl``, ``typeRoots``) are made absolute against the file
that declares them so ``extends`` chains resolve the way tsc resolves them.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field

from extcompat.codes import InputCode


class ConfigError(ValueError):
    """Raised when a tsconfig file cannot be interpreted."""
    def __init__(self, message: str, path: Optional[Path] = None):
        self.code = InputCode.CONFIG_PARSE_ERROR
        self.path = path
        super().__init__(message)


class CompilerOptions(BaseModel):
    """The subset of tsc compiler options the loader honors; the rest is kept as extra."""
    allow_js: bool = Field(False, alias="allowJs")
    base_url: Optional[str] = Field(None, alias="baseUrl")
    paths: Dict[str, List[str]] = Field(default_factory=dict)
    paths_base_path: Optional[str] = Field(None, alias="pathsBasePath")  # directory `paths` is relative to when baseUrl is unset
    type_roots: Optional[List[str]] = Field(None, alias="typeRoots")
    types: Optional[List[str]] = None
    strict: bool = False
    strict_null_checks: Optional[bool] = Field(None, alias="strictNullChecks")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @property
    def null_checks(self) -> bool:
        """Effective strictNullChecks: the explicit setting, else `strict`."""
        if self.strict_null_checks is not None:
            return self.strict_null_checks
        return self.strict


def strip_jsonc(text: str) -> str:
    """Remove // and /* */ comments and trailing commas from JSON-like text."""
    out: List[str] = []
    in_str = False
    escape = False
    idx = 0
    while idx < len(text):
        ch = text[idx]
        if in_str:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_str = False
            idx += 1
            continue
        if ch == '"':
            in_str = True
            out.append(ch)
            idx += 1
            continue
        if ch == "/" and idx + 1 < len(text):
            nxt = text[idx + 1]
            if nxt == "/":
                idx = text.find("\n", idx + 2)
                if idx == -1:
                    break
                continue
            if nxt == "*":
                end = text.find("*/", idx + 2)
                if end == -1:
                    break
                idx = end + 2
                continue
        if ch in "}]":
            # drop a comma left dangling before this closer
            back = len(out) - 1
            while back >= 0 and out[back].isspace():
                back -= 1
            if back >= 0 and out[back] == ",":
                del out[back]
        out.append(ch)
        idx += 1
    return "".join(out)


def read_config_file(path: Path) -> Dict[str, Any]:
    """Parse a tsconfig-style file into a dict."""
    try:
        raw = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e
    try:
        payload = json.loads(strip_jsonc(raw))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse {path}: {e}", path) from e
    if not isinstance(payload, dict):
        raise ConfigError(f"Invalid {path}: expected a JSON object", path)
    return payload


def _resolve_extends(value: str, config_dir: Path) -> Optional[Path]:
    if value.startswith((".", "/")):
        candidate = (config_dir / value)
        if candidate.is_file():
            return candidate
        with_suffix = candidate.with_name(candidate.name + ".json")
        return with_suffix if with_suffix.is_file() else None
    for directory in (config_dir, *config_dir.parents):
        base = directory / "node_modules" / value
        for candidate in (base, base.with_name(base.name + ".json"), base / "tsconfig.json"):
            if candidate.is_file():
                return candidate
    return None


def _absolutize(options: Dict[str, Any], config_dir: Path) -> Dict[str, Any]:
    resolved = dict(options)
    base_url = options.get("baseUrl")
    if isinstance(base_url, str):
        resolved["baseUrl"] = str((config_dir / base_url).resolve())
    type_roots = options.get("typeRoots")
    if isinstance(type_roots, list):
        resolved["typeRoots"] = [
            str((config_dir / root).resolve()) for root in type_roots if isinstance(root, str)
        ]
    if "paths" in options and "baseUrl" not in options:
        resolved["pathsBasePath"] = str(config_dir.resolve())
    return resolved


def _load_raw_options(path: Path, seen: Set[Path]) -> Dict[str, Any]:
    path = path.resolve()
    if path in seen:
        raise ConfigError(f"Circular 'extends' in {path}", path)
    data = read_config_file(path)

    options: Dict[str, Any] = {}
    extends = data.get("extends")
    if isinstance(extends, str):
        base = _resolve_extends(extends, path.parent)
        if base is not None:
            options.update(_load_raw_options(base, seen | {path}))

    own = data.get("compilerOptions", {})
    if own is None:
        own = {}
    if not isinstance(own, dict):
        raise ConfigError(f"Invalid {path}: 'compilerOptions' must be an object", path)
    options.update(_absolutize(own, path.parent))
    return options


def load_compiler_options(path: Path) -> CompilerOptions:
    """Load compilerOptions from a tsconfig, following relative and package 'extends'."""
    raw = _load_raw_options(Path(path), set())
    try:
        return CompilerOptions.model_validate(raw)
    except ValueError as e:
        raise ConfigError(f"Invalid compilerOptions in {path}: {e}", Path(path)) from e
