"""Node-style module resolution for TypeScript sources.

Relative specifiers resolve against the importing file (``.ts``, ``.tsx``,
``.d.ts``, then ``index.*``). Bare specifiers go through ``paths``/``baseUrl``
and then ``node_modules`` and ``node_modules/@types`` in every ancestor
directory. Inside ``node_modules`` only declaration files are picked up.
"""

import json
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .tsconfig import CompilerOptions

TS_EXTENSIONS: Tuple[str, ...] = (".ts", ".tsx", ".d.ts")
JS_EXTENSIONS: Tuple[str, ...] = (".js", ".jsx")
DECLARATION_EXTENSIONS: Tuple[str, ...] = (".d.ts",)


def normalize(path: Path) -> Path:
    """Lexically normalized path; symlinks are not resolved."""
    return Path(os.path.normpath(str(path)))


def is_relative_specifier(specifier: str) -> bool:
    return specifier.startswith(("./", "../", "/")) or specifier in (".", "..")


def mangle_scoped_package(name: str) -> str:
    """'@scope/name' -> 'scope__name', the @types naming convention."""
    if name.startswith("@") and "/" in name:
        scope, rest = name[1:].split("/", 1)
        return f"{scope}__{rest}"
    return name


def split_package_name(specifier: str) -> Tuple[str, str]:
    """Split 'pkg/sub/path' (or '@scope/pkg/sub') into package and subpath."""
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) >= 2:
        return "/".join(parts[:2]), "/".join(parts[2:])
    return parts[0], "/".join(parts[1:])


class ModuleResolver:
    """Resolve import specifiers to files under one set of compiler options."""

    def __init__(self, options: CompilerOptions, project_dir: Optional[Path] = None):
        self.options = options
        self.project_dir = normalize(project_dir or Path.cwd())
        self._cache: Dict[Tuple[str, str], Optional[Path]] = {}

    @property
    def source_extensions(self) -> Tuple[str, ...]:
        if self.options.allow_js:
            return TS_EXTENSIONS + JS_EXTENSIONS
        return TS_EXTENSIONS

    def resolve(self, specifier: str, importer: Path) -> Optional[Path]:
        key = (specifier, str(importer.parent))
        if key not in self._cache:
            self._cache[key] = self._resolve(specifier, importer)
        return self._cache[key]

    def _resolve(self, specifier: str, importer: Path) -> Optional[Path]:
        if is_relative_specifier(specifier):
            return self._load_file_or_directory(importer.parent / specifier, self.source_extensions)
        for candidate in self._path_mapping_candidates(specifier):
            resolved = self._load_file_or_directory(candidate, self.source_extensions)
            if resolved is not None:
                return resolved
        return self._load_from_node_modules(specifier, importer.parent)

    def _path_mapping_candidates(self, specifier: str) -> List[Path]:
        candidates: List[Path] = []
        base_dir = self.options.base_url or self.options.paths_base_path
        if base_dir is None:
            return candidates
        base = Path(base_dir)
        for pattern, targets in self.options.paths.items():
            if "*" in pattern:
                prefix, suffix = pattern.split("*", 1)
                if not (specifier.startswith(prefix) and specifier.endswith(suffix)):
                    continue
                token = specifier[len(prefix):len(specifier) - len(suffix)]
                candidates.extend(base / target.replace("*", token) for target in targets)
            elif pattern == specifier:
                candidates.extend(base / target for target in targets)
        if self.options.base_url is not None:
            candidates.append(base / specifier)
        return candidates

    def _load_from_node_modules(self, specifier: str, start: Path) -> Optional[Path]:
        package, subpath = split_package_name(specifier)
        for directory in self._ancestors(start):
            node_modules = directory / "node_modules"
            if not node_modules.is_dir():
                continue
            for package_dir in (
                node_modules / package,
                node_modules / "@types" / mangle_scoped_package(package),
            ):
                target = package_dir / subpath if subpath else package_dir
                resolved = self._load_file_or_directory(target, DECLARATION_EXTENSIONS)
                if resolved is not None:
                    return resolved
        return None

    def _load_file_or_directory(self, base: Path, extensions: Tuple[str, ...]) -> Optional[Path]:
        base = normalize(base)
        resolved = self._load_file(base, extensions)
        if resolved is not None:
            return resolved
        if base.is_dir():
            return self._load_directory(base, extensions)
        return None

    def _load_file(self, base: Path, extensions: Tuple[str, ...]) -> Optional[Path]:
        if base.name.endswith(extensions) and base.is_file():
            return base
        # ESM-style './foo.js' pointing at foo.ts
        if base.suffix in JS_EXTENSIONS:
            stem = base.with_suffix("")
            for ext in extensions:
                candidate = stem.with_name(stem.name + ext)
                if candidate.is_file():
                    return candidate
        for ext in extensions:
            candidate = base.with_name(base.name + ext)
            if candidate.is_file():
                return candidate
        return None

    def _load_directory(self, directory: Path, extensions: Tuple[str, ...]) -> Optional[Path]:
        manifest = directory / "package.json"
        if manifest.is_file():
            try:
                data = json.loads(manifest.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                data = {}
            if isinstance(data, dict):
                for field in ("types", "typings"):
                    entry = data.get(field)
                    if isinstance(entry, str):
                        resolved = self._load_file(normalize(directory / entry), extensions)
                        if resolved is not None:
                            return resolved
        return self._load_file(directory / "index", extensions)

    def _ancestors(self, start: Path) -> Iterable[Path]:
        start = normalize(start.absolute())
        yield start
        yield from start.parents

    def type_root_dirs(self) -> List[Path]:
        if self.options.type_roots is not None:
            return [normalize(Path(root)) for root in self.options.type_roots]
        return [
            directory / "node_modules" / "@types"
            for directory in self._ancestors(self.project_dir)
            if (directory / "node_modules" / "@types").is_dir()
        ]

    def resolve_type_reference(self, name: str) -> Optional[Path]:
        """Resolve a `/// <reference types>` or automatic types entry."""
        for root in self.type_root_dirs():
            resolved = self._load_file_or_directory(root / name, DECLARATION_EXTENSIONS)
            if resolved is not None:
                return resolved
        return self._load_from_node_modules(name, self.project_dir)

    def automatic_type_files(self) -> List[Path]:
        """Entry files of the type packages tsc includes without an import."""
        if self.options.types is not None:
            names = list(self.options.types)
        else:
            names = []
            for root in self.type_root_dirs():
                if not root.is_dir():
                    continue
                names.extend(sorted(child.name for child in root.iterdir() if child.is_dir()))
        files: List[Path] = []
        for name in names:
            resolved = self.resolve_type_reference(name)
            if resolved is not None and resolved not in files:
                files.append(resolved)
        return files
