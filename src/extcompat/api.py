"""Public API for extcompat.

High-level functions that check an extension package against the Reference
API and return a complete ``CompatibilityReport``. The CLI is a thin wrapper
around ``check_package``; everything under ``_internal`` is an implementation
detail.
"""

import os
from pathlib import Path
from typing import AbstractSet, FrozenSet, Optional, Union

from pydantic import BaseModel, ConfigDict

from extcompat.codes import InputCode
from extcompat.contracts import CompatibilityReport
from extcompat.kernel.analysis import analyze_program
from extcompat.kernel.oracle import Program
from extcompat.kernel.report import build_report
from extcompat.kernel.symbol_index import build_symbol_index
from extcompat._internal.typescript.program import create_program
from extcompat._internal.typescript.tsconfig import CompilerOptions, load_compiler_options

PathInput = Union[str, os.PathLike, Path]

DEFAULT_MAIN = "src/extension.ts"
DEFAULT_CONFIG = "tsconfig.json"
REFERENCE_DECLARATIONS = Path("@theia/plugin/src/theia.d.ts")


class InputPathError(FileNotFoundError):
    """A user-supplied or required input path does not exist."""
    def __init__(self, code: InputCode, message: str, path: Optional[Path] = None):
        self.code = code
        self.path = path
        super().__init__(message)


class CheckInputs(BaseModel):
    """Validated, absolute input paths of one check."""
    package: Path
    main: Path
    config: Path

    model_config = ConfigDict(frozen=True)


def _normalize_path(path: PathInput) -> Path:
    """Normalize path input to an absolute Path object."""
    return Path(os.path.abspath(Path(path)))


def validate_inputs(
    package: PathInput,
    main: PathInput = DEFAULT_MAIN,
    config: PathInput = DEFAULT_CONFIG,
) -> CheckInputs:
    """
    Check that the package, its entry module and its tsconfig exist.

    `main` and `config` are relative to the package. Paths are checked in that
    order and the first missing one raises.

    Raises:
        InputPathError: with PACKAGE_NOT_FOUND, MAIN_NOT_FOUND or CONFIG_NOT_FOUND
    """
    package_path = _normalize_path(package)
    if not package_path.exists():
        raise InputPathError(
            InputCode.PACKAGE_NOT_FOUND,
            f'"{package_path}" package path should exist, use "package" option to specify a package path',
            package_path,
        )
    main_path = _normalize_path(package_path / main)
    if not main_path.exists():
        raise InputPathError(
            InputCode.MAIN_NOT_FOUND,
            f'"{main_path}" package entry module path should exist, use "main" option to specify a package relative path',
            main_path,
        )
    config_path = _normalize_path(package_path / config)
    if not config_path.exists():
        raise InputPathError(
            InputCode.CONFIG_NOT_FOUND,
            f'"{config_path}" tsconfig path should exist, use "config" option to specify a package relative path',
            config_path,
        )
    return CheckInputs(package=package_path, main=main_path, config=config_path)


def resolve_reference_declarations(*start_dirs: PathInput) -> Path:
    """
    Find @theia/plugin/src/theia.d.ts the way Node resolves packages.

    Each start directory and then its ancestors are searched for
    node_modules/@theia/plugin/src/theia.d.ts; the first hit wins.

    Raises:
        InputPathError: with REFERENCE_NOT_FOUND when no start directory sees it
    """
    searched = [_normalize_path(start) for start in start_dirs] or [_normalize_path(Path.cwd())]
    for start in searched:
        for directory in (start, *start.parents):
            candidate = directory / "node_modules" / REFERENCE_DECLARATIONS
            if candidate.is_file():
                return candidate
    raise InputPathError(
        InputCode.REFERENCE_NOT_FOUND,
        f"{InputCode.REFERENCE_NOT_FOUND.value}: cannot find {REFERENCE_DECLARATIONS.as_posix()} "
        f"from {', '.join(str(start) for start in searched)}, install @theia/plugin",
    )


def build_reference_index(path: PathInput) -> FrozenSet[str]:
    """Load only the Reference API declaration file and collect its qualified names."""
    reference = _normalize_path(path)
    if not reference.is_file():
        raise InputPathError(
            InputCode.REFERENCE_NOT_FOUND,
            f"{InputCode.REFERENCE_NOT_FOUND.value}: {reference} does not exist",
            reference,
        )
    program = create_program([reference], CompilerOptions(types=[]), project_dir=reference.parent)
    source_file = program.get_source_file(reference)
    if source_file is None:
        raise InputPathError(
            InputCode.REFERENCE_NOT_FOUND,
            f"{InputCode.REFERENCE_NOT_FOUND.value}: {reference} could not be loaded",
            reference,
        )
    return build_symbol_index(program, source_file)


def analyze(program: Program, symbol_index: AbstractSet[str]) -> CompatibilityReport:
    """Classify every Source-API usage of a loaded program."""
    return build_report(analyze_program(program, symbol_index))


def check_package(
    package: PathInput,
    main: PathInput = DEFAULT_MAIN,
    config: PathInput = DEFAULT_CONFIG,
    reference: Optional[PathInput] = None,
) -> CompatibilityReport:
    """
    Check one extension package against the Reference API.

    Args:
        package: Package directory
        main: Entry module, relative to the package
        config: tsconfig, relative to the package
        reference: Reference API declaration file; resolved from the package
            directory and then the current directory when omitted

    Returns:
        CompatibilityReport with sorted, deduplicated lists

    Raises:
        InputPathError: a required path is missing
        ConfigError: the tsconfig cannot be parsed
    """
    inputs = validate_inputs(package, main, config)
    options = load_compiler_options(inputs.config)
    if reference is None:
        reference_path = resolve_reference_declarations(inputs.package, Path.cwd())
    else:
        reference_path = _normalize_path(reference)
    symbol_index = build_reference_index(reference_path)
    program = create_program([inputs.main], options, project_dir=inputs.package)
    return analyze(program, symbol_index)
