"""tree-sitter front end: loads TypeScript programs for the kernel.

This module provides a program loader and a type checker that satisfy the
kernel's ``Program`` and ``TypeOracle`` protocols.
"""

from .checker import TypeChecker
from .program import Program, SourceFile, create_program
from .tsconfig import CompilerOptions, ConfigError, load_compiler_options

__all__ = [
    "TypeChecker",
    "Program",
    "SourceFile",
    "create_program",
    "CompilerOptions",
    "ConfigError",
    "load_compiler_options",
]
