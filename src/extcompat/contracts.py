"""Public report model for extcompat."""

from typing import List
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CompatibilityReport(BaseModel):
    """Usage of the Source API, split by Reference API support.

    Every list is deduplicated and sorted on construction, so two reports built
    from the same usages serialize identically.
    """
    used_symbols: List[str] = Field(default_factory=list, alias="usedSymbols")
    used_commands: List[str] = Field(default_factory=list, alias="usedCommands")
    missing_symbols: List[str] = Field(default_factory=list, alias="missingSymbols")
    missing_commands: List[str] = Field(default_factory=list, alias="missingCommands")
    dynamic_command_calls: List[str] = Field(default_factory=list, alias="dynamicCommandCalls")  # "<text> (<file> <line>:<column>)"

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    @field_validator(
        "used_symbols",
        "used_commands",
        "missing_symbols",
        "missing_commands",
        "dynamic_command_calls",
    )
    @classmethod
    def sort_unique(cls, v: List[str]) -> List[str]:
        return sorted(set(v))

    @property
    def has_usages(self) -> bool:
        """False when no Source-API symbol was seen anywhere."""
        return bool(self.used_symbols or self.missing_symbols)
