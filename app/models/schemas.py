"""
Pydantic models for Entropy Sorter.

Shape of the rules file (rules.yaml):

    options:
      preserve_structure: false
      knowledge_base: knowledge.md
    ignore:
      os_defaults: true
      files: [...]
      extensions: [...]
      folders: [...]
    rules:
      - pattern: ".*invoice.*\\.pdf$"
        target: Documents/Finance/Invoices
    gpt:
      enabled: true
      model: llama3.2
      instructions: "..."
"""

import re
from typing import Any, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =====================================================
# Rules File Models
# =====================================================

class RulesSection(BaseModel):
    """Rules file section; keys left empty in YAML (`ignore:`) take their defaults."""

    @model_validator(mode="before")
    @classmethod
    def drop_empty_keys(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Options(RulesSection):
    """Global routing options."""
    preserve_structure: bool = False
    knowledge_base: str = ""


class IgnoreSpec(RulesSection):
    """Paths skipped before any classification happens."""
    os_defaults: bool = False
    files: Set[str] = Field(default_factory=set)
    extensions: Set[str] = Field(default_factory=set)
    folders: Set[str] = Field(default_factory=set)

    @field_validator("extensions")
    @classmethod
    def normalise_extensions(cls, value: Set[str]) -> Set[str]:
        normalised = set()
        for ext in value:
            ext = ext.strip().lower()
            if ext and not ext.startswith("."):
                ext = f".{ext}"
            if ext:
                normalised.add(ext)
        return normalised


class Rule(BaseModel):
    """A (pattern, destination) pair; first match wins."""
    model_config = ConfigDict(populate_by_name=True)

    pattern: str
    destination: str = Field(alias="target")

    @field_validator("pattern")
    @classmethod
    def pattern_must_compile(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid pattern {value!r}: {e}") from e
        return value


class SuggestionConfig(RulesSection):
    """Suggestion service section of the rules file."""
    enabled: bool = False
    api_key: Optional[str] = None
    model: Optional[str] = None
    instructions: str = ""


class RoutingConfig(RulesSection):
    """Validated contents of the rules file."""
    model_config = ConfigDict(populate_by_name=True)

    options: Options = Field(default_factory=Options)
    ignore: IgnoreSpec = Field(default_factory=IgnoreSpec)
    rules: List[Rule] = Field(default_factory=list)
    suggestions: SuggestionConfig = Field(default_factory=SuggestionConfig, alias="gpt")
