"""
Starter template definitions.

A starter directory carries a ``generator.yaml`` descriptor describing which
files are eligible for placeholder replacement and which rules to run on them:

    description: Minimal web application
    file_patterns:
      - \\.rs$
      - Cargo\\.toml$
    rules:
      - pattern: loco_starter_template
        kind: LibName
      - pattern: <JWT_SECRET>
        kind: Secret
        file_patterns:
          - config/.*\\.yaml$
      - pattern: 0\\.0\\.0
        kind: 1.0.0
"""

import re
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# Name of the descriptor expected at the root of each starter directory
GENERATOR_FILE_NAME = "generator.yaml"


class TemplateError(ValueError):
    """Raised when a descriptor cannot be turned into a Template."""
    pass


@dataclass(frozen=True)
class ArgsPlaceholder:
    """Values substituted for the reserved rule kinds during one run."""

    lib_name: str
    secret: str


class RuleKind(ABC):
    """What a rule's matches are replaced with."""

    @abstractmethod
    def resolve(self, args: ArgsPlaceholder) -> str:
        """Return the replacement text for this kind."""

    @staticmethod
    def parse(value: Any) -> 'RuleKind':
        """
        Build a kind from its descriptor value.

        ``LibName`` and ``Secret`` are reserved; any other string is used
        verbatim as the replacement.
        """
        if not isinstance(value, str):
            raise TemplateError(f"Invalid rule kind value: {value!r}")
        if value == "LibName":
            return LibName()
        if value == "Secret":
            return Secret()
        return Literal(value)


@dataclass(frozen=True)
class LibName(RuleKind):
    def resolve(self, args: ArgsPlaceholder) -> str:
        return args.lib_name


@dataclass(frozen=True)
class Secret(RuleKind):
    def resolve(self, args: ArgsPlaceholder) -> str:
        return args.secret


@dataclass(frozen=True)
class Literal(RuleKind):
    text: str

    def resolve(self, args: ArgsPlaceholder) -> str:
        return self.text


@dataclass(frozen=True)
class TemplateRule:
    """A single pattern -> replacement instruction."""

    pattern: re.Pattern
    kind: RuleKind
    file_patterns: Optional[Tuple[re.Pattern, ...]] = None

    @classmethod
    def from_dict(cls, data: Any, index: int = 0) -> 'TemplateRule':
        """Parse one entry of the descriptor's ``rules`` list."""
        if not isinstance(data, dict):
            raise TemplateError(f"Rule {index} must be a mapping")
        if 'pattern' not in data:
            raise TemplateError(f"Rule {index} missing required field 'pattern'")
        if 'kind' not in data:
            raise TemplateError(f"Rule {index} missing required field 'kind'")

        return cls(
            pattern=_compile(data['pattern'], f"rules[{index}].pattern"),
            kind=RuleKind.parse(data['kind']),
            file_patterns=_compile_patterns(data.get('file_patterns'),
                                            f"rules[{index}].file_patterns"),
        )


@dataclass(frozen=True)
class Template:
    """
    A parsed starter descriptor.

    ``file_patterns`` of ``None`` means every file is eligible; an empty
    tuple means no file is.
    """

    description: str
    file_patterns: Optional[Tuple[re.Pattern, ...]] = None
    rules: Tuple[TemplateRule, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> 'Template':
        """
        Build a Template from a loaded descriptor document.

        Args:
            data: The document as returned by ``yaml.safe_load``.

        Returns:
            Parsed Template.

        Raises:
            TemplateError: If the document does not describe a valid template.
        """
        if not isinstance(data, dict):
            raise TemplateError("Descriptor must be a mapping")

        description = data.get('description')
        if not isinstance(description, str):
            raise TemplateError("Descriptor missing required string field 'description'")

        rules = data.get('rules')
        if rules is None:
            rules = []
        if not isinstance(rules, list):
            raise TemplateError("Descriptor 'rules' must be a list")

        return cls(
            description=description,
            file_patterns=_compile_patterns(data.get('file_patterns'), "file_patterns"),
            rules=tuple(TemplateRule.from_dict(rule, i) for i, rule in enumerate(rules)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Summarize the template for display."""
        return {
            'description': self.description,
            'file_patterns': None if self.file_patterns is None
            else [p.pattern for p in self.file_patterns],
            'rules': len(self.rules),
        }


def load_template(path) -> Template:
    """
    Load and parse a descriptor file.

    Raises:
        OSError: If the file cannot be opened.
        TemplateError: If the content is not a valid template.
    """
    with open(Path(path), 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except (yaml.YAMLError, UnicodeDecodeError, RecursionError) as e:
            raise TemplateError(f"Invalid YAML: {e}") from e
    return Template.from_dict(data)


def _compile(value: Any, where: str) -> re.Pattern:
    if not isinstance(value, str):
        raise TemplateError(f"{where} must be a string, got {type(value).__name__}")
    try:
        return re.compile(value)
    except (re.error, OverflowError, RecursionError) as e:
        raise TemplateError(f"{where}: invalid regular expression {value!r}: {e}") from e


def _compile_patterns(values: Any, where: str) -> Optional[Tuple[re.Pattern, ...]]:
    if values is None:
        return None
    if not isinstance(values, list):
        raise TemplateError(f"{where} must be a list")
    return tuple(_compile(v, f"{where}[{i}]") for i, v in enumerate(values))
