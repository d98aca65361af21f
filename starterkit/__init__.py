"""
starterkit: discover project starters and instantiate them by rule-based
placeholder replacement.
"""

from .template import (
    GENERATOR_FILE_NAME,
    ArgsPlaceholder,
    LibName,
    Literal,
    RuleKind,
    Secret,
    Template,
    TemplateError,
    TemplateRule,
    load_template,
)
from .registry import collect_templates, get_template
from .generator import GenerationSummary, apply_rules, generate, should_run_file

__version__ = "0.1.0"

__all__ = [
    "GENERATOR_FILE_NAME",
    "ArgsPlaceholder",
    "LibName",
    "Literal",
    "RuleKind",
    "Secret",
    "Template",
    "TemplateError",
    "TemplateRule",
    "load_template",
    "collect_templates",
    "get_template",
    "GenerationSummary",
    "apply_rules",
    "generate",
    "should_run_file",
]
