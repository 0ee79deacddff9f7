"""Per-language pattern rules for the static execution simulator."""

from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RequiredConstruct:
    """A source fragment that must be present once a print call is used."""

    marker: str
    message: str


@dataclass(frozen=True)
class LanguageRules:
    name: str
    print_call: re.Pattern[str]
    string_literal: re.Pattern[str]
    required_with_print: tuple[RequiredConstruct, ...] = field(default_factory=tuple)
    balanced_braces: bool = True

    def print_calls(self, code: str) -> list[str]:
        """Argument text of every print-like call, in source order."""

        return [match.group(1).strip() for match in self.print_call.finditer(code)]

    def predict_line(self, argument: str) -> str:
        literal = self.string_literal.search(argument)
        if literal:
            return literal.group(1)
        return f"[{argument} value]"

    def violations(self, code: str) -> list[str]:
        errors: list[str] = []
        if self.print_calls(code):
            for construct in self.required_with_print:
                if construct.marker not in code:
                    errors.append(construct.message)
        if self.balanced_braces and code.count("{") != code.count("}"):
            errors.append("Mismatched number of braces { }")
        return errors


CSHARP = LanguageRules(
    name="csharp",
    print_call=re.compile(r"Console\.WriteLine\s*\(\s*([^)]+)\s*\)"),
    string_literal=re.compile(r"[\"']([^\"']+)[\"']"),
    required_with_print=(
        RequiredConstruct("using System", "Missing 'using System;' directive"),
        RequiredConstruct("static void Main", "No 'static void Main' entry point found"),
    ),
)

JAVASCRIPT = LanguageRules(
    name="javascript",
    print_call=re.compile(r"console\.log\s*\(\s*([^)]+)\s*\)"),
    string_literal=re.compile(r"[\"'`]([^\"'`]+)[\"'`]"),
)

TYPESCRIPT = LanguageRules(
    name="typescript",
    print_call=JAVASCRIPT.print_call,
    string_literal=JAVASCRIPT.string_literal,
)

PYTHON = LanguageRules(
    name="python",
    print_call=re.compile(r"\bprint\s*\(\s*([^)]+)\s*\)"),
    string_literal=re.compile(r"[\"']([^\"']+)[\"']"),
    balanced_braces=False,
)

_RULES: dict[str, LanguageRules] = {
    "csharp": CSHARP,
    "c#": CSHARP,
    "cs": CSHARP,
    "javascript": JAVASCRIPT,
    "js": JAVASCRIPT,
    "typescript": TYPESCRIPT,
    "ts": TYPESCRIPT,
    "tsx": TYPESCRIPT,
    "python": PYTHON,
    "py": PYTHON,
}


def rules_for(language: str) -> LanguageRules | None:
    return _RULES.get(language.strip().lower())


def register_rules(rules: LanguageRules, *aliases: str) -> None:
    """Plug in rules for another language."""

    for key in (rules.name, *aliases):
        _RULES[key.lower()] = rules
