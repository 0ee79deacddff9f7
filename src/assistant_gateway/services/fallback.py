"""Offline heuristics used whenever the backend cannot answer.

Every method is deterministic, network free and never raises: whatever
the input, the caller gets something it can render.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from ..models import AnalysisResult, ErrorClassification, ExecutionResult, ValidationResult
from .execution_rules import rules_for

FALLBACK_CONFIDENCE = 0.6
LARGE_SNIPPET_LINES = 50
OVERSIZED_FILE_LINES = 100
SIMULATED_MEMORY_USAGE = 64
NO_OUTPUT_PLACEHOLDER = "(no output)"

SETUP_STEPS = """\
To restore the assistant:
1. Start the backend server: npm run dev
2. Make sure the Claude CLI is installed: npm install -g @anthropic-ai/claude-code
3. Check that the CLI is authenticated: claude login"""

_CHAT_HEADLINES: dict[ErrorClassification | None, str] = {
    ErrorClassification.SETUP_REQUIRED: (
        "The assistant backend needs to be set up before it can answer, "
        "so here is an offline reply."
    ),
    ErrorClassification.AUTH_REQUIRED: (
        "The assistant backend is not authenticated, so here is an offline reply."
    ),
    ErrorClassification.RATE_LIMITED: (
        "Too many requests were sent in the last minute. "
        "Please wait a moment; here is an offline reply in the meantime."
    ),
    ErrorClassification.NETWORK_UNREACHABLE: (
        "The assistant backend could not be reached, so here is an offline reply."
    ),
    ErrorClassification.TIMED_OUT: (
        "The assistant backend took too long to answer, so here is an offline reply."
    ),
    ErrorClassification.GENERIC: (
        "The assistant backend is unavailable, so here is an offline reply."
    ),
    None: "The assistant backend is unavailable, so here is an offline reply.",
}


class FallbackEngine:
    """One heuristic per gateway operation."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    def chat(self, message: str, reason: ErrorClassification | None = None) -> str:
        headline = _CHAT_HEADLINES.get(reason, _CHAT_HEADLINES[None])
        return f'{headline}\n\n{SETUP_STEPS}\n\nYour question: "{message}"'

    def analyze(self, code: str) -> AnalysisResult:
        lines = len(code.split("\n"))
        looks_typed = ": " in code or "interface " in code or "type " in code
        has_comments = "//" in code or "/*" in code

        quality = "high" if looks_typed and has_comments else "low"
        if lines > LARGE_SNIPPET_LINES and quality == "high":
            quality = "medium"

        issues = [
            "" if looks_typed else "Type annotations may be missing",
            "" if has_comments else "Comments may be missing",
            "The file may be too large" if lines > OVERSIZED_FILE_LINES else "",
        ]
        suggestions = [
            "Run a code review",
            "Consider adding test cases",
            "" if looks_typed else "Add type definitions",
        ]

        return AnalysisResult(
            code_quality=quality,
            potential_issues=[entry for entry in issues if entry],
            suggestions=[entry for entry in suggestions if entry],
            explanation="Basic offline code-quality check",
            confidence=FALLBACK_CONFIDENCE,
            source="fallback",
            timestamp_epoch_ms=int(self._clock() * 1000),
        )

    def generate_code(self, prompt: str, language: str) -> str:
        # Prompt text ends up inside a string literal of the stub.
        quoted = prompt.replace("\\", "\\\\").replace("'", "\\'").replace("\n", " ")
        return (
            f"// {language} sample (generated offline)\n"
            f"// Request: {prompt}\n"
            "\n"
            "// PLACEHOLDER: the assistant backend is unavailable, so this is a\n"
            "// non-functional template. Start the server and authenticate to\n"
            "// generate real code.\n"
            "\n"
            "export function generatedFunction() {\n"
            "  // Not implemented: fill in the body.\n"
            f"  console.log('Generated from prompt: {quoted}');\n"
            "}"
        )

    def execute_code(
        self, code: str, language: str, execution_time_ms: int = 0
    ) -> ExecutionResult:
        rules = rules_for(language)
        output_lines: list[str] = []
        error = ""
        if rules is not None:
            output_lines = [rules.predict_line(argument) for argument in rules.print_calls(code)]
            violations = rules.violations(code)
            if violations:
                error = violations[0]

        output = "\n".join(output_lines)
        if not output and not error:
            output = NO_OUTPUT_PLACEHOLDER

        return ExecutionResult(
            output=output,
            error=error,
            execution_time_ms=max(execution_time_ms, 0),
            is_success=not error,
            memory_usage=SIMULATED_MEMORY_USAGE,
            source="fallback",
            is_static_approximation=True,
        )

    def validate_code(self, code: str, language: str) -> ValidationResult:
        if not code.strip():
            return ValidationResult(is_valid=False, errors=["Code is empty"])
        rules = rules_for(language)
        errors = rules.violations(code) if rules is not None else []
        return ValidationResult(is_valid=not errors, errors=errors)
