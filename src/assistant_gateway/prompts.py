"""Prompt templates sent to the backend, plus parsing of structured replies."""

from __future__ import annotations

import json
import re
from typing import Any

CODE_ANALYSIS_PROMPT = """You are an experienced software engineer. Analyse the code below and reply in JSON.
{context_line}
Code to analyse:
```
{code}
```

Reply with exactly this JSON shape:
{{
  "codeQuality": "high" | "medium" | "low",
  "potentialIssues": ["issue 1", "issue 2"],
  "suggestions": ["suggestion 1", "suggestion 2"],
  "explanation": "detailed explanation",
  "confidence": 0.0-1.0
}}

Point out code quality, potential problems and concrete improvements."""

CODE_GENERATION_PROMPT = """Generate {language} code for the following request.

Request: {prompt}

Requirements:
- Produce practical, working code
- Follow best practices
- Include helpful comments
- Favour type safety where the language supports it

Return only the code, without explanation."""

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def build_code_analysis_prompt(code: str, context: str | None = None) -> str:
    context_line = f"\nContext: {context}\n" if context else ""
    return CODE_ANALYSIS_PROMPT.format(code=code, context_line=context_line).strip()


def build_code_generation_prompt(prompt: str, language: str) -> str:
    return CODE_GENERATION_PROMPT.format(prompt=prompt, language=language).strip()


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the outermost JSON object embedded in a model reply, if any."""

    match = _JSON_OBJECT.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None
