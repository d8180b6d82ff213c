"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like problem
text, token counts, etc., ensuring consistency and type safety.
"""

from typing import NewType, TypedDict

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are strings at runtime.
ProblemText = NewType("ProblemText", str)      # Problem statement (e.g., OCR output)
GradeLevel = NewType("GradeLevel", str)        # 'elementary', 'middle', 'high', 'college'
MessageRole = NewType("MessageRole", str)      # 'user', 'assistant', 'system'

# --- Structured Data ---
class TokenUsage(TypedDict):
    """Represents token usage information from an AI call."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
