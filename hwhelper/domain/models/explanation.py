"""Domain models for a step-by-step problem explanation."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .common import GradeLevel


class ExplanationFormatError(ValueError):
    """Raised when the AI reply cannot be turned into a ProblemExplanation."""
    pass


@dataclass
class ExplanationStep:
    """One step of the worked solution."""
    title: str
    description: str
    hint_question: Optional[str] = None
    hint: Optional[str] = None


@dataclass
class ProblemExplanation:
    """Grade-level-adapted explanation of a single homework problem."""
    problem_type: str
    overview: str
    steps: List[ExplanationStep]
    detailed_explanation: str
    solution: str
    grade_level: Optional[GradeLevel] = None
    model_name: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)
    is_fallback: bool = False # Built offline from a template, not by the AI model

    REQUIRED_FIELDS = ("problemType", "overview", "steps", "detailedExplanation", "solution")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProblemExplanation":
        """Builds an explanation from the camelCase JSON object the model returns.

        Raises:
            ExplanationFormatError: If a required field is missing or malformed.
        """
        if not isinstance(data, dict):
            raise ExplanationFormatError(f"Expected a JSON object, got {type(data).__name__}")

        missing = [name for name in cls.REQUIRED_FIELDS if not data.get(name)]
        if missing:
            raise ExplanationFormatError(f"Explanation is missing fields: {', '.join(missing)}")
        if not isinstance(data["steps"], list):
            raise ExplanationFormatError("'steps' must be a list")

        steps = []
        for index, raw_step in enumerate(data["steps"], start=1):
            if not isinstance(raw_step, dict) or not raw_step.get("title") or not raw_step.get("description"):
                raise ExplanationFormatError(f"Step {index} needs a title and a description")
            steps.append(ExplanationStep(
                title=str(raw_step["title"]),
                description=str(raw_step["description"]),
                hint_question=raw_step.get("hintQuestion") or None,
                hint=raw_step.get("hint") or None,
            ))

        known = set(cls.REQUIRED_FIELDS) | {"gradeLevel"}
        grade_level = data.get("gradeLevel")
        return cls(
            problem_type=str(data["problemType"]),
            overview=str(data["overview"]),
            steps=steps,
            detailed_explanation=str(data["detailedExplanation"]),
            solution=str(data["solution"]),
            grade_level=GradeLevel(str(grade_level)) if grade_level else None,
            extras={key: value for key, value in data.items() if key not in known},
        )
