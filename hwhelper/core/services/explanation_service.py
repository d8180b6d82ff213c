"""Application service producing step-by-step explanations of homework problems.

Every model call goes through the shared SerialRequestQueue, so concurrent
users never hit the AI API at the same time. With ``use_fallback`` enabled an
offline template explanation stands in when there is no model or the call fails.
"""

import json
import logging
from typing import List, Optional

from hwhelper.core.services.fallback_explainer import fallback_explanation
from hwhelper.domain.interfaces.ai_model import AIModel
from hwhelper.domain.models.ai import ChatMessage, StructuredAIResponse
from hwhelper.domain.models.common import GradeLevel, MessageRole, ProblemText
from hwhelper.domain.models.explanation import ExplanationFormatError, ProblemExplanation
from hwhelper.infrastructure.resilience.request_queue import SerialRequestQueue

logger = logging.getLogger(__name__)

GRADE_LEVELS = ("elementary", "middle", "high", "college")

SYSTEM_PROMPT = (
    "You are an expert educational tutor. Identify the grade level a problem is "
    "appropriate for and tailor the vocabulary and depth of your explanation to it."
)

RESPONSE_SHAPE = """Reply with a JSON object of this shape:
{
  "gradeLevel": "elementary | middle | high | college",
  "problemType": "short description of the problem type",
  "overview": "how to approach the problem",
  "steps": [{"title": "...", "description": "...", "hintQuestion": "optional", "hint": "optional"}],
  "detailedExplanation": "how this connects to broader concepts",
  "solution": "the final answer with work shown"
}"""


class ExplanationService:
    """Turns problem text into a ProblemExplanation via the queued AI model."""

    def __init__(
        self,
        ai_model: Optional[AIModel],
        request_queue: Optional[SerialRequestQueue],
        request_timeout: Optional[float] = None,
        use_fallback: bool = False,
    ):
        if (ai_model is None) != (request_queue is None):
            raise ValueError("ai_model and request_queue must be given together")
        self.ai_model = ai_model
        self.request_queue = request_queue
        self.request_timeout = request_timeout
        self.use_fallback = use_fallback

    def build_messages(self, problem_text: ProblemText, grade_level: Optional[GradeLevel] = None) -> List[ChatMessage]:
        if grade_level:
            audience = f"The student is at the {grade_level} level; explain for that level."
        else:
            audience = "First assess the approximate grade level, then explain for that level."
        user_prompt = f'Analyze this homework problem: "{problem_text}"\n\n{audience}\n\n{RESPONSE_SHAPE}'
        return [
            {'role': MessageRole('system'), 'content': SYSTEM_PROMPT},
            {'role': MessageRole('user'), 'content': user_prompt},
        ]

    async def explain(self, problem_text: str, grade_level: Optional[str] = None) -> ProblemExplanation:
        """Explains ``problem_text`` step by step.

        When ``use_fallback`` is set, every error below except ValueError is
        logged and an offline explanation is returned instead.

        Raises:
            ValueError: If the problem text is empty or the grade level is unknown.
            RuntimeError: If no AI model is configured.
            ExplanationFormatError: If the model reply is not a usable explanation.
            asyncio.TimeoutError: If a request timeout is set and exceeded.
            Exception: The AI client's error once the queue gives up on it.
        """
        text = (problem_text or "").strip()
        if not text:
            raise ValueError("Problem text is empty.")
        level = grade_level.strip().lower() if grade_level else None
        if level and level not in GRADE_LEVELS:
            raise ValueError(f"Unknown grade level '{grade_level}'. Expected one of: {', '.join(GRADE_LEVELS)}")

        if self.ai_model is None:
            if not self.use_fallback:
                raise RuntimeError("No AI model configured and the offline fallback is disabled.")
            logger.warning("No AI model configured, using the offline explanation")
            return fallback_explanation(text)

        try:
            explanation = await self._explain_with_model(text, level)
        except Exception as e:
            if not self.use_fallback:
                raise
            logger.error(f"AI explanation failed, using the offline explanation: {type(e).__name__}: {e}")
            return fallback_explanation(text)

        if level and not explanation.grade_level:
            explanation.grade_level = GradeLevel(level)
        logger.info(f"Explanation ready: type='{explanation.problem_type}', grade={explanation.grade_level}, steps={len(explanation.steps)}")
        return explanation

    async def _explain_with_model(self, text: str, level: Optional[str]) -> ProblemExplanation:
        messages = self.build_messages(ProblemText(text), GradeLevel(level) if level else None)

        async def call_model() -> StructuredAIResponse:
            return await self.ai_model.send_messages(messages, response_format="json_object")

        logger.info(f"Queueing explanation request ({len(text)} chars, pending={self.request_queue.pending_count})")
        response = await self.request_queue.submit_with_timeout(call_model, self.request_timeout)
        return self.parse_response(response)

    @staticmethod
    def parse_response(response: StructuredAIResponse) -> ProblemExplanation:
        content = (response.content or "").strip()
        if not content:
            raise ExplanationFormatError("No content returned from the AI model")
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.debug(f"Unparseable model reply: {content[:200]}")
            raise ExplanationFormatError(f"AI reply is not valid JSON: {e}") from e
        explanation = ProblemExplanation.from_dict(data)
        explanation.model_name = response.model_name
        return explanation
