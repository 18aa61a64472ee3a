"""Teacher remark generation via Gemini."""

import asyncio
import itertools
import logging
from typing import Any

from school_portal.core.config import settings
from school_portal.models.enums import PerformanceLevel
from school_portal.services.grading import classify

logger = logging.getLogger(__name__)

EMPTY_RESPONSE_REMARK = "Consistently demonstrates commitment to learning."
FAILURE_REMARK = "The learner is making steady progress in this area."

PROMPT_TEMPLATE = (
    "You are a teacher in a Kenyan Primary/Junior Secondary school following the CBC curriculum.\n"
    'The learner has achieved a score of {score}% in {subject}, which translates to "{level}".\n'
    "Write a constructive, professional 1-sentence teacher remark for the report card.\n"
    "Mention a specific strength or area for improvement based on the score.\n"
    "Keep it in Kenyan educational context. Do not include quotes."
)


def build_prompt(subject_name: str, score: int, level: PerformanceLevel) -> str:
    return PROMPT_TEMPLATE.format(subject=subject_name, score=score, level=level.value)


class RemarkGenerator:
    """Writes one-sentence report card remarks with a Gemini model.

    ``generate_remark`` never raises: a failed, timed out or unconfigured call
    returns a canned remark instead.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        timeout: float | None = None,
        model: Any = None,
    ):
        self.api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self.model_name = model_name or settings.GEMINI_MODEL
        self.timeout = settings.REMARK_TIMEOUT_SECONDS if timeout is None else timeout
        self._model = model

    def _get_model(self) -> Any:
        if self._model is None:
            if not self.api_key:
                return None
            import google.generativeai as genai

            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    async def generate_remark(self, subject_name: str, score: int, level: PerformanceLevel) -> str:
        """Generate a remark for a subject score, falling back on any failure."""
        try:
            model = self._get_model()
            if model is None:
                logger.warning("[REMARKS] GEMINI_API_KEY is not set, using fallback remark")
                return FAILURE_REMARK

            prompt = build_prompt(subject_name, score, level)
            response = await asyncio.wait_for(model.generate_content_async(prompt), timeout=self.timeout)
            text = (getattr(response, "text", None) or "").strip()
            if not text:
                return EMPTY_RESPONSE_REMARK
            return text
        except asyncio.TimeoutError:
            logger.error(f"[REMARKS] Timed out after {self.timeout}s for {subject_name}")
            return FAILURE_REMARK
        except Exception as e:
            logger.error(f"[REMARKS] Generation failed for {subject_name}: {e}")
            return FAILURE_REMARK


class RemarkDrafts:
    """Remarks being drafted on the marks-entry form, keyed by subject id.

    Each request gets a token; when two requests for the same subject overlap
    only the most recent one is applied, whatever order they finish in.
    """

    def __init__(self, generator: RemarkGenerator):
        self.generator = generator
        self.remarks: dict[str, str] = {}
        self._latest: dict[str, int] = {}
        self._tokens = itertools.count(1)

    def is_pending(self, subject_id: str) -> bool:
        return subject_id in self._latest

    async def request(self, subject_id: str, subject_name: str, score: int) -> str | None:
        """Generate and store a remark; returns None if there is no score or
        a newer request for the subject superseded this one."""
        if not score:
            return None

        token = next(self._tokens)
        self._latest[subject_id] = token
        text = await self.generator.generate_remark(subject_name, score, classify(score))

        if self._latest.get(subject_id) != token:
            logger.debug(f"[REMARKS] Dropping stale remark for {subject_id} (request {token})")
            return None
        del self._latest[subject_id]
        self.remarks[subject_id] = text
        return text
