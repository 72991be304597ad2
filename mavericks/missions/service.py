"""
Daily mission cache resolver
One problem body per date, starter code generated lazily per language
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import Dict, List, Optional, Set
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from mavericks.core.config import PROGRAMMING_LANGUAGES
from mavericks.core.errors import ContentGenerationError, StoreError
from mavericks.missions.models import (
    CodeExecutionResult,
    DailyMissionRecord,
    MissionBody,
    ProgrammingQuestion,
    SolutionEvaluation,
)
from mavericks.store.document_store import DocumentStore

logger = logging.getLogger(__name__)

MISSIONS = "daily_missions"


def mission_date(now: Optional[datetime] = None, tz_name: str = "Asia/Kolkata") -> str:
    """Today's mission key, YYYY-MM-DD in the mission timezone"""
    tz = ZoneInfo(tz_name)
    now = now.astimezone(tz) if now else datetime.now(tz)
    return now.strftime("%Y-%m-%d")


def _test_cases_json(question: MissionBody, visible_only: bool = False) -> str:
    return json.dumps([
        {"input": tc.input, "expected_output": tc.expected_output}
        for tc in question.test_cases
        if not (visible_only and tc.hidden)
    ])


class MissionCacheResolver:
    """
    Resolves (date, language) to a full programming question.

    enrichment="background": a cache miss writes the record with the requested
    language only, returns, and fills the other languages in a tracked task.
    enrichment="blocking": a cache miss waits for every language before writing
    the record and returning.
    """

    def __init__(
        self,
        store: DocumentStore,
        provider,
        languages: Optional[List[str]] = None,
        enrichment: str = "background",
    ):
        self.store = store
        self.provider = provider
        self.languages = list(languages or PROGRAMMING_LANGUAGES)
        self.enrichment = enrichment
        self._enrichment_tasks: Set[asyncio.Task] = set()

    async def resolve_mission(self, date: str, language: str) -> ProgrammingQuestion:
        doc = await self.store.get(MISSIONS, date)

        if doc is None:
            return await self._create_mission(date, language)

        record = DailyMissionRecord.model_validate(doc)
        if record.starter_codes.get(language):
            return record.question_for(language)

        # Known problem, new language: only the starter code is generated
        body = record.body()
        starter_code = await self.generate_starter_code(body, language)
        written = await self.store.set_field_if_absent(MISSIONS, date, f"starter_codes.{language}", starter_code)
        if not written:
            latest = await self.store.get(MISSIONS, date) or {}
            starter_code = latest.get("starter_codes", {}).get(language) or starter_code

        return ProgrammingQuestion(**body.model_dump(), starter_code=starter_code)

    async def _create_mission(self, date: str, language: str) -> ProgrammingQuestion:
        logger.info("Generating new mission for %s (%s)", date, language)
        raw = await self.provider.generate("daily_mission", {"date": date, "language": language})
        try:
            question = ProgrammingQuestion.model_validate(raw)
        except ValidationError as e:
            raise ContentGenerationError(f"Daily mission for {date} did not match the question shape") from e

        body = question.body()
        starter_codes = {language: question.starter_code}
        other_languages = [lang for lang in self.languages if lang != language]

        if self.enrichment == "blocking":
            starter_codes.update(await self._generate_many(body, other_languages))
            await self.store.set(MISSIONS, date, {**body.model_dump(), "starter_codes": starter_codes})
        else:
            await self.store.set(MISSIONS, date, {**body.model_dump(), "starter_codes": starter_codes})
            self._spawn(self._enrich(date, body, other_languages))

        return question

    async def generate_starter_code(self, body: MissionBody, language: str) -> str:
        raw = await self.provider.generate("starter_code", {
            "question_text": body.question_text,
            "description": body.description,
            "language": language,
        })
        starter_code = raw.get("starter_code") if isinstance(raw, dict) else None
        if not isinstance(starter_code, str) or not starter_code.strip():
            raise ContentGenerationError(f"No starter code returned for {language}")
        return starter_code

    async def _generate_many(self, body: MissionBody, languages: List[str]) -> Dict[str, str]:
        """Starter code for each language; failed languages are left out"""
        results = await asyncio.gather(
            *(self.generate_starter_code(body, lang) for lang in languages),
            return_exceptions=True,
        )
        codes = {}
        for lang, result in zip(languages, results):
            if isinstance(result, BaseException):
                logger.warning("Failed to generate starter code for %s: %s", lang, result)
                continue
            codes[lang] = result
        return codes

    async def _enrich(self, date: str, body: MissionBody, languages: List[str]) -> None:
        codes = await self._generate_many(body, languages)
        for lang, code in codes.items():
            try:
                await self.store.set_field_if_absent(MISSIONS, date, f"starter_codes.{lang}", code)
            except StoreError as e:
                logger.warning("Could not cache %s starter code for %s: %s", lang, date, e)
        logger.info("Mission %s enriched with %d/%d languages", date, len(codes), len(languages))

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._enrichment_tasks.add(task)
        task.add_done_callback(self._enrichment_tasks.discard)

    async def wait_for_enrichment(self) -> None:
        """Wait for in-flight background enrichment (used at shutdown and in tests)"""
        while self._enrichment_tasks:
            await asyncio.gather(*list(self._enrichment_tasks), return_exceptions=True)


async def run_mission_code(provider, code: str, language: str, question: MissionBody) -> CodeExecutionResult:
    """Quick check against the visible test cases only"""
    raw = await provider.generate("judge_code", {
        "language": language,
        "code": code,
        "test_cases": _test_cases_json(question, visible_only=True),
    })
    try:
        test_results = raw.get("test_results") or []
        error = raw.get("error") or None
        success = error is None and all(r.get("passed") for r in test_results)
        return CodeExecutionResult(success=success, error=error, test_results=test_results)
    except (AttributeError, ValidationError) as e:
        raise ContentGenerationError("Judge returned an unexpected result") from e


async def evaluate_solution(provider, question: MissionBody, code: str, language: str) -> SolutionEvaluation:
    """Full evaluation over every test case"""
    raw = await provider.generate("evaluate_solution", {
        "language": language,
        "question_text": question.question_text,
        "description": question.description,
        "code": code,
        "test_cases": _test_cases_json(question),
    })
    try:
        evaluation = SolutionEvaluation.model_validate(raw)
    except ValidationError as e:
        raise ContentGenerationError("Evaluation returned an unexpected result") from e
    if evaluation.error == "":
        evaluation.error = None
    return evaluation


async def explain_concept(provider, concept: str) -> str:
    """One or two sentence hint for the concept behind a question"""
    raw = await provider.generate("concept_explanation", {"concept": concept})
    explanation = raw.get("explanation") if isinstance(raw, dict) else None
    if not isinstance(explanation, str) or not explanation.strip():
        raise ContentGenerationError("No explanation returned")
    return explanation.strip()
