from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from mavericks.core.config import PROGRAMMING_LANGUAGES


class QuestionType(str, Enum):
    MCQ = "MCQ"
    PROGRAMMING = "PROGRAMMING"


class TestCase(BaseModel):
    input: str
    expected_output: str
    hidden: bool = False


class MissionBody(BaseModel):
    """Problem text shared by every language of a day's mission"""
    question_text: str
    description: str
    constraints: List[str] = []
    test_cases: List[TestCase] = []

    def body(self) -> "MissionBody":
        """The shared problem fields only, without any per-language extras"""
        return MissionBody(
            question_text=self.question_text,
            description=self.description,
            constraints=self.constraints,
            test_cases=self.test_cases,
        )


class ProgrammingQuestion(MissionBody):
    type: QuestionType = QuestionType.PROGRAMMING
    starter_code: str = ""


class DailyMissionRecord(MissionBody):
    """Cached mission for one date; only starter_codes grows after creation"""
    starter_codes: Dict[str, str] = {}

    def question_for(self, language: str) -> ProgrammingQuestion:
        return ProgrammingQuestion(
            question_text=self.question_text,
            description=self.description,
            constraints=self.constraints,
            test_cases=self.test_cases,
            starter_code=self.starter_codes[language],
        )


def check_language(value: str) -> str:
    if value not in PROGRAMMING_LANGUAGES:
        raise ValueError(f"Language must be one of: {PROGRAMMING_LANGUAGES}")
    return value


# ==================== API MODELS ====================

class TestResult(BaseModel):
    passed: bool
    input: str
    output: str
    expected: str


class CodeExecutionResult(BaseModel):
    success: bool
    error: Optional[str] = None
    test_results: List[TestResult] = []


class SolutionEvaluation(BaseModel):
    test_results: List[TestResult] = []
    error: Optional[str] = None
    time_complexity: str
    space_complexity: str
    feedback: str
    better_approach_suggestion: Optional[str] = None


class MissionCodeRequest(BaseModel):
    date: Optional[str] = None
    language: str
    code: str

    @field_validator("language")
    @classmethod
    def validate_language(cls, v):
        return check_language(v)


class MissionProgressUpdate(BaseModel):
    date: Optional[str] = None
    language: str
    code: str = ""
    completed: bool = False

    @field_validator("language")
    @classmethod
    def validate_language(cls, v):
        return check_language(v)


class MissionProgress(BaseModel):
    date: str
    language: str
    code: str = ""
    completed: bool = False


class ProgressResult(BaseModel):
    progress: MissionProgress
    xp_awarded: int = Field(0, ge=0)
    xp: int = 0
    level: int = 1
