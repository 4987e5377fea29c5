from pydantic import Field
from typing import Optional, Tuple
from enum import Enum

from dissertrack.schemas.meeting import CamelModel


class EvaluationType(str, Enum):
    MID_TERM = "mid-term"
    FINAL = "final"


# (lower bound, letter, description), highest band first
GRADE_BANDS: Tuple[Tuple[float, str, str], ...] = (
    (90, "A", "Excellent"),
    (80, "B", "Good"),
    (70, "C", "Satisfactory"),
    (60, "D", "Passing"),
)
FAILING_GRADE = ("F", "Failing")


def grade_for(average: float) -> Tuple[str, str]:
    """Return (letter, description) for an average score"""
    for lower, letter, description in GRADE_BANDS:
        if average >= lower:
            return letter, description
    return FAILING_GRADE


class Evaluation(CamelModel):
    presentation_score: int = Field(0, ge=0, le=100)
    content_score: int = Field(0, ge=0, le=100)
    research_score: int = Field(0, ge=0, le=100)
    innovation_score: int = Field(0, ge=0, le=100)
    implementation_score: int = Field(0, ge=0, le=100)
    comments: str = ""
    evaluation_type: EvaluationType = EvaluationType.MID_TERM
    project_id: Optional[str] = None
    student_id: Optional[str] = None
    evaluator_id: Optional[str] = None

    @property
    def scores(self) -> Tuple[int, int, int, int, int]:
        return (
            self.presentation_score,
            self.content_score,
            self.research_score,
            self.innovation_score,
            self.implementation_score,
        )

    @property
    def total(self) -> int:
        return sum(self.scores)

    @property
    def average(self) -> float:
        return round(self.total / len(self.scores), 1)

    @property
    def grade(self) -> str:
        return grade_for(self.total / len(self.scores))[0]

    @property
    def grade_description(self) -> str:
        return grade_for(self.total / len(self.scores))[1]
