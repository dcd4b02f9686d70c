"""Data models for arithmetic word-problem records."""
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class ProblemType(str, Enum):
    """Problem families; DOS_OPERACIONES chains two of the simple ones."""
    PPT = "PPT"
    UVT = "UVT"
    COMPARACION = "COMPARACION"
    CAMBIO = "CAMBIO"
    DOS_OPERACIONES = "DOS_OPERACIONES"


class Sentinel(str, Enum):
    """Non-numeric values allowed where a numeric string is expected."""
    UNKNOWN = "?"  # the quantity to solve for
    PREVIOUS_RESULT = "RESULTADO_ANTERIOR"  # result of the first step


SIMPLE_TYPES = (ProblemType.PPT, ProblemType.UVT, ProblemType.COMPARACION, ProblemType.CAMBIO)

# data/labels keys per simple type; the last key is the result
TYPE_KEYS: dict[ProblemType, tuple[str, str, str]] = {
    ProblemType.PPT: ("p1", "p2", "t"),
    ProblemType.UVT: ("u", "v", "t"),
    ProblemType.COMPARACION: ("cm", "cmen", "d"),
    ProblemType.CAMBIO: ("ci", "c", "cf"),
}

DEFAULT_LABELS: dict[ProblemType, dict[str, str]] = {
    ProblemType.PPT: {"p1": "Parte 1", "p2": "Parte 2", "t": "Total"},
    ProblemType.UVT: {"u": "Unidad", "v": "Veces", "t": "Total"},
    ProblemType.COMPARACION: {"cm": "Cantidad mayor", "cmen": "Cantidad menor", "d": "Diferencia"},
    ProblemType.CAMBIO: {"ci": "Cantidad inicial", "c": "Cambio", "cf": "Cantidad final"},
}

OPERATIONS = ("+", "-", "*", "/")
Operation = Literal["+", "-", "*", "/"]

MAX_STEPS = 2


def result_key(problem_type: ProblemType) -> str:
    return TYPE_KEYS[problem_type][-1]


class Step(BaseModel):
    """One operation of a two-step problem."""
    type: ProblemType = ProblemType.PPT
    data: dict[str, str]
    labels: dict[str, str]
    operation: Operation = "+"
    answer: str = ""
    hint: str = ""


class ProblemBase(BaseModel):
    """Fields shared by every problem record. Unknown fields are kept."""
    model_config = ConfigDict(extra="allow")

    id: str
    grade: int = Field(ge=1, le=6)
    type: ProblemType
    question: str = ""
    answer: str = ""
    fullAnswer: str = ""
    hint: str = ""
    logicCheck: str = ""
    createdAt: int  # epoch milliseconds


class SimpleProblem(ProblemBase):
    """A single-operation problem (PPT, UVT, COMPARACION or CAMBIO)."""
    data: dict[str, str]
    labels: dict[str, str]
    operation: Operation = "+"


class TwoStepProblem(ProblemBase):
    """A DOS_OPERACIONES problem; its quantities live in ``steps``."""
    type: Literal[ProblemType.DOS_OPERACIONES] = ProblemType.DOS_OPERACIONES
    steps: list[Step] = Field(default_factory=list, max_length=MAX_STEPS)


ProblemRecord = Union[SimpleProblem, TwoStepProblem]


class GenerateRequest(BaseModel):
    """Generation request after clamping."""
    grade: int = Field(default=1, ge=1, le=6)
    type: str = ProblemType.PPT.value
    theme: str = ""
    count: int = Field(default=1, ge=1, le=10)
