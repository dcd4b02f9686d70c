"""Coerce loosely structured model output into problem records."""
import random
import re
import string
import time
from typing import Any

from .prompts import MAX_GRADE, MIN_GRADE, clamp
from .schema import (
    DEFAULT_LABELS,
    MAX_STEPS,
    OPERATIONS,
    SIMPLE_TYPES,
    TYPE_KEYS,
    ProblemRecord,
    ProblemType,
    Sentinel,
    SimpleProblem,
    Step,
    TwoStepProblem,
    result_key,
)

ID_ALPHABET = string.ascii_lowercase + string.digits
NON_NUMERIC = re.compile(r"[^0-9.?\-]")
TEXT_FIELDS = ("question", "fullAnswer", "hint", "logicCheck")
SENTINELS = {s.value for s in Sentinel}


def gen_id() -> str:
    """Short random id such as ``k3x9q0ab-7fz2``."""
    head = "".join(random.choices(ID_ALPHABET, k=8))
    tail = "".join(random.choices(ID_ALPHABET, k=4))
    return f"{head}-{tail}"


def now_ms() -> int:
    return int(time.time() * 1000)


def coerce_numeric(value: Any) -> str:
    """Turn ``value`` into a numeric string, keeping the sentinels as they are.

    >>> coerce_numeric("12,5"), coerce_numeric("$12"), coerce_numeric("?")
    ('12.5', '12', '?')
    """
    if value is None or isinstance(value, bool):
        return ""
    text = str(value).strip()
    if text in SENTINELS:
        return text
    return NON_NUMERIC.sub("", text.replace(",", ".", 1))


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _parse_type(value: Any) -> ProblemType | None:
    try:
        return ProblemType(str(value).strip().upper())
    except ValueError:
        return None


def _operation(value: Any) -> str:
    return value if value in OPERATIONS else "+"


def _shape_data(problem_type: ProblemType, data: Any) -> dict[str, str]:
    data = _as_dict(data)
    shaped = {}
    for key in TYPE_KEYS[problem_type]:
        value = data.get(key)
        if value is None and key == result_key(problem_type):
            value = Sentinel.UNKNOWN.value
        shaped[key] = coerce_numeric(value)
    return shaped


def _shape_labels(problem_type: ProblemType, labels: Any) -> dict[str, str]:
    labels = _as_dict(labels)
    defaults = DEFAULT_LABELS[problem_type]
    shaped = {}
    for key in TYPE_KEYS[problem_type]:
        label = labels.get(key)
        shaped[key] = label.strip() if isinstance(label, str) and label.strip() else defaults[key]
    return shaped


def normalize_step(raw: Any) -> Step:
    raw = _as_dict(raw)
    step_type = _parse_type(raw.get("type") or ProblemType.PPT.value)
    if step_type not in SIMPLE_TYPES:
        step_type = ProblemType.PPT
    return Step(
        type=step_type,
        data=_shape_data(step_type, raw.get("data")),
        labels=_shape_labels(step_type, raw.get("labels")),
        operation=_operation(raw.get("operation")),
        answer=coerce_numeric(raw.get("answer")),
        hint=_text(raw.get("hint")),
    )


def normalize_problem(raw: Any, grade: int, type: str) -> ProblemRecord:
    """Map any parsed object onto a SimpleProblem or TwoStepProblem.

    Missing or invalid fields are replaced by defaults; ``grade`` and
    ``type`` from the request are the fallbacks for the record's own.
    Never raises.
    """
    out = dict(_as_dict(raw))

    if not out.get("id"):
        out["id"] = gen_id()
    else:
        out["id"] = _text(out["id"])

    created = out.get("createdAt")
    valid_created = isinstance(created, (int, float)) and not isinstance(created, bool) and 0 < created < 1e16
    out["createdAt"] = int(created) if valid_created else now_ms()

    fallback_grade = clamp(grade, MIN_GRADE, MAX_GRADE, MIN_GRADE)
    record_grade = out.get("grade")
    out["grade"] = fallback_grade if record_grade is None else clamp(record_grade, MIN_GRADE, MAX_GRADE, fallback_grade)

    problem_type = _parse_type(out.get("type") or type) or _parse_type(type) or ProblemType.PPT
    out["type"] = problem_type

    for field in TEXT_FIELDS:
        out[field] = _text(out.get(field))
    out["answer"] = coerce_numeric(out.get("answer"))

    if problem_type is ProblemType.DOS_OPERACIONES:
        steps = out.get("steps")
        steps = steps[:MAX_STEPS] if isinstance(steps, list) else []
        out["steps"] = [normalize_step(s) for s in steps]
        for field in ("data", "labels", "operation"):
            out.pop(field, None)
        return TwoStepProblem(**out)

    out.pop("steps", None)
    out["data"] = _shape_data(problem_type, out.get("data"))
    out["labels"] = _shape_labels(problem_type, out.get("labels"))
    out["operation"] = _operation(out.get("operation"))
    return SimpleProblem(**out)


def normalize_problems(raw_items: list[Any], grade: int, type: str, count: int | None = None) -> list[dict]:
    """Normalize a batch and dump each record to plain JSON-ready dicts."""
    items = raw_items if count is None else raw_items[:count]
    return [normalize_problem(item, grade, type).model_dump(mode="json") for item in items]
