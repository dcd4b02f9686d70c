import re

import pytest

from backend.generation.normalizer import coerce_numeric, gen_id, normalize_problem, normalize_problems
from backend.generation.schema import ProblemType, SimpleProblem, TwoStepProblem


@pytest.mark.parametrize(
    "value, expected",
    [
        ("12,5", "12.5"),
        ("$12", "12"),
        ("?", "?"),
        ("RESULTADO_ANTERIOR", "RESULTADO_ANTERIOR"),
        (" 7 ", "7"),
        (15, "15"),
        (2.5, "2.5"),
        ("-3 €", "-3"),
        (None, ""),
    ],
)
def test_coerce_numeric(value, expected):
    assert coerce_numeric(value) == expected


def test_gen_id_shape():
    assert re.fullmatch(r"[a-z0-9]{8}-[a-z0-9]{4}", gen_id())


def test_simple_problem_is_reshaped_to_type_keys():
    raw = {
        "question": "Hay 5 rojas y 3 azules.",
        "type": "ppt",
        "data": {"p1": 5, "p2": "3", "extra": "9"},
        "labels": {"p1": "Rojas"},
        "operation": "x",
        "answer": "8 bolas",
    }

    record = normalize_problem(raw, grade=2, type="PPT")

    assert isinstance(record, SimpleProblem)
    assert record.type is ProblemType.PPT
    assert record.grade == 2
    assert record.data == {"p1": "5", "p2": "3", "t": "?"}
    assert record.labels == {"p1": "Rojas", "p2": "Parte 2", "t": "Total"}
    assert record.operation == "+"
    assert record.answer == "8"
    assert record.id
    assert record.createdAt > 0


def test_keeps_existing_id_created_at_and_extra_fields():
    raw = {"id": "fixed-id", "createdAt": 1700000000000, "type": "UVT", "source": "gemini"}

    dumped = normalize_problem(raw, grade=3, type="UVT").model_dump(mode="json")

    assert dumped["id"] == "fixed-id"
    assert dumped["createdAt"] == 1700000000000
    assert dumped["source"] == "gemini"
    assert dumped["data"] == {"u": "", "v": "", "t": "?"}


def test_type_and_grade_fall_back_to_request():
    record = normalize_problem({"type": "MULTIPLICACION"}, grade=5, type="comparacion")
    assert record.type is ProblemType.COMPARACION
    assert record.grade == 5
    assert set(record.data) == {"cm", "cmen", "d"}

    record = normalize_problem({}, grade=4, type="NOPE")
    assert record.type is ProblemType.PPT

    record = normalize_problem({"grade": "9"}, grade=2, type="CAMBIO")
    assert record.grade == 6


def test_non_dict_input_still_yields_a_record():
    record = normalize_problem("basura", grade=1, type="CAMBIO")
    assert isinstance(record, SimpleProblem)
    assert record.data == {"ci": "", "c": "", "cf": "?"}


def test_two_step_problem_has_at_most_two_steps_and_no_top_level_data():
    raw = {
        "type": "DOS_OPERACIONES",
        "question": "Compra 3 packs de 4 y regala 5.",
        "data": {"p1": "1"},
        "labels": {"p1": "x"},
        "operation": "+",
        "steps": [
            {"type": "uvt", "data": {"u": "4", "v": "3"}, "operation": "*", "answer": "12"},
            {"type": "CAMBIO", "data": {"ci": "RESULTADO_ANTERIOR", "c": "5"}, "operation": "-", "answer": "7"},
            {"type": "PPT", "data": {"p1": "1", "p2": "1"}},
        ],
    }

    record = normalize_problem(raw, grade=4, type="DOS_OPERACIONES")
    dumped = record.model_dump(mode="json")

    assert isinstance(record, TwoStepProblem)
    assert len(record.steps) == 2
    assert "data" not in dumped
    assert "labels" not in dumped
    assert "operation" not in dumped

    first, second = dumped["steps"]
    assert first["type"] == "UVT"
    assert first["data"] == {"u": "4", "v": "3", "t": "?"}
    assert first["labels"] == {"u": "Unidad", "v": "Veces", "t": "Total"}
    assert first["operation"] == "*"
    assert second["data"] == {"ci": "RESULTADO_ANTERIOR", "c": "5", "cf": "?"}
    assert second["operation"] == "-"


def test_two_step_steps_default_and_invalid_step_type():
    record = normalize_problem({"type": "DOS_OPERACIONES"}, grade=4, type="PPT")
    assert isinstance(record, TwoStepProblem)
    assert record.steps == []

    record = normalize_problem(
        {"steps": [{"type": "DOS_OPERACIONES", "operation": "%"}, {}]}, grade=4, type="DOS_OPERACIONES"
    )
    assert [s.type for s in record.steps] == [ProblemType.PPT, ProblemType.PPT]
    assert record.steps[0].operation == "+"


@pytest.mark.parametrize(
    "raw",
    [
        {"type": "PPT", "data": {"p1": "3,5", "p2": "$2"}, "labels": {"t": " Suma "}, "answer": "?"},
        {"type": "COMPARACION", "data": {"cm": 10, "cmen": 4, "d": "6"}, "operation": "-"},
        {
            "type": "DOS_OPERACIONES",
            "steps": [
                {"type": "PPT", "data": {"p1": "2", "p2": "3"}},
                {"type": "UVT", "data": {"u": "RESULTADO_ANTERIOR", "v": "2"}, "operation": "*"},
            ],
        },
    ],
)
def test_normalization_is_idempotent(raw):
    once = normalize_problem(raw, grade=3, type="PPT").model_dump(mode="json")
    twice = normalize_problem(once, grade=3, type="PPT").model_dump(mode="json")
    assert twice == once


def test_normalize_problems_respects_count():
    items = [{"type": "PPT"}, {"type": "UVT"}, {"type": "CAMBIO"}]
    out = normalize_problems(items, grade=1, type="PPT", count=2)
    assert [p["type"] for p in out] == ["PPT", "UVT"]
