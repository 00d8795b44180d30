import pytest
from normalizer import (
    normalize_course,
    normalize_courses,
    normalize_plan_code,
    normalize_status,
    parse_correlatives,
)


class TestNormalizePlanCode:
    def test_trims_and_uppercases(self):
        assert normalize_plan_code("  mat1 ") == "MAT1"

    def test_collapses_inner_whitespace(self):
        assert normalize_plan_code("mat   1") == "MAT 1"

    @pytest.mark.parametrize("raw", [None, "", "   ", "nan", "NaN"])
    def test_blank_is_none(self, raw):
        assert normalize_plan_code(raw) is None

    def test_numeric_code(self):
        assert normalize_plan_code(101) == "101"


class TestNormalizeStatus:
    @pytest.mark.parametrize("raw,expected", [
        ("approved", "APPROVED"),
        ("APPROVED", "APPROVED"),
        ("in progress", "IN_PROGRESS"),
        ("in-progress", "IN_PROGRESS"),
        ("Aprobada", "APPROVED"),
        ("EN_CURSO", "IN_PROGRESS"),
        ("en curso", "IN_PROGRESS"),
        ("Regularizada", "REGULARIZED"),
        ("recursada", "RETAKE"),
        ("equivalencia", "EQUIVALENCE"),
        ("pendiente", "PENDING"),
    ])
    def test_known_labels(self, raw, expected):
        assert normalize_status(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "dropped", "FAILED"])
    def test_unknown_is_none(self, raw):
        assert normalize_status(raw) is None


class TestParseCorrelatives:
    def test_semicolon_string(self):
        assert parse_correlatives("MAT1; prg1") == ["MAT1", "PRG1"]

    def test_comma_and_newline(self):
        assert parse_correlatives("MAT1,PRG1\nSYS1") == ["MAT1", "PRG1", "SYS1"]

    def test_list_input(self):
        assert parse_correlatives(["mat1", " PRG1 "]) == ["MAT1", "PRG1"]

    def test_duplicates_removed_in_order(self):
        assert parse_correlatives("B;A;b") == ["B", "A"]

    @pytest.mark.parametrize("raw", [None, "", "none", "None", "n/a", float("nan"), []])
    def test_empty_forms(self, raw):
        assert parse_correlatives(raw) == []

    def test_blank_tokens_skipped(self):
        assert parse_correlatives("MAT1;;  ;PRG1") == ["MAT1", "PRG1"]


class TestNormalizeCourse:
    def test_snake_case_record(self):
        course = normalize_course({
            "id": "c1",
            "plan_code": "mat1",
            "name": "Calculus I",
            "year": "1",
            "hours": 96,
            "status": "aprobada",
            "grade": "8",
            "correlative_ids": "",
            "is_optional": "no",
        })
        assert course["id"] == "c1"
        assert course["plan_code"] == "MAT1"
        assert course["year"] == 1
        assert course["status"] == "APPROVED"
        assert course["grade"] == 8.0
        assert course["correlative_ids"] == []
        assert course["is_optional"] is False

    def test_camel_case_keys(self):
        course = normalize_course({
            "id": "c2",
            "planCode": "MAT2",
            "correlatives": "MAT1",
            "isIntermediateDegree": True,
            "statusDate": "2024-03-01",
        })
        assert course["plan_code"] == "MAT2"
        assert course["correlative_ids"] == ["MAT1"]
        assert course["is_intermediate_degree"] is True
        assert course["status_date"] == "2024-03-01"

    def test_defaults(self):
        course = normalize_course({"plan_code": "x1"})
        assert course["id"] == "X1"
        assert course["name"] == "X1"
        assert course["status"] == "PENDING"
        assert course["year"] == 0
        assert course["hours"] == 0
        assert course["grade"] is None
        assert course["notes"] is None

    def test_plan_code_falls_back_to_id(self):
        assert normalize_course({"id": "alg"})["plan_code"] == "ALG"

    def test_unknown_status_becomes_pending(self):
        assert normalize_course({"id": "a", "status": "dropped"})["status"] == "PENDING"

    @pytest.mark.parametrize("val", ["si", "Sí", "yes", "true", "1", 1, True])
    def test_truthy_flags(self, val):
        assert normalize_course({"id": "a", "is_optional": val})["is_optional"] is True

    def test_bad_number_is_none(self):
        assert normalize_course({"id": "a", "grade": "eight"})["grade"] is None

    def test_needs_identity(self):
        with pytest.raises(ValueError):
            normalize_course({"name": "Nameless"})

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            normalize_course(["id", "a"])


class TestNormalizeCourses:
    def test_list(self):
        result = normalize_courses([{"id": "a"}, {"id": "b"}])
        assert [c["id"] for c in result] == ["a", "b"]

    def test_rejects_non_list(self):
        with pytest.raises(ValueError):
            normalize_courses({"id": "a"})
