import pytest
from progress import search_courses, summarize_progress


def _course(cid, status="PENDING", hours=100, grade=None, **extra):
    return {
        "id": cid,
        "plan_code": cid.upper(),
        "name": extra.pop("name", f"Course {cid}"),
        "year": 1,
        "hours": hours,
        "status": status,
        "grade": grade,
        "correlative_ids": [],
        "is_optional": extra.pop("is_optional", False),
        "is_intermediate_degree": extra.pop("is_intermediate_degree", False),
    }


@pytest.fixture
def transcript():
    return [
        _course("a", "APPROVED", grade=8, is_intermediate_degree=True),
        _course("b", "EQUIVALENCE", is_intermediate_degree=True),
        _course("c", "IN_PROGRESS", is_intermediate_degree=True),
        _course("d", "AVAILABLE"),
        _course("e", "PENDING", is_optional=True),
        _course("f", "REGULARIZED", is_optional=True),
    ]


class TestSummarizeProgress:
    def test_total_scope(self, transcript):
        summary = summarize_progress(transcript)
        # e is optional and untouched, so it is left out.
        assert summary["total_courses"] == 5
        assert summary["completed_courses"] == 2
        assert summary["completion_percentage"] == 40
        assert summary["total_hours"] == 500
        assert summary["completed_hours"] == 200
        assert summary["checkpoints_reached"] == [25]

    def test_average_ignores_missing_and_zero_grades(self, transcript):
        transcript.append(_course("g", "APPROVED", grade=0))
        transcript.append(_course("h", "APPROVED", grade=9.5))
        assert summarize_progress(transcript)["average_grade"] == 8.75

    def test_average_none_without_grades(self):
        assert summarize_progress([_course("a")])["average_grade"] is None

    def test_equivalence_counted_as_approved(self, transcript):
        counts = summarize_progress(transcript)["status_counts"]
        assert counts["APPROVED"] == 2
        assert "EQUIVALENCE" not in counts
        assert counts["REGULARIZED"] == 1
        assert counts["PENDING"] == 0

    def test_intermediate_scope(self, transcript):
        summary = summarize_progress(transcript, scope="intermediate")
        assert summary["scope"] == "INTERMEDIATE"
        assert summary["total_courses"] == 3
        assert summary["completed_courses"] == 2
        assert summary["completion_percentage"] == 67
        assert summary["checkpoints_reached"] == [25, 50]

    def test_min_total_pins_denominator(self, transcript):
        summary = summarize_progress(transcript, min_total=20)
        assert summary["total_courses"] == 20
        assert summary["completion_percentage"] == 10

    def test_min_total_never_shrinks(self, transcript):
        assert summarize_progress(transcript, min_total=2)["total_courses"] == 5

    def test_empty(self):
        summary = summarize_progress([])
        assert summary["completion_percentage"] == 0
        assert summary["checkpoints_reached"] == []

    def test_everything_done(self):
        summary = summarize_progress([_course("a", "APPROVED", grade=7)])
        assert summary["completion_percentage"] == 100
        assert summary["checkpoints_reached"] == [25, 50, 75, 100]

    def test_bad_scope(self):
        with pytest.raises(ValueError):
            summarize_progress([], scope="YEARLY")


class TestSearchCourses:
    @pytest.fixture
    def catalog(self):
        return [
            _course("mat1", name="Calculus I"),
            _course("mat2", name="Calculus II"),
            _course("prg1", name="Programming I"),
        ]

    def test_matches_name(self, catalog):
        assert [c["id"] for c in search_courses(catalog, "calc")] == ["mat1", "mat2"]

    def test_matches_plan_code(self, catalog):
        assert [c["id"] for c in search_courses(catalog, "PRG")] == ["prg1"]

    def test_limit(self, catalog):
        assert len(search_courses(catalog, "i", limit=2)) == 2

    def test_blank_query(self, catalog):
        assert search_courses(catalog, "   ") == []
        assert search_courses(catalog, None) == []
