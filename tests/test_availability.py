import pytest
from availability import apply_course_patch, passed_codes, recalculate_availability
from policy import UNLOCKING_STATUSES


def _course(cid, status="PENDING", correlatives=None, **extra):
    return {
        "id": cid,
        "plan_code": cid.upper(),
        "name": f"Course {cid}",
        "year": 1,
        "hours": 64,
        "status": status,
        "grade": extra.pop("grade", None),
        "correlative_ids": list(correlatives or []),
        "is_optional": False,
        "is_intermediate_degree": False,
        **extra,
    }


def _status(courses, cid):
    return next(c["status"] for c in courses if c["id"] == cid)


class TestPassedCodes:
    def test_collects_unlocking_statuses(self):
        courses = [
            _course("a", "APPROVED", grade=8),
            _course("b", "REGULARIZED"),
            _course("c", "IN_PROGRESS"),
            _course("d", "RETAKE"),
            _course("e", "EQUIVALENCE"),
            _course("f", "PENDING"),
            _course("g", "AVAILABLE"),
        ]
        assert passed_codes(courses) == {"A", "B", "C", "D", "E"}

    def test_policy_set_is_the_documented_union(self):
        assert UNLOCKING_STATUSES == {"REGULARIZED", "APPROVED", "EQUIVALENCE", "RETAKE", "IN_PROGRESS"}


class TestRecalculateAvailability:
    def test_no_correlatives_becomes_available(self):
        result = recalculate_availability([_course("a"), _course("b", "AVAILABLE")])
        assert _status(result, "a") == "AVAILABLE"
        assert _status(result, "b") == "AVAILABLE"

    def test_unlocked_by_approved_prereq(self):
        courses = [_course("a", "APPROVED", grade=7), _course("b", correlatives=["A"])]
        assert _status(recalculate_availability(courses), "b") == "AVAILABLE"

    def test_locked_when_prereq_pending(self):
        courses = [_course("a"), _course("b", correlatives=["A"])]
        result = recalculate_availability(courses)
        assert _status(result, "a") == "AVAILABLE"
        assert _status(result, "b") == "PENDING"

    def test_available_reverts_to_pending(self):
        courses = [_course("a"), _course("b", "AVAILABLE", correlatives=["A"])]
        assert _status(recalculate_availability(courses), "b") == "PENDING"

    @pytest.mark.parametrize("status", ["REGULARIZED", "IN_PROGRESS", "RETAKE", "EQUIVALENCE"])
    def test_broad_unlocking_statuses(self, status):
        courses = [_course("a", status), _course("b", correlatives=["A"])]
        assert _status(recalculate_availability(courses), "b") == "AVAILABLE"

    def test_needs_every_correlative(self):
        courses = [
            _course("a", "APPROVED", grade=9),
            _course("b"),
            _course("c", correlatives=["A", "B"]),
        ]
        assert _status(recalculate_availability(courses), "c") == "PENDING"

    def test_dangling_correlative_keeps_course_locked(self):
        courses = [_course("a", correlatives=["GHOST"])]
        assert _status(recalculate_availability(courses), "a") == "PENDING"

    @pytest.mark.parametrize("status", ["IN_PROGRESS", "REGULARIZED", "APPROVED", "RETAKE", "EQUIVALENCE"])
    def test_actioned_courses_untouched(self, status):
        course = _course("b", status, correlatives=["A"])
        result = recalculate_availability([_course("a"), course])
        assert result[1] is course

    def test_does_not_mutate_input(self):
        courses = [_course("a", "APPROVED", grade=8), _course("b", correlatives=["A"])]
        recalculate_availability(courses)
        assert courses[1]["status"] == "PENDING"

    def test_idempotent(self):
        courses = [
            _course("a", "APPROVED", grade=8),
            _course("b", correlatives=["A"]),
            _course("c", "AVAILABLE", correlatives=["B"]),
            _course("d", "REGULARIZED", correlatives=["C"]),
            _course("e", correlatives=["D", "GHOST"]),
            _course("f"),
        ]
        once = recalculate_availability(courses)
        assert recalculate_availability(once) == once

    def test_single_pass_does_not_cascade_through_derived_status(self):
        # b becomes AVAILABLE, but AVAILABLE does not unlock c.
        courses = [
            _course("a", "APPROVED", grade=8),
            _course("b", correlatives=["A"]),
            _course("c", correlatives=["B"]),
        ]
        result = recalculate_availability(courses)
        assert _status(result, "b") == "AVAILABLE"
        assert _status(result, "c") == "PENDING"

    def test_empty_and_single(self):
        assert recalculate_availability([]) == []
        assert _status(recalculate_availability([_course("solo")]), "solo") == "AVAILABLE"


class TestApplyCoursePatch:
    def test_multi_hop_after_committed_updates(self):
        courses = recalculate_availability([
            _course("a"),
            _course("b", correlatives=["A"]),
            _course("c", correlatives=["B"]),
        ])
        courses = apply_course_patch(courses, "a", {"status": "APPROVED", "grade": 8})
        assert _status(courses, "b") == "AVAILABLE"
        assert _status(courses, "c") == "PENDING"
        courses = apply_course_patch(courses, "b", {"status": "IN_PROGRESS"})
        assert _status(courses, "c") == "AVAILABLE"

    def test_reverting_prereq_relocks_dependent(self):
        courses = recalculate_availability([
            _course("a", "IN_PROGRESS"),
            _course("b", correlatives=["A"]),
        ])
        assert _status(courses, "b") == "AVAILABLE"
        courses = apply_course_patch(courses, "a", {"status": "PENDING"})
        assert _status(courses, "a") == "AVAILABLE"
        assert _status(courses, "b") == "PENDING"

    def test_status_label_normalized(self):
        courses = [_course("a")]
        result = apply_course_patch(courses, "a", {"status": "en curso"})
        assert _status(result, "a") == "IN_PROGRESS"

    def test_unknown_course(self):
        with pytest.raises(KeyError):
            apply_course_patch([_course("a")], "zzz", {"notes": "x"})

    def test_invalid_patch(self):
        with pytest.raises(ValueError):
            apply_course_patch([_course("a")], "a", {"status": "APPROVED"})

    def test_original_list_untouched(self):
        courses = [_course("a")]
        apply_course_patch(courses, "a", {"notes": "hard one"})
        assert courses[0].get("notes") is None

    def test_status_change_without_grade_clears_it(self):
        courses = [_course("a", "APPROVED", grade=8), _course("b", correlatives=["A"])]
        result = apply_course_patch(courses, "a", {"status": "RETAKE"})
        assert result[0]["status"] == "RETAKE"
        assert result[0]["grade"] is None
        result = apply_course_patch(courses, "a", {"status": "IN_PROGRESS"})
        assert result[0]["grade"] is None
        assert _status(result, "b") == "AVAILABLE"

    def test_grade_only_patch_keeps_status(self):
        courses = [_course("a", "APPROVED", grade=6)]
        result = apply_course_patch(courses, "a", {"grade": 9})
        assert result[0]["status"] == "APPROVED"
        assert result[0]["grade"] == 9
