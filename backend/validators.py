"""
Pure validation helpers for course patches and catalog snapshots.
No Flask or data-loader imports.
"""

from datetime import date
from typing import Dict, List, Optional, Tuple

from graph import build_edges, find_cycle_nodes
from normalizer import normalize_status
from policy import (
    AVAILABLE,
    APPROVED,
    GRADED_STATUSES,
    MAX_DIFFICULTY,
    MAX_GRADE,
    MIN_DIFFICULTY,
    MIN_GRADE,
)

PATCHABLE_FIELDS = {"status", "grade", "difficulty", "status_date", "notes"}


def _is_number(val) -> bool:
    return isinstance(val, (int, float)) and not isinstance(val, bool)


def _is_whole_number(val) -> bool:
    return _is_number(val) and float(val).is_integer()


def effective_patch(patch: dict) -> dict:
    """
    The patch as it is applied to a course record.

    Status labels are normalized, and a status change that carries no grade
    clears the stored grade.
    """
    clean = dict(patch)
    if "status" in clean:
        clean["status"] = normalize_status(clean["status"]) or clean["status"]
        clean.setdefault("grade", None)
    return clean


def validate_course_patch(
    patch: dict,
    current: Optional[dict] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """
    Returns (error_code, message) on an invalid patch, (None, None) on success.

    The grade rules are checked against the merged record, so patching only the
    grade of an already-approved course is fine. A status change without a
    grade is checked as if the grade were cleared.
    """
    if not isinstance(patch, dict) or not patch:
        return "INVALID_INPUT", "Patch must be a non-empty object."

    unknown = sorted(set(patch) - PATCHABLE_FIELDS)
    if unknown:
        return "INVALID_INPUT", f"Fields cannot be patched: {', '.join(unknown)}."

    if "status" in patch:
        status = normalize_status(patch["status"])
        if status is None:
            return "INVALID_STATUS", f"Unknown status: {patch['status']!r}."
        if status == AVAILABLE:
            return "INVALID_STATUS", "AVAILABLE is computed automatically and cannot be set."

    merged = dict(current or {})
    merged.update(effective_patch(patch))

    grade = merged.get("grade")
    if grade is not None:
        if not _is_whole_number(grade):
            return "INVALID_GRADE", "Grade must be a whole number."
        if grade < MIN_GRADE or grade > MAX_GRADE:
            return "INVALID_GRADE", f"Grade must be between {MIN_GRADE} and {MAX_GRADE}."

    status = merged.get("status")
    if status == APPROVED and grade is None:
        return "INVALID_GRADE", "An approved course requires a final grade."
    if grade is not None and status not in GRADED_STATUSES:
        return "INVALID_GRADE", "Only an approved or retaken course can have a final grade."

    difficulty = patch.get("difficulty")
    if difficulty is not None:
        if not _is_whole_number(difficulty):
            return "INVALID_INPUT", "Difficulty must be a whole number."
        if difficulty < MIN_DIFFICULTY or difficulty > MAX_DIFFICULTY:
            return "INVALID_INPUT", f"Difficulty must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}."

    status_date = patch.get("status_date")
    if status_date is not None:
        try:
            date.fromisoformat(str(status_date)[:10])
        except ValueError:
            return "INVALID_DATE", "Invalid date. Use YYYY-MM-DD."

    return None, None


def find_dangling_correlatives(courses: List[dict]) -> List[dict]:
    """
    Correlative plan codes that match no course in the snapshot.

    Each item:
      {"course_id": str, "plan_code": str, "missing": List[str]}
    """
    known = {c["plan_code"] for c in courses}
    issues: List[dict] = []
    for course in courses:
        missing = [code for code in course.get("correlative_ids") or [] if code not in known]
        if missing:
            issues.append({
                "course_id": course["id"],
                "plan_code": course["plan_code"],
                "missing": missing,
            })
    return issues


def find_duplicate_plan_codes(courses: List[dict]) -> Dict[str, List[str]]:
    """Plan codes shared by more than one course id → the ids sharing it."""
    by_code: Dict[str, List[str]] = {}
    for course in courses:
        by_code.setdefault(course["plan_code"], []).append(course["id"])
    return {code: ids for code, ids in by_code.items() if len(ids) > 1}


def find_catalog_issues(courses: List[dict]) -> dict:
    """
    Collects every integrity problem of a snapshot.

    Cycle members are reported here even though the path computations just
    leave them out.
    """
    return {
        "dangling_correlatives": find_dangling_correlatives(courses),
        "duplicate_plan_codes": find_duplicate_plan_codes(courses),
        "cycle_course_ids": find_cycle_nodes(courses, build_edges(courses)),
    }
