from policy import AVAILABLE, PENDING, RECALCULABLE_STATUSES, UNLOCKING_STATUSES
from validators import effective_patch, validate_course_patch


def passed_codes(courses: list[dict]) -> set[str]:
    """Plan codes that currently satisfy a prerequisite (see UNLOCKING_STATUSES)."""
    return {c["plan_code"] for c in courses if c.get("status") in UNLOCKING_STATUSES}


def recalculate_availability(courses: list[dict]) -> list[dict]:
    """
    One global pass that re-derives PENDING/AVAILABLE from the current statuses.

    Courses the student already acted on (in progress, approved, ...) are
    returned untouched. A pending or available course becomes AVAILABLE when
    every correlative is in passed_codes(), else PENDING. Returns new dicts for
    changed courses and never mutates the input; running it on its own output
    changes nothing.
    """
    passed = passed_codes(courses)
    result: list[dict] = []

    for course in courses:
        if course.get("status") not in RECALCULABLE_STATUSES:
            result.append(course)
            continue
        correlatives = course.get("correlative_ids") or []
        unlocked = all(code in passed for code in correlatives)
        status = AVAILABLE if unlocked else PENDING
        if status == course["status"]:
            result.append(course)
        else:
            result.append({**course, "status": status})

    return result


def apply_course_patch(courses: list[dict], course_id: str, patch: dict) -> list[dict]:
    """
    Merges a single-course patch into the snapshot and recalculates availability.

    A status change without a grade clears the stored grade.
    Raises KeyError for an unknown course id and ValueError for an invalid patch.
    """
    index = next((i for i, c in enumerate(courses) if c["id"] == course_id), None)
    if index is None:
        raise KeyError(course_id)

    error_code, message = validate_course_patch(patch, courses[index])
    if error_code:
        raise ValueError(message)

    updated = list(courses)
    updated[index] = {**courses[index], **effective_patch(patch)}
    return recalculate_availability(updated)
