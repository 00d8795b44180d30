from policy import (
    ACTIVE_STATUSES,
    ALL_STATUSES,
    APPROVED,
    COMPLETED_STATUSES,
    EQUIVALENCE,
    PROGRESS_CHECKPOINTS,
    PROGRESS_SCOPES,
    SEARCH_MIN_CHARS,
    SEARCH_RESULTS_LIMIT,
)


def _in_scope(courses: list[dict], scope: str) -> list[dict]:
    # Optional courses only count once the student has engaged with them.
    counted = [
        c for c in courses
        if not c.get("is_optional") or c.get("status") in ACTIVE_STATUSES
    ]
    if scope == "INTERMEDIATE":
        return [c for c in counted if c.get("is_intermediate_degree")]
    return counted


def summarize_progress(courses: list[dict], scope: str = "TOTAL", min_total: int | None = None) -> dict:
    """
    Degree progress for the dashboard.

    scope="TOTAL" counts the whole plan, scope="INTERMEDIATE" only the courses
    that lead to the intermediate credential. `min_total` lets the caller pin
    the denominator for TOTAL when the snapshot does not list every course.

    Returns:
      {
        "scope": "TOTAL",
        "total_courses": 40, "completed_courses": 12, "completion_percentage": 30,
        "total_hours": 3840, "completed_hours": 1152,
        "average_grade": 7.42,
        "status_counts": {"APPROVED": 12, ...},
        "checkpoints_reached": [25],
      }
    """
    scope = (scope or "TOTAL").upper()
    if scope not in PROGRESS_SCOPES:
        raise ValueError(f"Unknown progress scope: {scope!r}")

    scoped = _in_scope(courses, scope)
    completed = [c for c in scoped if c.get("status") in COMPLETED_STATUSES]

    total = len(scoped)
    if scope == "TOTAL" and min_total:
        total = max(total, min_total)

    percentage = round(len(completed) / total * 100) if total > 0 else 0

    graded = [c["grade"] for c in completed if c.get("grade") is not None and c["grade"] > 0]
    average = round(sum(graded) / len(graded), 2) if graded else None

    # EQUIVALENCE is shown together with APPROVED.
    status_counts = {s: 0 for s in ALL_STATUSES if s != EQUIVALENCE}
    for c in scoped:
        status = APPROVED if c.get("status") == EQUIVALENCE else c.get("status")
        if status in status_counts:
            status_counts[status] += 1

    return {
        "scope": scope,
        "total_courses": total,
        "completed_courses": len(completed),
        "completion_percentage": percentage,
        "total_hours": sum(c.get("hours") or 0 for c in scoped),
        "completed_hours": sum(c.get("hours") or 0 for c in completed),
        "average_grade": average,
        "status_counts": status_counts,
        "checkpoints_reached": [p for p in PROGRESS_CHECKPOINTS if percentage >= p],
    }


def search_courses(courses: list[dict], query: str, limit: int = SEARCH_RESULTS_LIMIT) -> list[dict]:
    """Case-insensitive substring match on name or plan code, in catalog order."""
    q = (query or "").strip().lower()
    if len(q) < SEARCH_MIN_CHARS or limit <= 0:
        return []
    matches = [
        c for c in courses
        if q in str(c.get("name") or "").lower() or q in str(c.get("plan_code") or "").lower()
    ]
    return matches[:limit]
