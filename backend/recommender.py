from graph import build_unlock_map, compute_distance_to_sink, critical_path_from_distance
from policy import (
    AVAILABLE,
    CRITICAL_BONUS,
    CRITICAL_PATH_BONUS,
    DEFAULT_THESIS_COURSE_NAME,
    DISTANCE_WEIGHT,
    INTERMEDIATE_DEGREE_BONUS,
    OPTIONAL_PENALTY,
    PER_UNLOCK_BONUS,
    REASON_CRITICAL_PATH,
    REASON_INTERMEDIATE_DEGREE,
    REASON_OPTIONAL,
    REASON_SCHEDULED,
    REASON_THESIS,
    REASON_UNLOCKS_THESIS,
    REASONED_CANDIDATE_STATUSES,
    REASONED_PREREQ_STATUSES,
    SCHEDULED_FALLBACK_BONUS,
    STRICT_PREREQ_STATUSES,
    THESIS_FALLBACK_BONUS,
    UNLOCKS_THESIS_BONUS,
    reason_unlocks,
)


def _prereqs_meet(course: dict, by_plan_code: dict, allowed: frozenset) -> bool:
    # Correlatives missing from the snapshot do not block.
    for code in course.get("correlative_ids") or []:
        required = by_plan_code.get(code)
        if required is not None and required.get("status") not in allowed:
            return False
    return True


def _candidates(
    courses: list[dict],
    statuses: frozenset,
    prereq_statuses: frozenset,
    exclude_ids,
) -> list[dict]:
    excluded = set(exclude_ids or [])
    by_plan_code = {c["plan_code"]: c for c in courses}
    seen: set[str] = set()
    out: list[dict] = []
    for course in courses:
        cid = course["id"]
        if cid in seen or cid in excluded:
            continue
        if course.get("status") not in statuses:
            continue
        if not _prereqs_meet(course, by_plan_code, prereq_statuses):
            continue
        seen.add(cid)
        out.append(course)
    return out


def _rank_key(entry: dict):
    return (-entry["score"], entry["course"].get("year") or 0)


def get_recommendations(
    courses: list[dict],
    edges: list[dict],
    desired_count: int,
    exclude_ids=None,
) -> list[dict]:
    """
    Top `desired_count` AVAILABLE courses whose correlatives are all APPROVED.

    Score = distance to sink, plus CRITICAL_BONUS for courses on the critical
    path. Ties go to the earlier curriculum year.
    """
    if desired_count <= 0:
        return []
    available = _candidates(courses, frozenset({AVAILABLE}), STRICT_PREREQ_STATUSES, exclude_ids)
    if not available:
        return []

    distance = compute_distance_to_sink(courses, edges)
    critical_nodes = critical_path_from_distance(edges, distance)["node_ids"]

    scored = [
        {
            "course": course,
            "score": distance.get(course["id"], 0)
            + (CRITICAL_BONUS if course["id"] in critical_nodes else 0),
        }
        for course in available
    ]
    scored.sort(key=_rank_key)
    return [entry["course"] for entry in scored[:desired_count]]


def get_courses_that_unlock_thesis(
    courses: list[dict],
    edges: list[dict],
    thesis_name: str = DEFAULT_THESIS_COURSE_NAME,
) -> set[str]:
    """Ids of the direct prerequisites of the capstone course(s) named `thesis_name`."""
    thesis_ids = {c["id"] for c in courses if c.get("name") == thesis_name}
    if not thesis_ids:
        return set()
    return {e["from"] for e in edges if e["to"] in thesis_ids}


def get_recommendations_with_reasons(
    courses: list[dict],
    edges: list[dict],
    desired_count: int,
    exclude_ids=None,
    scheduled_ids=None,
    thesis_name: str = DEFAULT_THESIS_COURSE_NAME,
) -> list[dict]:
    """
    Ranked recommendations with a score and the reasons behind it.

    Priority order of the bonuses:
      intermediate degree (+100) > unlocks the final project (+80)
      > critical path (+50) > +10 per course directly unlocked.
    Distance to sink adds 0.1 per step as a tie-break; optional courses sink
    to the bottom (-1000).

    When every candidate scores exactly 0 (typical late in the degree, nothing
    left to unlock), the final project is pushed first and courses that already
    have a timetable slot come next.

    Returns: [{"course": {...}, "score": 130.1, "reasons": ["Unlocks the final project", ...]}, ...]
    """
    if desired_count <= 0:
        return []
    available = _candidates(
        courses, REASONED_CANDIDATE_STATUSES, REASONED_PREREQ_STATUSES, exclude_ids,
    )
    if not available:
        return []

    distance = compute_distance_to_sink(courses, edges)
    critical_nodes = critical_path_from_distance(edges, distance)["node_ids"]
    unlocks_thesis = get_courses_that_unlock_thesis(courses, edges, thesis_name)
    unlock_map = build_unlock_map(edges)
    scheduled = set(scheduled_ids or [])

    scored: list[dict] = []
    for course in available:
        cid = course["id"]
        reasons: list[str] = []
        score = 0.0

        if course.get("is_intermediate_degree"):
            reasons.append(REASON_INTERMEDIATE_DEGREE)
            score += INTERMEDIATE_DEGREE_BONUS

        if cid in unlocks_thesis:
            reasons.append(REASON_UNLOCKS_THESIS)
            score += UNLOCKS_THESIS_BONUS

        if cid in critical_nodes:
            reasons.append(REASON_CRITICAL_PATH)
            score += CRITICAL_PATH_BONUS

        unlock_count = unlock_map.get(cid, 0)
        if unlock_count > 0:
            reasons.append(reason_unlocks(unlock_count))
            score += unlock_count * PER_UNLOCK_BONUS

        score += distance.get(cid, 0) * DISTANCE_WEIGHT

        if course.get("is_optional"):
            score -= OPTIONAL_PENALTY
            reasons.append(REASON_OPTIONAL)

        scored.append({"course": course, "score": score, "reasons": reasons})

    if all(entry["score"] == 0 for entry in scored):
        for entry in scored:
            if entry["course"].get("name") == thesis_name:
                entry["score"] += THESIS_FALLBACK_BONUS
                entry["reasons"].insert(0, REASON_THESIS)
        if scheduled:
            for entry in scored:
                if entry["course"]["id"] in scheduled:
                    entry["score"] += SCHEDULED_FALLBACK_BONUS
                    entry["reasons"].append(REASON_SCHEDULED)

    scored.sort(key=_rank_key)
    return scored[:desired_count]
