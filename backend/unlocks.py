from collections import deque


def build_parent_child_maps(
    courses: list[dict],
    edges: list[dict],
) -> tuple[dict[str, set[str]], dict[str, set[str]]]:
    """
    Builds both direction maps from the edge list.

    parent_map: {"MAT2": {"MAT1"}, ...}   course → direct prerequisites
    child_map:  {"MAT1": {"MAT2", "PHY2"}} course → direct dependents

    Every course gets an entry, possibly empty.
    """
    parent_map: dict[str, set[str]] = {c["id"]: set() for c in courses}
    child_map: dict[str, set[str]] = {c["id"]: set() for c in courses}

    for edge in edges:
        if edge["to"] in parent_map and edge["from"] in child_map:
            parent_map[edge["to"]].add(edge["from"])
            child_map[edge["from"]].add(edge["to"])

    return parent_map, child_map


def get_ancestors(course_id: str, parent_map: dict[str, set[str]]) -> set[str]:
    """
    All courses, direct and indirect, that must be completed before `course_id`.
    MAT1 → MAT2 → MAT3 gives MAT3 the ancestors {MAT1, MAT2}.
    """
    ancestors: set[str] = set()
    queue = deque(parent_map.get(course_id, ()))
    while queue:
        parent = queue.popleft()
        if parent in ancestors or parent == course_id:
            continue
        ancestors.add(parent)
        queue.extend(parent_map.get(parent, ()))
    return ancestors


def classify_direct_dependents(
    course_id: str,
    parent_map: dict[str, set[str]],
    child_map: dict[str, set[str]],
) -> dict[str, set[str]]:
    """
    Splits the direct dependents of `course_id` by how much it unlocks them.

    "full": `course_id` is the dependent's only prerequisite.
    "partial": the dependent needs other courses as well.

    Only direct prerequisites (one level deep). No transitive graph traversal.
    """
    full: set[str] = set()
    partial: set[str] = set()
    for child in child_map.get(course_id, ()):
        if parent_map.get(child, set()) == {course_id}:
            full.add(child)
        else:
            partial.add(child)
    return {"full": full, "partial": partial}


def analyze_hover(course_id: str, courses: list[dict], edges: list[dict]) -> dict:
    """Highlight sets for a focused course. Unknown ids yield empty sets."""
    parent_map, child_map = build_parent_child_maps(courses, edges)
    dependents = classify_direct_dependents(course_id, parent_map, child_map)
    return {
        "course_id": course_id,
        "ancestors": get_ancestors(course_id, parent_map),
        "full_unlocks": dependents["full"],
        "partial_unlocks": dependents["partial"],
    }
