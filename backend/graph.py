from collections import deque


def edge_id(edge: dict) -> str:
    return f"{edge['from']}-{edge['to']}"


def build_edges(courses: list[dict]) -> list[dict]:
    """
    Builds the prerequisite edge list: {"from": required_id, "to": course_id}.

    Correlatives are expressed as plan codes; a code that does not resolve to a
    course in the given list is dropped without error.
    """
    by_plan_code = {c["plan_code"]: c["id"] for c in courses}
    edges: list[dict] = []

    for course in courses:
        for required_code in course.get("correlative_ids") or []:
            required_id = by_plan_code.get(required_code)
            if required_id is not None:
                edges.append({"from": required_id, "to": course["id"]})

    return edges


def build_unlock_map(edges: list[dict]) -> dict[str, int]:
    """Counts how many courses directly list each course as a prerequisite."""
    unlocks: dict[str, int] = {}
    for edge in edges:
        unlocks[edge["from"]] = unlocks.get(edge["from"], 0) + 1
    return unlocks


def _adjacency(courses: list[dict], edges: list[dict]):
    node_ids = [c["id"] for c in courses]
    known = set(node_ids)
    adjacency: dict[str, list[str]] = {n: [] for n in node_ids}
    indegree: dict[str, int] = {n: 0 for n in node_ids}

    for edge in edges:
        if edge["from"] not in known or edge["to"] not in known:
            continue
        adjacency[edge["from"]].append(edge["to"])
        indegree[edge["to"]] += 1

    return node_ids, adjacency, indegree


def _topological_order(adjacency: dict, indegree: dict) -> list[str]:
    """Kahn's algorithm. Nodes on a cycle never reach indegree 0 and are left out."""
    remaining = dict(indegree)
    queue = deque(n for n, d in remaining.items() if d == 0)
    order: list[str] = []

    while queue:
        node = queue.popleft()
        order.append(node)
        for nxt in adjacency[node]:
            remaining[nxt] -= 1
            if remaining[nxt] == 0:
                queue.append(nxt)

    return order


def compute_distance_to_sink(courses: list[dict], edges: list[dict]) -> dict[str, int]:
    """
    Length of the longest chain of dependents still ahead of every course.

    A course nothing depends on has distance 0. A → B → C gives A distance 2.
    Courses stuck on a prerequisite cycle keep distance 0.
    """
    node_ids, adjacency, indegree = _adjacency(courses, edges)
    order = _topological_order(adjacency, indegree)

    distance = {n: 0 for n in node_ids}
    for node in reversed(order):
        nexts = adjacency[node]
        distance[node] = (1 + max(distance[n] for n in nexts)) if nexts else 0

    return distance


def find_cycle_nodes(courses: list[dict], edges: list[dict]) -> list[str]:
    """Ids that never enter the topological order, in course order."""
    node_ids, adjacency, indegree = _adjacency(courses, edges)
    ordered = set(_topological_order(adjacency, indegree))
    return [n for n in node_ids if n not in ordered]


def critical_path_from_distance(edges: list[dict], distance: dict[str, int]) -> dict:
    """
    Greedy walk down the longest chain.

    Start at the course with the maximum distance (most direct unlocks wins a
    tie), then keep following an edge into a course exactly one step closer to
    the sink, again preferring the target with the most unlocks.
    """
    node_ids: set[str] = set()
    edge_ids: set[str] = set()

    critical_length = max(distance.values()) if distance else 0
    if critical_length <= 0:
        return {"node_ids": node_ids, "edge_ids": edge_ids}

    unlocks = build_unlock_map(edges)
    candidates = [n for n, d in distance.items() if d == critical_length]
    candidates.sort(key=lambda n: -unlocks.get(n, 0))

    outgoing: dict[str, list[dict]] = {}
    for edge in edges:
        outgoing.setdefault(edge["from"], []).append(edge)

    current = candidates[0]
    current_dist = critical_length
    node_ids.add(current)

    while current_dist > 0:
        next_steps = [
            e for e in outgoing.get(current, [])
            if distance.get(e["to"]) == current_dist - 1
        ]
        if not next_steps:
            break
        next_steps.sort(key=lambda e: -unlocks.get(e["to"], 0))
        step = next_steps[0]
        edge_ids.add(edge_id(step))
        node_ids.add(step["to"])
        current = step["to"]
        current_dist -= 1

    return {"node_ids": node_ids, "edge_ids": edge_ids}


def get_critical_path(courses: list[dict], edges: list[dict]) -> dict:
    distance = compute_distance_to_sink(courses, edges)
    return critical_path_from_distance(edges, distance)
