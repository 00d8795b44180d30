import os
import sys
import time
import threading
import hashlib
import json
from collections import OrderedDict

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from availability import recalculate_availability
from data_loader import load_data
from graph import build_edges, build_unlock_map, compute_distance_to_sink, critical_path_from_distance
from normalizer import normalize_courses
from policy import DEFAULT_THESIS_COURSE_NAME, PROGRESS_SCOPES, SEARCH_RESULTS_LIMIT
from progress import search_courses, summarize_progress
from recommender import get_recommendations, get_recommendations_with_reasons
from session import AcademicSession
from unlocks import analyze_hover
from validators import find_catalog_issues, validate_course_patch

load_dotenv()

app = Flask(__name__)

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
_DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data", "courses.csv")
_env_data_path = os.environ.get("DATA_PATH")
if not _env_data_path:
    DATA_PATH = _DEFAULT_DATA_PATH
elif not os.path.isabs(_env_data_path):
    DATA_PATH = os.path.join(PROJECT_ROOT, _env_data_path)
else:
    DATA_PATH = _env_data_path
_data_lock = threading.Lock()
_data_mtime = None

MAX_RECOMMENDATIONS = 12


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


_SLOW_REQUEST_LOG_MS = _env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)
_REQUEST_CACHE_SIZE = _env_int("REQUEST_CACHE_SIZE", 128, minimum=1)
THESIS_COURSE_NAME = os.environ.get("THESIS_COURSE_NAME", "").strip() or DEFAULT_THESIS_COURSE_NAME


def _guest_mode_enabled() -> bool:
    return os.environ.get("GUEST_MODE", "false").strip().lower() == "true"


class _LruResponseCache:
    """Thread-safe bounded in-memory cache for JSON-serializable responses."""

    def __init__(self, max_size: int):
        self.max_size = max(1, int(max_size))
        self._lock = threading.Lock()
        self._items: OrderedDict[str, dict] = OrderedDict()

    def get(self, key: str):
        with self._lock:
            if key not in self._items:
                return None
            value = self._items.pop(key)
            self._items[key] = value
            return value

    def set(self, key: str, value: dict) -> None:
        with self._lock:
            if key in self._items:
                self._items.pop(key)
            self._items[key] = value
            while len(self._items) > self.max_size:
                self._items.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


_recommend_response_cache = _LruResponseCache(_REQUEST_CACHE_SIZE)
_graph_response_cache = _LruResponseCache(_REQUEST_CACHE_SIZE)


def _cache_enabled() -> bool:
    return not app.config.get("TESTING", False)


def _stable_payload_hash(payload) -> str:
    normalized = payload if payload is not None else {}
    encoded = json.dumps(
        normalized,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    ).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def _data_version_tag() -> str:
    mtime = "none" if _data_mtime is None else str(_data_mtime)
    return f"{mtime}.{_session.version}"


def _request_cache_key(prefix: str, payload) -> str:
    return f"{prefix}:{_data_version_tag()}:{_stable_payload_hash(payload)}"


def _clear_request_caches() -> None:
    _recommend_response_cache.clear()
    _graph_response_cache.clear()


def _data_file_mtime(path: str):
    try:
        return os.path.getmtime(path)
    except OSError:
        return None


# ── Startup data load ──────────────────────────────────────────────────────────
try:
    _data = load_data(DATA_PATH)
    _data_mtime = _data_file_mtime(DATA_PATH)
    print(f"[OK] Loaded {len(_data['catalog_codes'])} courses from {DATA_PATH}")
except FileNotFoundError:
    if DATA_PATH != _DEFAULT_DATA_PATH and os.path.exists(_DEFAULT_DATA_PATH):
        print(
            f"[WARN] DATA_PATH not found ({DATA_PATH}); "
            f"falling back to default catalog ({_DEFAULT_DATA_PATH}).",
            file=sys.stderr,
        )
        DATA_PATH = _DEFAULT_DATA_PATH
        _data = load_data(DATA_PATH)
        _data_mtime = _data_file_mtime(DATA_PATH)
        print(f"[OK] Loaded {len(_data['catalog_codes'])} courses from {DATA_PATH}")
    else:
        print(f"[FATAL] Data file not found: {DATA_PATH}", file=sys.stderr)
        sys.exit(1)
except Exception as exc:
    print(f"[FATAL] Failed to load data: {exc}", file=sys.stderr)
    sys.exit(1)

_session = AcademicSession(_data["courses"], is_guest=_guest_mode_enabled)


def _reload_data_if_changed(force: bool = False) -> bool:
    """
    Hot-reload the catalog when DATA_PATH changes on disk.

    Local edits made through PATCH /courses are discarded by a reload.
    Returns True when a reload occurred, else False.
    """
    global _data, _data_mtime

    candidate_mtime = _data_file_mtime(DATA_PATH)
    if not force:
        if candidate_mtime is None:
            return False
        if _data_mtime is not None and candidate_mtime <= _data_mtime:
            return False

    with _data_lock:
        latest_mtime = _data_file_mtime(DATA_PATH)
        if not force:
            if latest_mtime is None:
                return False
            if _data_mtime is not None and latest_mtime <= _data_mtime:
                return False

        try:
            new_data = load_data(DATA_PATH)
        except Exception as exc:
            print(f"[WARN] Data reload failed; keeping previous dataset: {exc}", file=sys.stderr)
            return False

        _data = new_data
        _session.set_courses(new_data["courses"])
        _data_mtime = latest_mtime if latest_mtime is not None else candidate_mtime
        _clear_request_caches()
        print(f"[OK] Reloaded {len(new_data['catalog_codes'])} courses from {DATA_PATH}")
        return True


def _refresh_data_if_needed() -> None:
    try:
        _reload_data_if_changed()
    except Exception as exc:
        print(f"[WARN] Data reload check failed: {exc}", file=sys.stderr)


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


# -- Helpers ---------------------------------------------------------------
def _error(error_code: str, message: str, status: int):
    return jsonify({
        "mode": "error",
        "error": {"error_code": error_code, "message": message},
    }), status


def _json_body() -> dict | None:
    body = request.get_json(silent=True)
    if body is None and not request.get_data():
        return {}
    return body if isinstance(body, dict) else None


def _resolve_courses(body: dict) -> list[dict]:
    """
    Courses for this request: the caller's snapshot when one is posted,
    otherwise the session catalog. Posted snapshots always get a fresh
    availability pass before anything is derived from them.
    """
    if "courses" in body:
        return recalculate_availability(normalize_courses(body["courses"]))
    _refresh_data_if_needed()
    return _session.courses


def _id_list(body: dict, field: str) -> list[str]:
    raw = body.get(field) or []
    if not isinstance(raw, list):
        raise ValueError(f"'{field}' must be a list of course ids.")
    return [str(x) for x in raw]


def _validate_recommend_body(body):
    """Returns (error_code, message) on invalid input, (None, None) on success."""
    if body is None:
        return "INVALID_INPUT", "Request body must be valid JSON."
    max_recs_raw = body.get("max_recommendations", 3)
    try:
        max_recs = int(max_recs_raw)
        if not (1 <= max_recs <= MAX_RECOMMENDATIONS):
            raise ValueError
    except (TypeError, ValueError):
        return "INVALID_INPUT", f"max_recommendations must be an integer between 1 and {MAX_RECOMMENDATIONS}."
    for field in ("exclude_ids", "scheduled_ids"):
        val = body.get(field)
        if val is not None and not isinstance(val, list):
            return "INVALID_INPUT", f"'{field}' must be a list of course ids."
    return None, None


# ── 500 handler ────────────────────────────────────────────────────────────────
@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return _error(e.name.upper().replace(" ", "_"), e.description, e.code)
    print(f"[ERROR] Unhandled {type(e).__name__}: {e}", file=sys.stderr)
    return _error("SERVER_ERROR", "An unexpected server error occurred.", 500)


# -- Health endpoint --------------------------------------------------------
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": "1.0.0",
        "courses_loaded": len(_session.courses),
    })


# ── Routes ─────────────────────────────────────────────────────────────────────
@app.route("/courses", methods=["GET"])
def get_courses():
    _refresh_data_if_needed()
    return jsonify({"courses": _session.courses})


@app.route("/courses/<course_id>", methods=["PATCH"])
def patch_course(course_id):
    body = _json_body()
    if not body:
        return _error("INVALID_INPUT", "Request body must be a non-empty JSON object.", 400)

    current = next((c for c in _session.courses if c["id"] == course_id), None)
    if current is None:
        return _error("NOT_FOUND", f"Course '{course_id}' not found.", 404)

    error_code, message = validate_course_patch(body, current)
    if error_code:
        return _error(error_code, message, 400)

    try:
        updated = _session.update_course(course_id, body)
    except KeyError:
        return _error("NOT_FOUND", f"Course '{course_id}' not found.", 404)
    except ValueError as exc:
        return _error("INVALID_INPUT", str(exc), 400)

    _clear_request_caches()
    return jsonify({
        "course": updated,
        "courses": _session.courses,
        "local_snapshot": _session.local_snapshot(),
    })


@app.route("/availability", methods=["POST"])
def availability_endpoint():
    body = _json_body()
    if body is None:
        return _error("INVALID_INPUT", "Request body must be valid JSON.", 400)
    try:
        courses = _resolve_courses(body)
    except ValueError as exc:
        return _error("INVALID_INPUT", str(exc), 400)
    return jsonify({"courses": courses})


@app.route("/graph", methods=["POST"])
def graph_endpoint():
    body = _json_body()
    if body is None:
        return _error("INVALID_INPUT", "Request body must be valid JSON.", 400)

    if "courses" not in body:
        _refresh_data_if_needed()

    cache_key = None
    if _cache_enabled():
        cache_key = _request_cache_key("graph", body)
        cached = _graph_response_cache.get(cache_key)
        if cached is not None:
            return jsonify(cached)

    try:
        courses = _resolve_courses(body)
    except ValueError as exc:
        return _error("INVALID_INPUT", str(exc), 400)

    edges = build_edges(courses)
    distance = compute_distance_to_sink(courses, edges)
    critical = critical_path_from_distance(edges, distance)
    payload = {
        "edges": edges,
        "distance_to_sink": distance,
        "unlock_counts": build_unlock_map(edges),
        "critical_path": {
            "node_ids": sorted(critical["node_ids"]),
            "edge_ids": sorted(critical["edge_ids"]),
        },
    }
    if cache_key:
        _graph_response_cache.set(cache_key, payload)
    return jsonify(payload)


@app.route("/recommend", methods=["POST"])
def recommend():
    body = _json_body()
    error_code, message = _validate_recommend_body(body)
    if error_code:
        return _error(error_code, message, 400)

    if "courses" not in body:
        _refresh_data_if_needed()

    cache_key = None
    if _cache_enabled():
        cache_key = _request_cache_key("recommend", body)
        cached = _recommend_response_cache.get(cache_key)
        if cached is not None:
            return jsonify(cached)

    try:
        courses = _resolve_courses(body)
    except ValueError as exc:
        return _error("INVALID_INPUT", str(exc), 400)

    max_recs = int(body.get("max_recommendations", 3))
    exclude_ids = _id_list(body, "exclude_ids")
    edges = build_edges(courses)

    if body.get("with_reasons", True):
        ranked = get_recommendations_with_reasons(
            courses,
            edges,
            max_recs,
            exclude_ids=exclude_ids,
            scheduled_ids=_id_list(body, "scheduled_ids"),
            thesis_name=THESIS_COURSE_NAME,
        )
        recommendations = [
            {**entry["course"], "score": round(entry["score"], 2), "reasons": entry["reasons"]}
            for entry in ranked
        ]
    else:
        recommendations = get_recommendations(courses, edges, max_recs, exclude_ids=exclude_ids)

    payload = {"mode": "recommendations", "recommendations": recommendations}
    if cache_key:
        _recommend_response_cache.set(cache_key, payload)
    return jsonify(payload)


@app.route("/hover", methods=["POST"])
def hover_endpoint():
    body = _json_body()
    if not body or not body.get("course_id"):
        return _error("INVALID_INPUT", "course_id is required.", 400)
    try:
        courses = _resolve_courses(body)
    except ValueError as exc:
        return _error("INVALID_INPUT", str(exc), 400)

    result = analyze_hover(str(body["course_id"]), courses, build_edges(courses))
    return jsonify({
        "course_id": result["course_id"],
        "ancestors": sorted(result["ancestors"]),
        "full_unlocks": sorted(result["full_unlocks"]),
        "partial_unlocks": sorted(result["partial_unlocks"]),
    })


@app.route("/progress", methods=["POST"])
def progress_endpoint():
    body = _json_body()
    if body is None:
        return _error("INVALID_INPUT", "Request body must be valid JSON.", 400)
    scope = str(body.get("scope") or "TOTAL").upper()
    if scope not in PROGRESS_SCOPES:
        return _error("INVALID_INPUT", f"scope must be one of {list(PROGRESS_SCOPES)}.", 400)
    min_total = body.get("min_total")
    if min_total is not None and (not isinstance(min_total, int) or isinstance(min_total, bool) or min_total < 0):
        return _error("INVALID_INPUT", "min_total must be a non-negative integer.", 400)
    try:
        courses = _resolve_courses(body)
    except ValueError as exc:
        return _error("INVALID_INPUT", str(exc), 400)
    return jsonify(summarize_progress(courses, scope=scope, min_total=min_total))


@app.route("/search", methods=["GET"])
def search_endpoint():
    _refresh_data_if_needed()
    query = request.args.get("q", "")
    limit = request.args.get("limit", SEARCH_RESULTS_LIMIT, type=int)
    return jsonify({"results": search_courses(_session.courses, query, limit=limit)})


@app.route("/validate-catalog", methods=["POST"])
def validate_catalog_endpoint():
    body = _json_body()
    if body is None:
        return _error("INVALID_INPUT", "Request body must be valid JSON.", 400)
    try:
        courses = _resolve_courses(body)
    except ValueError as exc:
        return _error("INVALID_INPUT", str(exc), 400)
    return jsonify(find_catalog_issues(courses))


# Same endpoints under /api for reverse-proxy deployments.
app.add_url_rule("/api/health", endpoint="api_health", view_func=health_endpoint, methods=["GET"])
app.add_url_rule("/api/courses", endpoint="api_courses", view_func=get_courses, methods=["GET"])
app.add_url_rule("/api/courses/<course_id>", endpoint="api_patch_course", view_func=patch_course, methods=["PATCH"])
app.add_url_rule("/api/availability", endpoint="api_availability", view_func=availability_endpoint, methods=["POST"])
app.add_url_rule("/api/graph", endpoint="api_graph", view_func=graph_endpoint, methods=["POST"])
app.add_url_rule("/api/recommend", endpoint="api_recommend", view_func=recommend, methods=["POST"])
app.add_url_rule("/api/hover", endpoint="api_hover", view_func=hover_endpoint, methods=["POST"])
app.add_url_rule("/api/progress", endpoint="api_progress", view_func=progress_endpoint, methods=["POST"])
app.add_url_rule("/api/search", endpoint="api_search", view_func=search_endpoint, methods=["GET"])
app.add_url_rule("/api/validate-catalog", endpoint="api_validate_catalog", view_func=validate_catalog_endpoint, methods=["POST"])


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
