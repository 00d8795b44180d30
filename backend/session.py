import threading

from availability import apply_course_patch, recalculate_availability
from graph import build_edges, get_critical_path
from recommender import get_recommendations, get_recommendations_with_reasons
from policy import DEFAULT_THESIS_COURSE_NAME


def _never_guest() -> bool:
    return False


class AcademicSession:
    """
    Owns one student's course snapshot and keeps its derived status current.

    Every mutation swaps the whole list under a lock and re-runs the
    availability pass, so readers never see a snapshot with stale AVAILABLE
    flags. `is_guest` is a zero-argument callable supplied by the caller
    (e.g. the auth layer); guests get a local snapshot to persist on their side.
    """

    def __init__(self, courses: list[dict] | None = None, is_guest=None):
        self._is_guest = is_guest or _never_guest
        self._lock = threading.Lock()
        self._courses: list[dict] = recalculate_availability(list(courses or []))
        self._version = 0

    @property
    def courses(self) -> list[dict]:
        with self._lock:
            return list(self._courses)

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    @property
    def is_guest(self) -> bool:
        return bool(self._is_guest())

    def set_courses(self, courses: list[dict]) -> list[dict]:
        updated = recalculate_availability(list(courses))
        with self._lock:
            self._courses = updated
            self._version += 1
        return list(updated)

    def update_course(self, course_id: str, patch: dict) -> dict:
        """Applies a validated patch. Raises KeyError / ValueError like apply_course_patch()."""
        with self._lock:
            updated = apply_course_patch(self._courses, course_id, patch)
            self._courses = updated
            self._version += 1
        return next(c for c in updated if c["id"] == course_id)

    def clear(self) -> None:
        with self._lock:
            self._courses = []
            self._version += 1

    def local_snapshot(self) -> list[dict] | None:
        """Courses deduplicated by id (last write wins) for guests, None otherwise."""
        if not self.is_guest:
            return None
        unique: dict[str, dict] = {}
        for course in self.courses:
            unique[course["id"]] = course
        return list(unique.values())

    def edges(self) -> list[dict]:
        return build_edges(self.courses)

    def critical_path(self) -> dict:
        courses = self.courses
        return get_critical_path(courses, build_edges(courses))

    def recommendations(
        self,
        desired_count: int,
        exclude_ids=None,
        with_reasons: bool = False,
        scheduled_ids=None,
        thesis_name: str = DEFAULT_THESIS_COURSE_NAME,
    ) -> list[dict]:
        courses = self.courses
        edges = build_edges(courses)
        if with_reasons:
            return get_recommendations_with_reasons(
                courses, edges, desired_count,
                exclude_ids=exclude_ids,
                scheduled_ids=scheduled_ids,
                thesis_name=thesis_name,
            )
        return get_recommendations(courses, edges, desired_count, exclude_ids=exclude_ids)
