# Course statuses. AVAILABLE is derived by the availability pass; every other
# status is set by the student (or imported from their transcript).
PENDING = "PENDING"
AVAILABLE = "AVAILABLE"
IN_PROGRESS = "IN_PROGRESS"
REGULARIZED = "REGULARIZED"
APPROVED = "APPROVED"
RETAKE = "RETAKE"
EQUIVALENCE = "EQUIVALENCE"

ALL_STATUSES = (
    PENDING,
    AVAILABLE,
    IN_PROGRESS,
    REGULARIZED,
    APPROVED,
    RETAKE,
    EQUIVALENCE,
)

# Statuses whose plan codes count as satisfied prerequisites when unlocking
# dependents. Broader than "final exam passed": coursework in progress,
# regularized coursework and retakes all unlock the next course.
UNLOCKING_STATUSES = frozenset({
    REGULARIZED,
    APPROVED,
    EQUIVALENCE,
    RETAKE,
    IN_PROGRESS,
})

# Only these statuses are recomputed by the availability pass.
RECALCULABLE_STATUSES = frozenset({PENDING, AVAILABLE})

# Statuses counted as finished for progress reporting.
COMPLETED_STATUSES = frozenset({APPROVED, EQUIVALENCE})

# Statuses that mean the student has engaged with an optional course.
ACTIVE_STATUSES = frozenset({APPROVED, REGULARIZED, IN_PROGRESS, EQUIVALENCE})

# Simple recommender: prerequisites must carry a final approval.
STRICT_PREREQ_STATUSES = frozenset({APPROVED})

# Reasoned recommender.
REASONED_CANDIDATE_STATUSES = frozenset({AVAILABLE, RETAKE})
REASONED_PREREQ_STATUSES = frozenset({APPROVED, EQUIVALENCE})

# Only approved or retaken courses may carry a final grade.
GRADED_STATUSES = frozenset({APPROVED, RETAKE})
MIN_GRADE = 0
MAX_GRADE = 10

# Self-reported difficulty score.
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 100

# ── Scoring ────────────────────────────────────────────────────────────────
CRITICAL_BONUS = 2

INTERMEDIATE_DEGREE_BONUS = 100
UNLOCKS_THESIS_BONUS = 80
CRITICAL_PATH_BONUS = 50
PER_UNLOCK_BONUS = 10
DISTANCE_WEIGHT = 0.1
OPTIONAL_PENALTY = 1000
THESIS_FALLBACK_BONUS = 200
SCHEDULED_FALLBACK_BONUS = 10

DEFAULT_THESIS_COURSE_NAME = "Final Project"

REASON_INTERMEDIATE_DEGREE = "Intermediate degree"
REASON_UNLOCKS_THESIS = "Unlocks the final project"
REASON_CRITICAL_PATH = "Critical path"
REASON_OPTIONAL = "Optional course (low priority)"
REASON_THESIS = "Final project"
REASON_SCHEDULED = "Schedule assigned"

# ── Progress and search ────────────────────────────────────────────────────
PROGRESS_CHECKPOINTS = (25, 50, 75, 100)
SEARCH_RESULTS_LIMIT = 6
SEARCH_MIN_CHARS = 1

PROGRESS_SCOPES = ("TOTAL", "INTERMEDIATE")


def reason_unlocks(count: int) -> str:
    noun = "course" if count == 1 else "courses"
    return f"Unlocks {count} {noun}"
