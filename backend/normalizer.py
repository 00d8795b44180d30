import re

from policy import ALL_STATUSES

# Splits "MAT1; MAT2", "MAT1,MAT2" or one code per line.
CORRELATIVE_SPLIT = re.compile(r'[,;\n]+')

# Labels used by transcripts exported from the Spanish-language planner.
STATUS_ALIASES = {
    "PENDIENTE": "PENDING",
    "DISPONIBLE": "AVAILABLE",
    "EN_CURSO": "IN_PROGRESS",
    "EN CURSO": "IN_PROGRESS",
    "CURSANDO": "IN_PROGRESS",
    "REGULARIZADA": "REGULARIZED",
    "REGULAR": "REGULARIZED",
    "APROBADA": "APPROVED",
    "RECURSADA": "RETAKE",
    "EQUIVALENCIA": "EQUIVALENCE",
}

_TRUTHY = {"true", "1", "yes", "y", "si", "sí"}

# camelCase keys accepted from JS clients → canonical keys.
_KEY_ALIASES = {
    "planCode": "plan_code",
    "statusDate": "status_date",
    "correlativeIds": "correlative_ids",
    "correlatives": "correlative_ids",
    "isOptional": "is_optional",
    "isIntermediateDegree": "is_intermediate_degree",
}


def normalize_plan_code(raw) -> str | None:
    """
    Trims and upper-cases a plan code. 'mat 1 ' → 'MAT 1'.
    Internal whitespace runs collapse to one space.
    Returns None for blank input.
    """
    if raw is None:
        return None
    s = re.sub(r'\s+', ' ', str(raw)).strip()
    if not s or s.lower() == "nan":
        return None
    return s.upper()


def normalize_status(raw) -> str | None:
    """
    Maps a status label to its canonical name.
    Handles: 'approved', 'APPROVED', 'in progress', 'Aprobada', 'EN_CURSO'.
    Returns None if the label is not a known status.
    """
    if raw is None:
        return None
    s = str(raw).strip().upper()
    if not s:
        return None
    if s in STATUS_ALIASES:
        return STATUS_ALIASES[s]
    s = s.replace(" ", "_").replace("-", "_")
    if s in STATUS_ALIASES:
        return STATUS_ALIASES[s]
    return s if s in ALL_STATUSES else None


def parse_correlatives(raw) -> list[str]:
    """
    Parses a correlative field into an ordered, deduplicated list of plan codes.
    Accepts a list or a ';'/','/newline-separated string. 'none' and blanks → [].
    """
    if raw is None:
        return []
    if isinstance(raw, float) and raw != raw:
        return []
    if isinstance(raw, (list, tuple)):
        tokens = list(raw)
    else:
        s = str(raw).strip()
        if s.lower() in {"", "none", "n/a", "nan"}:
            return []
        tokens = CORRELATIVE_SPLIT.split(s)

    codes: list[str] = []
    for token in tokens:
        code = normalize_plan_code(token)
        if code and code not in codes:
            codes.append(code)
    return codes


def _coerce_bool(val) -> bool:
    if val is None:
        return False
    if isinstance(val, bool):
        return val
    if isinstance(val, (int, float)):
        return val == val and bool(val)
    return str(val).strip().lower() in _TRUTHY


def _coerce_number(val, cast=float):
    if val is None or val == "":
        return None
    try:
        num = cast(val)
    except (TypeError, ValueError):
        return None
    if isinstance(num, float) and num != num:
        return None
    return num


def _coerce_text(val) -> str | None:
    if val is None:
        return None
    if isinstance(val, float) and val != val:
        return None
    s = str(val).strip()
    return s or None


def normalize_course(raw: dict) -> dict:
    """
    Coerces a course record (snake_case or camelCase) into the canonical shape.

    Missing id falls back to the plan code and vice versa. Unknown statuses
    become PENDING so the availability pass can resolve them.
    Raises ValueError when the record has neither id nor plan code.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Course record must be an object, got {type(raw).__name__}.")

    rec = {_KEY_ALIASES.get(k, k): v for k, v in raw.items()}

    plan_code = normalize_plan_code(rec.get("plan_code"))
    course_id = _coerce_text(rec.get("id"))
    if course_id is None and plan_code is None:
        raise ValueError("Course record needs an 'id' or a 'plan_code'.")
    if course_id is None:
        course_id = plan_code
    if plan_code is None:
        plan_code = normalize_plan_code(course_id)

    return {
        "id": course_id,
        "plan_code": plan_code,
        "name": _coerce_text(rec.get("name")) or plan_code,
        "year": _coerce_number(rec.get("year"), int) or 0,
        "hours": _coerce_number(rec.get("hours"), int) or 0,
        "status": normalize_status(rec.get("status")) or "PENDING",
        "grade": _coerce_number(rec.get("grade")),
        "difficulty": _coerce_number(rec.get("difficulty")),
        "status_date": _coerce_text(rec.get("status_date")),
        "notes": _coerce_text(rec.get("notes")),
        "correlative_ids": parse_correlatives(rec.get("correlative_ids")),
        "is_optional": _coerce_bool(rec.get("is_optional")),
        "is_intermediate_degree": _coerce_bool(rec.get("is_intermediate_degree")),
    }


def normalize_courses(raw_courses) -> list[dict]:
    """Normalizes a list of records. Raises ValueError if the input is not a list."""
    if not isinstance(raw_courses, list):
        raise ValueError("'courses' must be a list of course records.")
    return [normalize_course(r) for r in raw_courses]
