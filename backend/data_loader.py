import os

import pandas as pd

from normalizer import normalize_course
from validators import find_catalog_issues


_BOOL_TRUTHY = {"true", "1", "yes", "y", "si", "sí"}

# Workbook/CSV header → course key.
_COLUMN_ALIASES = {
    "planCode": "plan_code",
    "code": "plan_code",
    "course_code": "plan_code",
    "course_name": "name",
    "credits": "hours",
    "correlatives": "correlative_ids",
    "correlativeIds": "correlative_ids",
    "prerequisites": "correlative_ids",
    "statusDate": "status_date",
    "isOptional": "is_optional",
    "isIntermediateDegree": "is_intermediate_degree",
}

REQUIRED_COLUMNS = ("plan_code",)


def _safe_bool_col(df: pd.DataFrame, col: str) -> pd.DataFrame:
    """Normalize a boolean column to Python bool regardless of Excel format.

    Handles: Python bool, Excel int/float (1/0), and string variants
    (TRUE/FALSE, true/false, 1/0, yes/no, si). NaN → False.
    """
    def _coerce(x):
        if pd.isna(x):
            return False
        if isinstance(x, bool):
            return x
        if isinstance(x, (int, float)):
            return bool(x)
        return str(x).strip().lower() in _BOOL_TRUTHY

    if col in df.columns:
        df[col] = df[col].apply(_coerce)
    return df


def _read_frame(data_path: str) -> pd.DataFrame:
    if not os.path.exists(data_path):
        raise FileNotFoundError(data_path)
    if os.path.isdir(data_path):
        data_path = os.path.join(data_path, "courses.csv")
        if not os.path.exists(data_path):
            raise FileNotFoundError(data_path)

    ext = os.path.splitext(data_path)[1].lower()
    if ext in {".xlsx", ".xls"}:
        xl = pd.ExcelFile(data_path)
        sheet = "courses" if "courses" in xl.sheet_names else xl.sheet_names[0]
        return xl.parse(sheet)
    return pd.read_csv(data_path, dtype=str)


def normalize_courses_df(courses_df: pd.DataFrame) -> pd.DataFrame:
    """Rename known header variants and clean the columns the engine reads."""
    courses_df = courses_df.rename(columns={
        k: v for k, v in _COLUMN_ALIASES.items()
        if k in courses_df.columns and v not in courses_df.columns
    })

    missing = [c for c in REQUIRED_COLUMNS if c not in courses_df.columns]
    if missing:
        raise ValueError(f"Course catalog is missing column(s): {missing}")

    for col in ["is_optional", "is_intermediate_degree"]:
        courses_df = _safe_bool_col(courses_df, col)

    courses_df = courses_df.dropna(subset=["plan_code"]).copy()
    courses_df["plan_code"] = courses_df["plan_code"].astype(str).str.strip()
    courses_df = courses_df[courses_df["plan_code"] != ""]
    if "correlative_ids" not in courses_df.columns:
        courses_df["correlative_ids"] = ""
    courses_df["correlative_ids"] = courses_df["correlative_ids"].fillna("")

    # Object dtype so missing values come back as None instead of NaN.
    return courses_df.astype(object).where(pd.notna(courses_df), None)


def load_data(data_path: str) -> dict:
    """Load and normalize the course catalog (CSV or xlsx). Raises on file/schema errors."""
    courses_df = normalize_courses_df(_read_frame(data_path))
    courses = [normalize_course(row) for row in courses_df.to_dict(orient="records")]
    catalog_codes = {c["plan_code"] for c in courses}

    # ── Startup data integrity checks ──────────────────────────────────────
    issues = find_catalog_issues(courses)
    dangling = issues["dangling_correlatives"]
    if dangling:
        print(
            f"[WARN] {len(dangling)} course(s) list correlatives not found in the catalog: "
            f"{sorted(d['plan_code'] for d in dangling)}"
        )
    duplicates = issues["duplicate_plan_codes"]
    if duplicates:
        print(f"[WARN] {len(duplicates)} plan code(s) used by more than one course: {sorted(duplicates)}")
    cycles = issues["cycle_course_ids"]
    if cycles:
        print(f"[WARN] {len(cycles)} course(s) sit on a prerequisite cycle and are left out of path computations: {cycles}")

    print(f"[INFO] Catalog source: {data_path}")

    return {
        "courses": courses,
        "catalog_codes": catalog_codes,
    }
