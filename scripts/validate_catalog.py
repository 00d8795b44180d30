"""
Integrity gate for course catalogs.

Checks data-quality rules that must pass before a catalog is published to
the planner. Designed to be importable for tests and runnable as a
standalone CLI.

Usage:
    python scripts/validate_catalog.py
    python scripts/validate_catalog.py --path path/to/courses.csv
    python scripts/validate_catalog.py --path plan.xlsx --strict
"""

import argparse
import os
import sys


# ── Validation result ─────────────────────────────────────────────────────────

class ValidationResult:
    """Collects errors and warnings for a single catalog validation run."""

    def __init__(self, source: str):
        self.source = source
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def error(self, msg: str) -> None:
        self.errors.append(msg)

    def warn(self, msg: str) -> None:
        self.warnings.append(msg)

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        lines = [f"[{status}] Catalog '{self.source}'"]
        for e in self.errors:
            lines.append(f"  [ERROR] {e}")
        for w in self.warnings:
            lines.append(f"  [WARN]  {w}")
        if self.passed and not self.warnings:
            lines.append("  All checks passed.")
        return "\n".join(lines)


# ── Individual checks ─────────────────────────────────────────────────────────

def check_not_empty(courses: list[dict], result: ValidationResult) -> None:
    if not courses:
        result.error("Catalog has no courses.")


def check_unique_ids(courses: list[dict], result: ValidationResult) -> None:
    seen: set[str] = set()
    dupes: list[str] = []
    for c in courses:
        if c["id"] in seen and c["id"] not in dupes:
            dupes.append(c["id"])
        seen.add(c["id"])
    if dupes:
        result.error(f"Course id(s) used more than once: {dupes}")


def check_unique_plan_codes(duplicates: dict, result: ValidationResult) -> None:
    """Edges resolve plan codes to a single id, so a shared code silently drops edges."""
    for code, ids in sorted(duplicates.items()):
        result.error(f"Plan code '{code}' is shared by courses {ids}.")


def check_no_cycles(cycle_ids: list[str], result: ValidationResult) -> None:
    if cycle_ids:
        result.error(
            f"{len(cycle_ids)} course(s) sit on or behind a prerequisite cycle: {cycle_ids}"
        )


def check_dangling_correlatives(
    dangling: list[dict],
    result: ValidationResult,
    *,
    strict: bool = False,
) -> None:
    """Unknown correlative codes never block a course; they only smell."""
    for item in dangling:
        msg = f"Course '{item['plan_code']}' lists unknown correlative(s): {item['missing']}"
        if strict:
            result.error(msg)
        else:
            result.warn(msg)


def check_thesis_present(courses: list[dict], thesis_name: str, result: ValidationResult) -> None:
    if not any(c.get("name") == thesis_name for c in courses):
        result.warn(f"No course named '{thesis_name}'; final-project scoring bonuses will not apply.")


def validate_catalog(
    courses: list[dict],
    source: str = "<memory>",
    strict: bool = False,
    thesis_name: str | None = None,
) -> ValidationResult:
    """Run all publish gate checks for a catalog. Returns a ValidationResult."""
    from policy import DEFAULT_THESIS_COURSE_NAME
    from validators import find_catalog_issues

    result = ValidationResult(source)
    issues = find_catalog_issues(courses)

    check_not_empty(courses, result)
    check_unique_ids(courses, result)
    check_unique_plan_codes(issues["duplicate_plan_codes"], result)
    check_no_cycles(issues["cycle_course_ids"], result)
    check_dangling_correlatives(issues["dangling_correlatives"], result, strict=strict)
    check_thesis_present(courses, thesis_name or DEFAULT_THESIS_COURSE_NAME, result)

    return result


# ── CLI entry point ───────────────────────────────────────────────────────────

def main(args=None):
    parser = argparse.ArgumentParser(
        description="Validate a course catalog before publishing it.",
    )
    parser.add_argument(
        "--path", type=str,
        default=os.path.join(os.path.dirname(__file__), "..", "data", "courses.csv"),
        help="Path to the catalog (.csv or .xlsx).",
    )
    parser.add_argument("--strict", action="store_true", help="Treat unknown correlatives as errors.")
    parser.add_argument("--thesis-name", type=str, default=None, help="Name of the final project course.")
    opts = parser.parse_args(args)

    # Import data_loader (add backend/ to path)
    backend_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend")
    sys.path.insert(0, backend_dir)
    from data_loader import load_data

    try:
        data = load_data(opts.path)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[FATAL] Could not load catalog {opts.path}: {exc}", file=sys.stderr)
        return 1

    result = validate_catalog(
        data["courses"],
        source=opts.path,
        strict=opts.strict,
        thesis_name=opts.thesis_name,
    )
    print(result.summary())
    return 0 if result.passed else 1


if __name__ == "__main__":
    sys.exit(main())
