from __future__ import annotations
"""
ETL pipeline for the meal catalog: main function called to perform below
operations is run_pipeline
1. Load the raw catalog JSON (fatal on missing / unreadable / invalid input)
2. Reconcile it (CatalogReconciler, never fatal)
3. Validate the canonical catalog (post-run checks, recorded not enforced)
4. Write the canonical catalog with a regenerated __meta__ block and,
   optionally, the separate audit report (both or neither)

Writes go to a temp file next to the target and are renamed into place, so a
failed run never leaves a half-written catalog behind.
"""

import datetime
import json
import os
import tempfile
from typing import Any, Dict, List, Optional, Sequence, Tuple

from meal_catalog.catalog.reconciler import CatalogReconciler
from meal_catalog.catalog.report import TOOL_VERSION, validate_catalog
from meal_catalog.catalog.schema import ReconcileResult
from meal_catalog.config import ReconcileConfig, get_reconcile_config
from meal_catalog.exceptions import CatalogLoadError, CatalogWriteError
from meal_catalog.logging_utils import RUN_ID, get_logger
from meal_catalog.taxonomy.canonical import META_KEY

MODULE_PURPOSE = (
    "Catalog ETL that loads a raw meal catalog, reconciles it and writes the "
    "canonical catalog plus its audit report."
)

logger = get_logger("pipeline")


# ---------------------------------------------------------
# Load
# ---------------------------------------------------------
def load_catalog(path: str) -> Dict[str, Any]:
    """Read and parse the raw catalog. Raises CatalogLoadError on any failure."""
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            raw_text = f.read()
    except OSError as exc:
        raise CatalogLoadError(path, exc.strerror or str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise CatalogLoadError(path, f"not UTF-8 text ({exc.reason})") from exc

    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise CatalogLoadError(path, f"invalid JSON at line {exc.lineno} column {exc.colno}: {exc.msg}") from exc

    if not isinstance(data, dict):
        raise CatalogLoadError(path, f"top-level JSON value must be an object, got {type(data).__name__}")

    logger.info(
        "Loaded %s (%dKB, %d top-level keys)",
        path,
        round(len(raw_text) / 1024),
        len(data),
        extra={
            "invoking_func": "load_catalog",
            "invoking_purpose": MODULE_PURPOSE,
            "next_step": "Reconcile raw catalog",
            "resolution": "",
        },
    )
    return data


# ---------------------------------------------------------
# Write
# ---------------------------------------------------------
def _stage_json(path: str, data: Any) -> Tuple[str, int]:
    """Serialize `data` into a temp file next to `path`. Returns (temp path, bytes)."""
    text = json.dumps(data, indent=2, ensure_ascii=False)
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".meal_catalog.", suffix=".tmp", dir=directory)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.write("\n")
    except OSError as exc:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise CatalogWriteError(path, exc.strerror or str(exc)) from exc
    return tmp_path, len(text.encode("utf-8"))


def write_json_documents(documents: Sequence[Tuple[str, Any]]) -> List[int]:
    """
    Write several JSON documents all-or-nothing: every document is staged in a
    temp file first, and targets are replaced only once all of them staged.
    Returns bytes written per document.
    """
    staged: List[Tuple[str, str]] = []
    sizes: List[int] = []
    try:
        for path, data in documents:
            tmp_path, size = _stage_json(path, data)
            staged.append((tmp_path, path))
            sizes.append(size)
        while staged:
            tmp_path, path = staged[0]
            try:
                os.replace(tmp_path, path)
            except OSError as exc:
                raise CatalogWriteError(path, exc.strerror or str(exc)) from exc
            staged.pop(0)
    finally:
        for tmp_path, _ in staged:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
    return sizes


def write_json(path: str, data: Any) -> int:
    """Serialize + atomically replace `path`. Returns bytes written."""
    return write_json_documents([(path, data)])[0]


def build_output_document(result: ReconcileResult, config: ReconcileConfig, fixed_on: str) -> Dict[str, Any]:
    """Canonical catalog + regenerated __meta__ block."""
    meta = result.report.to_meta(violation_limit=config.violation_sample_limit)
    meta.update({"fixed_on": fixed_on, "tool_version": TOOL_VERSION, "run_id": RUN_ID})
    document: Dict[str, Any] = dict(result.catalog)
    document[META_KEY] = meta
    return document


def build_audit_report(
    result: ReconcileResult,
    config: ReconcileConfig,
    fixed_on: str,
    validation: Optional[Dict[str, bool]] = None,
) -> Dict[str, Any]:
    report = {"timestamp": fixed_on, "run_id": RUN_ID, "tool_version": TOOL_VERSION}
    report.update(
        result.report.to_audit_report(
            unparseable_limit=config.unparseable_sample_limit,
            validation=validation,
        )
    )
    return report


# ---------------------------------------------------------
# Console report
# ---------------------------------------------------------
def report_lines(result: ReconcileResult, validation: Optional[Dict[str, bool]] = None) -> List[str]:
    """Short human-readable run report: counts, first demotions, first unparseable values."""
    report = result.report
    summary = report.summary
    lines = [
        f"Total meals processed: {summary.get('totalNormalized', 0)} "
        f"(before: {summary.get('totalBefore', 0)}, after: {summary.get('totalAfter', 0)})",
        f"Duplicate IDs reassigned: {summary.get('duplicateIdsFixed', 0)}",
        f"Titles generated: {summary.get('titlesGenerated', 0)}",
        f"Regions mapped: {len(report.region_mapping)}",
        f"Diets mapped: {len(report.diet_mapping)}",
        f"Preparation fields removed: {summary.get('preparationFieldsRemoved', 0)}",
        f"Options arrays flattened: {summary.get('optionsFlattened', 0)}",
    ]

    for diet in ("Vegan", "Vegetarian"):
        demotions = report.demotions_from(diet)
        if not demotions:
            continue
        lines.append(f"{diet.upper()} VIOLATIONS ({len(demotions)}):")
        for d in demotions[:5]:
            lines.append(f"  ID {d.id}: \"{d.title}\" contains [{', '.join(d.offending)}] -> moved to {d.target_diet}")
        if len(demotions) > 5:
            lines.append(f"  ... and {len(demotions) - 5} more")

    if report.unparseable:
        lines.append(f"UNPARSEABLE NUTRIENTS ({len(report.unparseable)}):")
        for e in report.unparseable[:3]:
            lines.append(f"  ID {e.id}: {e.field} = \"{e.value}\" -> set to 0")

    if validation is not None:
        for check, passed in validation.items():
            lines.append(f"{check}: {passed}")
    return lines


# ---------------------------------------------------------
# Main pipeline
# ---------------------------------------------------------
def run_pipeline(
    input_path: str,
    output_path: str,
    report_path: Optional[str] = None,
    config: Optional[ReconcileConfig] = None,
    now: Optional[datetime.datetime] = None,
) -> ReconcileResult:
    """
    Load -> reconcile -> write. Raises CatalogLoadError / CatalogWriteError on
    fatal boundary failures. Nothing is written when loading fails, and the
    catalog and audit report are replaced together or not at all.
    """
    config = config or get_reconcile_config()
    now = now or datetime.datetime.now(datetime.timezone.utc)
    fixed_on = now.isoformat()

    raw_catalog = load_catalog(input_path)
    result = CatalogReconciler(config).reconcile(raw_catalog)
    result.source_path = input_path

    validation = validate_catalog(result.catalog)
    if not all(validation.values()):
        logger.error(
            "Post-run validation failed: %s",
            ", ".join(k for k, ok in validation.items() if not ok),
            extra={
                "invoking_func": "run_pipeline",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Write catalog anyway; inspect the audit report",
                "resolution": "Report the failing check with the input catalog attached",
            },
        )

    documents = [(output_path, build_output_document(result, config, fixed_on))]
    if report_path:
        documents.append((report_path, build_audit_report(result, config, fixed_on, validation)))
    written = write_json_documents(documents)

    for (path, _), size in zip(documents, written):
        logger.info(
            "Saved %s (%dKB)",
            path,
            round(size / 1024),
            extra={
                "invoking_func": "run_pipeline",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Log run report",
                "resolution": "",
            },
        )

    for line in report_lines(result, validation):
        logger.info(
            line,
            extra={
                "invoking_func": "run_pipeline",
                "invoking_purpose": "Run report",
                "next_step": "",
                "resolution": "",
            },
        )

    result.extra["validation"] = validation
    result.extra["fixed_on"] = fixed_on
    return result
