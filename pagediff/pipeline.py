"""
High-level pipeline:
- fingerprint the pages of both versions
- align the two page sequences and pair relocated pages
- classify every page
- write the requested reports
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from .classify import compare
from .config import PageDiffConfig
from .fingerprint import hash_pages
from .models import DiffReport, Fingerprint, Side
from .report import write_reports

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Everything one run produced."""
    report: DiffReport
    old: List[Fingerprint]
    new: List[Fingerprint]
    outputs: Dict[str, str] = field(default_factory=dict)


def fingerprint_versions(cfg: PageDiffConfig):
    fp = cfg.fingerprint
    old = hash_pages(
        cfg.project.old,
        Side.OLD,
        algorithm=fp.algorithm,
        hash_size=fp.hash_size,
        workers=fp.workers,
        dpi=fp.pdf_dpi,
    )
    new = hash_pages(
        cfg.project.new,
        Side.NEW,
        algorithm=fp.algorithm,
        hash_size=fp.hash_size,
        workers=fp.workers,
        dpi=fp.pdf_dpi,
    )
    return old, new


def run_from_config(cfg: PageDiffConfig, *, write: bool = True) -> RunResult:
    """Run the full pipeline; reports are written to cfg.project.output_dir when `write` is set."""
    old, new = fingerprint_versions(cfg)

    al = cfg.alignment
    report = compare(
        old,
        new,
        al.threshold,
        relocate=al.relocate,
        band=al.band,
        gap_penalty=al.gap_penalty,
        substitute_penalty=al.substitute_penalty,
    )

    result = RunResult(report=report, old=old, new=new)
    if write:
        result.outputs = write_reports(
            report,
            old,
            new,
            cfg.project.output_dir,
            cfg.report.formats,
            title=cfg.report.title,
        )

    logger.info("Done: %s", "differences found" if report.has_differences else "versions match")
    return result
