"""
Classifier: turn an edit script into page verdicts.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .align import align, pair_relocations
from .models import DiffReport, EditOp, Fingerprint, OpKind, PageVerdict, Verdict

logger = logging.getLogger(__name__)


def classify(ops: List[EditOp], *, threshold: Optional[int] = None) -> DiffReport:
    """
    One verdict per op, in op order.

    A relocated MATCH is always MOVED and leaves the watermark alone. Any
    other MATCH is MOVED when its new index falls below the highest new
    index of the MATCHED pages seen so far (the watermark); otherwise it is
    MATCHED and raises the watermark.
    """
    verdicts: List[PageVerdict] = []
    watermark = -1

    for op in ops:
        if op.kind is OpKind.MATCH:
            if op.relocated or op.new_idx < watermark:
                kind = Verdict.MOVED
            else:
                kind = Verdict.MATCHED
                watermark = op.new_idx
            verdicts.append(PageVerdict(verdict=kind, old_index=op.old_idx, new_index=op.new_idx, distance=op.distance))
        elif op.kind is OpKind.SUBSTITUTE:
            verdicts.append(
                PageVerdict(verdict=Verdict.ALTERED, old_index=op.old_idx, new_index=op.new_idx, distance=op.distance)
            )
        elif op.kind is OpKind.DELETE:
            verdicts.append(PageVerdict(verdict=Verdict.MISSING, old_index=op.old_idx))
        else:
            verdicts.append(PageVerdict(verdict=Verdict.INSERTED, new_index=op.new_idx))

    summary: Dict[Verdict, int] = {v: 0 for v in Verdict}
    for pv in verdicts:
        summary[pv.verdict] += 1

    return DiffReport(verdicts=tuple(verdicts), summary=summary, threshold=threshold)


def compare(
    old: List[Fingerprint],
    new: List[Fingerprint],
    threshold: int,
    *,
    relocate: bool = True,
    band: Optional[int] = None,
    gap_penalty: Optional[int] = None,
    substitute_penalty: Optional[int] = None,
) -> DiffReport:
    """Align, pair relocated pages (unless disabled) and classify."""
    ops = align(
        old,
        new,
        threshold,
        gap_penalty=gap_penalty,
        substitute_penalty=substitute_penalty,
        band=band,
    )
    if relocate:
        ops = pair_relocations(ops, old, new, threshold)

    report = classify(ops, threshold=threshold)
    logger.info(
        "Verdicts: %s",
        ", ".join(f"{v.value}={report.count(v)}" for v in Verdict),
    )
    return report
