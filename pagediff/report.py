"""
Render a DiffReport as text, JSON or a PDF document.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Dict, List, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .models import DiffReport, Fingerprint, Verdict
from .utils import page_label, short_label

logger = logging.getLogger(__name__)

_VERDICT_COLORS = {
    Verdict.MATCHED: colors.white,
    Verdict.MOVED: colors.HexColor("#fff2cc"),
    Verdict.ALTERED: colors.HexColor("#fde2c4"),
    Verdict.MISSING: colors.HexColor("#f8d0d0"),
    Verdict.INSERTED: colors.HexColor("#d5efd5"),
}


def render_text(report: DiffReport, old: List[Fingerprint], new: List[Fingerprint]) -> str:
    """Plain-text report: page mapping, missing pages, then counts."""
    lines = ["PAGE MAPPING:"]
    missing: List[str] = []

    for v in report.verdicts:
        o = page_label(old, v.old_index)
        n = page_label(new, v.new_index)
        if v.verdict is Verdict.MATCHED:
            lines.append(f"\t{n} MATCH {o} (DISTANCE: {v.distance})")
        elif v.verdict is Verdict.MOVED:
            lines.append(f"\t{n} MOVED FROM {o} (DISTANCE: {v.distance})")
        elif v.verdict is Verdict.ALTERED:
            lines.append(f"\t{n} ALTERED FROM {o} (DISTANCE: {v.distance})")
        elif v.verdict is Verdict.INSERTED:
            lines.append(f"\t{n} (NEW PAGE)")
        else:
            missing.append(o)

    if missing:
        lines.append("")
        lines.append("MISSING PAGES")
        lines.extend(f"\t{o}" for o in missing)

    lines.append("")
    lines.append("SUMMARY")
    for kind in Verdict:
        lines.append(f"\t{kind.value}: {report.count(kind)}")
    return "\n".join(lines) + "\n"


def render_json(report: DiffReport, old: List[Fingerprint], new: List[Fingerprint]) -> str:
    """The report as JSON, with page labels added to every verdict."""
    data = report.model_dump(mode="json")
    for entry, v in zip(data["verdicts"], report.verdicts):
        entry["old_page"] = page_label(old, v.old_index) if v.old_index is not None else None
        entry["new_page"] = page_label(new, v.new_index) if v.new_index is not None else None
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def save_report_pdf(
    report: DiffReport,
    old: List[Fingerprint],
    new: List[Fingerprint],
    out_pdf_path: str,
    *,
    title: str = "Page Diff Report",
) -> None:
    styles = getSampleStyleSheet()
    story = []

    story.append(Paragraph(f"<b>{title}</b>", styles["Title"]))
    story.append(Spacer(1, 0.5 * cm))

    story.append(Paragraph(f"<b>Old version pages:</b> {len(old)}", styles["Normal"]))
    story.append(Paragraph(f"<b>New version pages:</b> {len(new)}", styles["Normal"]))
    if report.threshold is not None:
        story.append(Paragraph(f"<b>Distance threshold:</b> {report.threshold}", styles["Normal"]))
    for kind in Verdict:
        story.append(Paragraph(f"<b>{kind.value.capitalize()}:</b> {report.count(kind)}", styles["Normal"]))
    story.append(Spacer(1, 0.5 * cm))

    rows = [["#", "Verdict", "Old page", "New page", "Distance"]]
    style_cmds = [
        ("GRID", (0, 0), (-1, -1), 0.4, colors.grey),
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
    ]
    for i, v in enumerate(report.verdicts, start=1):
        rows.append([
            str(i),
            v.verdict.value,
            short_label(page_label(old, v.old_index)),
            short_label(page_label(new, v.new_index)),
            "" if v.distance is None else str(v.distance),
        ])
        style_cmds.append(("BACKGROUND", (0, i), (-1, i), _VERDICT_COLORS[v.verdict]))

    table = Table(rows, repeatRows=1, colWidths=[1.2 * cm, 2.5 * cm, 5.5 * cm, 5.5 * cm, 2 * cm])
    table.setStyle(TableStyle(style_cmds))
    story.append(table)

    doc = SimpleDocTemplate(
        out_pdf_path,
        pagesize=A4,
        leftMargin=2 * cm,
        rightMargin=2 * cm,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
    )
    doc.build(story)


def write_reports(
    report: DiffReport,
    old: List[Fingerprint],
    new: List[Fingerprint],
    output_dir: str,
    formats: Sequence[str] = ("text",),
    *,
    title: str = "Page Diff Report",
) -> Dict[str, str]:
    """Write one file per requested format; returns {format: path}."""
    os.makedirs(output_dir, exist_ok=True)
    written: Dict[str, str] = {}

    for fmt in formats:
        if fmt == "text":
            path = os.path.join(output_dir, "report.txt")
            with open(path, "w", encoding="utf-8") as f:
                f.write(render_text(report, old, new))
        elif fmt == "json":
            path = os.path.join(output_dir, "report.json")
            with open(path, "w", encoding="utf-8") as f:
                f.write(render_json(report, old, new))
        elif fmt == "pdf":
            path = os.path.join(output_dir, "report.pdf")
            save_report_pdf(report, old, new, path, title=title)
        else:
            raise ValueError(f"Unknown report format '{fmt}'")
        logger.info("Wrote %s report: %s", fmt, path)
        written[fmt] = path

    return written
