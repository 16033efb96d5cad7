from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from pagediff.models import (
    DiffReport,
    EditOp,
    Fingerprint,
    OpKind,
    PageSequenceError,
    PageVerdict,
    Side,
    Verdict,
    validate_sequence,
)


def test_edit_op_constructors():
    assert EditOp.match(1, 2, 3) == EditOp(OpKind.MATCH, 1, 2, 3)
    assert EditOp.delete(4).new_idx is None
    assert EditOp.insert(5).old_idx is None
    assert EditOp.substitute(0, 0, 40).kind is OpKind.SUBSTITUTE
    assert EditOp.relocation(2, 0, 1) == EditOp(OpKind.MATCH, 2, 0, 1, relocated=True)
    assert EditOp.match(2, 0, 1) != EditOp.relocation(2, 0, 1)


def test_fingerprint_is_immutable():
    fp = Fingerprint(sequence_index=0, side=Side.OLD, bits=7)
    with pytest.raises(AttributeError):
        fp.bits = 8  # type: ignore[misc]


def test_validate_sequence_accepts_well_formed():
    pages = [Fingerprint(sequence_index=i, side=Side.NEW, bits=i) for i in range(3)]
    validate_sequence(pages, Side.NEW)
    validate_sequence([], Side.OLD)


@pytest.mark.parametrize("indices", [[1, 2], [0, 0], [0, 2], [1, 0]])
def test_validate_sequence_rejects_bad_indices(indices):
    pages = [Fingerprint(sequence_index=i, side=Side.OLD, bits=0) for i in indices]
    with pytest.raises(PageSequenceError):
        validate_sequence(pages, Side.OLD)


def test_page_sequence_error_is_value_error():
    assert issubclass(PageSequenceError, ValueError)


def test_diff_report_is_frozen_and_serializes_verdict_names():
    report = DiffReport(
        verdicts=[PageVerdict(verdict=Verdict.MISSING, old_index=3)],
        summary={Verdict.MISSING: 1},
        threshold=6,
    )
    with pytest.raises(ValidationError):
        report.threshold = 7  # type: ignore[misc]

    data = json.loads(report.model_dump_json())
    assert data["verdicts"][0]["verdict"] == "missing"
    assert data["summary"] == {"missing": 1}
    assert data["has_differences"] is True
    assert report.count(Verdict.MATCHED) == 0


def test_page_verdict_rejects_negative_distance():
    with pytest.raises(ValidationError):
        PageVerdict(verdict=Verdict.MATCHED, old_index=0, new_index=0, distance=-1)


def test_diff_report_contents_are_read_only():
    report = DiffReport(
        verdicts=[PageVerdict(verdict=Verdict.MATCHED, old_index=0, new_index=0, distance=0)],
        summary={Verdict.MATCHED: 1},
    )
    assert isinstance(report.verdicts, tuple)
    with pytest.raises(AttributeError):
        report.verdicts.append(PageVerdict(verdict=Verdict.MISSING, old_index=9))  # type: ignore[attr-defined]
    with pytest.raises(TypeError):
        report.summary[Verdict.MISSING] = 5  # type: ignore[index]

    assert report.has_differences is False
    assert json.loads(report.model_dump_json())["has_differences"] is False


def test_diff_report_default_summary_is_read_only():
    report = DiffReport()
    with pytest.raises(TypeError):
        report.summary[Verdict.MISSING] = 1  # type: ignore[index]
    assert report.exit_code() == 0
