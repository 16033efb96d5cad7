"""
Data models: page fingerprints, edit script operations and the diff report.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer, field_validator


class Side(str, Enum):
    OLD = "old"
    NEW = "new"


class OpKind(str, Enum):
    MATCH = "match"
    SUBSTITUTE = "substitute"
    DELETE = "delete"
    INSERT = "insert"


class Verdict(str, Enum):
    MATCHED = "matched"
    MOVED = "moved"
    ALTERED = "altered"
    MISSING = "missing"
    INSERTED = "inserted"


DIFFERENCE_VERDICTS = (Verdict.MOVED, Verdict.ALTERED, Verdict.MISSING, Verdict.INSERTED)


class PageSequenceError(ValueError):
    """A page sequence whose indices are not 0..n-1 in order (caller defect)."""


@dataclass(frozen=True)
class Fingerprint:
    """
    Perceptual hash of one page.
    `bits` holds a `width`-bit vector; `path` is only used for rendering.
    """
    sequence_index: int
    side: Side
    bits: int
    width: int = 64
    path: Optional[str] = None


@dataclass(frozen=True)
class EditOp:
    """
    One step of an alignment path. Indices are None on the side the op does not touch.
    `relocated` marks a MATCH paired after alignment from a DELETE and an INSERT.
    """
    kind: OpKind
    old_idx: Optional[int] = None
    new_idx: Optional[int] = None
    distance: Optional[int] = None
    relocated: bool = False

    @classmethod
    def match(cls, old_idx: int, new_idx: int, distance: int) -> "EditOp":
        return cls(OpKind.MATCH, old_idx, new_idx, distance)

    @classmethod
    def relocation(cls, old_idx: int, new_idx: int, distance: int) -> "EditOp":
        return cls(OpKind.MATCH, old_idx, new_idx, distance, relocated=True)

    @classmethod
    def substitute(cls, old_idx: int, new_idx: int, distance: int) -> "EditOp":
        return cls(OpKind.SUBSTITUTE, old_idx, new_idx, distance)

    @classmethod
    def delete(cls, old_idx: int) -> "EditOp":
        return cls(OpKind.DELETE, old_idx=old_idx)

    @classmethod
    def insert(cls, new_idx: int) -> "EditOp":
        return cls(OpKind.INSERT, new_idx=new_idx)


def validate_sequence(pages: List[Fingerprint], side: Side) -> None:
    """Raise PageSequenceError unless `pages` is a well-formed sequence for `side`."""
    for pos, fp in enumerate(pages):
        if fp.sequence_index != pos:
            raise PageSequenceError(
                f"{side.value} sequence: position {pos} carries index {fp.sequence_index}"
            )
        if fp.side is not side:
            raise PageSequenceError(
                f"{side.value} sequence: page {pos} belongs to the {fp.side.value} side"
            )


class PageVerdict(BaseModel):
    """Diagnosis for one edit script step."""
    model_config = ConfigDict(frozen=True)

    verdict: Verdict
    old_index: Optional[int] = Field(None, description="Page index in the old version, if any.")
    new_index: Optional[int] = Field(None, description="Page index in the new version, if any.")
    distance: Optional[int] = Field(None, ge=0, description="Fingerprint distance of the pair.")


class DiffReport(BaseModel):
    """Immutable outcome of one comparison, handed to the formatters."""
    model_config = ConfigDict(frozen=True)

    verdicts: Tuple[PageVerdict, ...] = ()
    summary: Mapping[Verdict, int] = Field(default_factory=lambda: MappingProxyType({}))
    threshold: Optional[int] = None

    @field_validator("summary", mode="after")
    @classmethod
    def _freeze_summary(cls, v: Mapping[Verdict, int]) -> Mapping[Verdict, int]:
        return MappingProxyType(dict(v))

    @field_serializer("summary")
    def _dump_summary(self, v: Mapping[Verdict, int]) -> Dict[str, int]:
        return {k.value: n for k, n in v.items()}

    @computed_field  # type: ignore[misc]
    @property
    def has_differences(self) -> bool:
        return any(self.summary.get(v, 0) for v in DIFFERENCE_VERDICTS)

    def count(self, verdict: Verdict) -> int:
        return self.summary.get(verdict, 0)

    def of_kind(self, verdict: Verdict) -> List[PageVerdict]:
        return [v for v in self.verdicts if v.verdict is verdict]

    def exit_code(self) -> int:
        return 1 if self.has_differences else 0
