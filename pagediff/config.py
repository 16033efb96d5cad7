"""
YAML-driven configuration for pagediff.

Design choice:
- Every parameter lives in YAML; the `compare` CLI command builds the same
  model from flags.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .fingerprint import DEFAULT_ALGORITHM, DEFAULT_HASH_SIZE, HASH_ALGORITHMS

ReportFormat = Literal["text", "json", "pdf"]


class ProjectConfig(BaseModel):
    old: str
    new: str
    output_dir: str = "pagediff_output"


class FingerprintConfig(BaseModel):
    algorithm: str = DEFAULT_ALGORITHM
    hash_size: int = Field(DEFAULT_HASH_SIZE, ge=2)
    workers: int = Field(4, ge=1)
    pdf_dpi: int = Field(72, ge=18)

    @field_validator("algorithm")
    @classmethod
    def _known_algorithm(cls, v: str) -> str:
        if v not in HASH_ALGORITHMS:
            raise ValueError(f"unknown hash algorithm '{v}'")
        return v


class AlignmentConfig(BaseModel):
    threshold: int = Field(10, ge=0, description="Maximum fingerprint distance for 'the same page'.")
    band: Optional[int] = Field(None, ge=0, description="Diagonal band width; None computes the full table.")
    relocate: bool = True
    gap_penalty: Optional[int] = Field(None, ge=1)
    substitute_penalty: Optional[int] = Field(None, ge=1)


class ReportConfig(BaseModel):
    title: str = "Page Diff Report"
    formats: List[ReportFormat] = Field(default_factory=lambda: ["text"])


class RuntimeConfig(BaseModel):
    verbose: bool = True
    logfile: Optional[str] = Field(None, description="Also write log records to this file.")


class PageDiffConfig(BaseModel):
    project: ProjectConfig
    fingerprint: FingerprintConfig = Field(default_factory=FingerprintConfig)
    alignment: AlignmentConfig = Field(default_factory=AlignmentConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "PageDiffConfig":
        path = Path(path)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        return cls.model_validate(data)
