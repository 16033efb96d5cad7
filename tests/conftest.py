from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable

import fitz
import numpy as np
import pytest
from PIL import Image


def noise_image(seed: int, size: int = 96) -> Image.Image:
    """Random grayscale page; independent seeds give unrelated fingerprints."""
    rng = np.random.default_rng(seed)
    return Image.fromarray(rng.integers(0, 256, (size, size), dtype=np.uint8))


@pytest.fixture
def page_dir_factory(tmp_path: Path) -> Callable[[str, Iterable[int]], Path]:
    """Build a directory of PNG pages, one per seed, named in page order."""

    def make(name: str, seeds: Iterable[int]) -> Path:
        d = tmp_path / name
        d.mkdir()
        for i, seed in enumerate(seeds):
            noise_image(seed).save(d / f"page_{i:03d}.png")
        return d

    return make


@pytest.fixture
def pdf_factory(tmp_path: Path) -> Callable[[str, Iterable[int]], Path]:
    """Build a PDF whose pages each show one noise image."""

    def make(name: str, seeds: Iterable[int]) -> Path:
        doc = fitz.open()
        for seed in seeds:
            png = tmp_path / f"_{name}_{seed}.png"
            noise_image(seed).save(png)
            page = doc.new_page(width=144, height=144)
            page.insert_image(fitz.Rect(0, 0, 144, 144), filename=str(png))
        out = tmp_path / name
        doc.save(str(out))
        doc.close()
        return out

    return make
