"""
Page enumeration: turn a document version on disk into ordered page images.

A version is either a directory of image files (page order = filename order)
or a PDF file whose pages are rasterized with PyMuPDF.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator, List, Tuple

import fitz  # PyMuPDF
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

PageLoader = Callable[[], Image.Image]


class PageDecodeError(RuntimeError):
    """A page image could not be read or decoded."""


def list_pages(directory: str | Path) -> List[Path]:
    """Regular files of `directory`, sorted by path."""
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Page directory not found: {directory}")
    return sorted(p for p in directory.iterdir() if p.is_file())


def load_image(path: str | Path) -> Image.Image:
    path = Path(path)
    try:
        with Image.open(path) as img:
            img.load()
            return img.convert("RGB")
    except (OSError, UnidentifiedImageError) as e:
        raise PageDecodeError(f"decode {path.name}: {e}") from e


def iter_pdf_pages(pdf_path: str | Path, dpi: int = 72) -> Iterator[Tuple[str, Image.Image]]:
    """
    Rasterize the pages of a PDF one at a time, in page order.
    Labels are '<file>#<page number>' (1-based).
    """
    pdf_path = Path(pdf_path)
    scale = dpi / 72.0
    mat = fitz.Matrix(scale, scale)
    try:
        doc = fitz.open(pdf_path)
    except (RuntimeError, ValueError) as e:
        raise PageDecodeError(f"open {pdf_path.name}: {e}") from e

    try:
        logger.debug("Rendering %d PDF pages from %s", len(doc), pdf_path)
        for pno in range(len(doc)):
            pix = doc[pno].get_pixmap(matrix=mat, alpha=False)
            img = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
            yield f"{pdf_path.name}#{pno + 1}", img
    finally:
        doc.close()


def open_pages(source: str | Path, *, dpi: int = 72) -> Iterator[Tuple[str, PageLoader]]:
    """
    Ordered (label, loader) pairs for every page of `source`.
    Directory pages are decoded by the loader. PDF pages are rendered as the
    iterator advances, on the consuming thread, since a fitz document must
    not be shared between threads.
    """
    source = Path(source)
    if source.is_file() and source.suffix.lower() == ".pdf":
        return ((label, (lambda img=img: img)) for label, img in iter_pdf_pages(source, dpi=dpi))

    if not source.exists():
        raise FileNotFoundError(f"Document not found: {source}")

    paths = list_pages(source)
    return iter([(str(p), (lambda p=p: load_image(p))) for p in paths])
