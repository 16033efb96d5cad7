"""
Perceptual fingerprints for page images.

- Pages are hashed with imagehash and packed into a plain int bit vector.
- Distance between two fingerprints is the Hamming distance.
- Hashing a whole document runs on a thread pool; page order is preserved.
"""

from __future__ import annotations

import logging
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import imagehash
from PIL import Image

from .models import Fingerprint, Side
from .pages import load_image, open_pages

logger = logging.getLogger(__name__)


def _double_gradient(image: Image.Image, hash_size: int) -> List[bool]:
    """Horizontal and vertical gradient hashes concatenated."""
    horizontal = imagehash.dhash(image, hash_size=hash_size)
    vertical = imagehash.dhash_vertical(image, hash_size=hash_size)
    return _flatten(horizontal) + _flatten(vertical)


def _flatten(h: imagehash.ImageHash) -> List[bool]:
    return [bool(b) for b in h.hash.flatten()]


HASH_ALGORITHMS: Dict[str, Callable[[Image.Image, int], List[bool]]] = {
    "average": lambda img, n: _flatten(imagehash.average_hash(img, hash_size=n)),
    "phash": lambda img, n: _flatten(imagehash.phash(img, hash_size=n)),
    "dhash": lambda img, n: _flatten(imagehash.dhash(img, hash_size=n)),
    "dhash_vertical": lambda img, n: _flatten(imagehash.dhash_vertical(img, hash_size=n)),
    "whash": lambda img, n: _flatten(imagehash.whash(img, hash_size=n)),
    "double_gradient": _double_gradient,
}

DEFAULT_ALGORITHM = "double_gradient"
DEFAULT_HASH_SIZE = 8


def hamming(a: Fingerprint, b: Fingerprint) -> int:
    """Number of differing bits between two fingerprints."""
    if a.width != b.width:
        raise ValueError(f"Cannot compare a {a.width}-bit fingerprint with a {b.width}-bit one.")
    return bin(a.bits ^ b.bits).count("1")


def pack_bits(flags: Iterable[bool]) -> Tuple[int, int]:
    """Pack booleans (most significant first) into (value, width)."""
    value = 0
    width = 0
    for flag in flags:
        value = (value << 1) | (1 if flag else 0)
        width += 1
    return value, width


def _check_algorithm(algorithm: str) -> None:
    if algorithm not in HASH_ALGORITHMS:
        raise ValueError(
            f"Unknown hash algorithm '{algorithm}'. Choose one of: {', '.join(sorted(HASH_ALGORITHMS))}"
        )


def hash_bits(image: Image.Image, *, algorithm: str = DEFAULT_ALGORITHM, hash_size: int = DEFAULT_HASH_SIZE) -> Tuple[int, int]:
    _check_algorithm(algorithm)
    return pack_bits(HASH_ALGORITHMS[algorithm](image, hash_size))


def fingerprint_image(
    image: Image.Image,
    side: Side,
    index: int,
    *,
    algorithm: str = DEFAULT_ALGORITHM,
    hash_size: int = DEFAULT_HASH_SIZE,
    path: Optional[str] = None,
) -> Fingerprint:
    bits, width = hash_bits(image, algorithm=algorithm, hash_size=hash_size)
    return Fingerprint(sequence_index=index, side=side, bits=bits, width=width, path=path)


def hash_pages(
    source: str | Path,
    side: Side,
    *,
    algorithm: str = DEFAULT_ALGORITHM,
    hash_size: int = DEFAULT_HASH_SIZE,
    workers: int = 4,
    dpi: int = 72,
) -> List[Fingerprint]:
    """
    Fingerprint every page of `source` (image directory or PDF file).
    At most 2 * workers pages are loaded but not yet hashed at any time.
    The first page that cannot be decoded aborts the whole run.
    """
    _check_algorithm(algorithm)

    logger.info("Hashing pages from %s...", source)
    pages = open_pages(source, dpi=dpi)

    def work(item: Tuple[int, Tuple[str, Callable[[], Image.Image]]]) -> Fingerprint:
        index, (label, loader) = item
        image = loader()
        return fingerprint_image(image, side, index, algorithm=algorithm, hash_size=hash_size, path=label)

    workers = max(1, workers)
    fingerprints: List[Fingerprint] = []
    pending: deque[Future[Fingerprint]] = deque()
    with ThreadPoolExecutor(max_workers=workers) as pool:
        for item in enumerate(pages):
            pending.append(pool.submit(work, item))
            if len(pending) >= 2 * workers:
                fingerprints.append(pending.popleft().result())
        while pending:
            fingerprints.append(pending.popleft().result())

    logger.info("Hashed %d pages from %s", len(fingerprints), source)
    return fingerprints


def probe(first: str | Path, second: str | Path, *, hash_size: int = DEFAULT_HASH_SIZE) -> Dict[str, int]:
    """
    Distance between two images under every supported algorithm.
    Useful to pick an algorithm and a threshold for a given scan quality.
    """
    img1 = load_image(first)
    img2 = load_image(second)
    out: Dict[str, int] = {}
    for name in HASH_ALGORITHMS:
        a = fingerprint_image(img1, Side.OLD, 0, algorithm=name, hash_size=hash_size)
        b = fingerprint_image(img2, Side.NEW, 0, algorithm=name, hash_size=hash_size)
        out[name] = hamming(a, b)
    return out
