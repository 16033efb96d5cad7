"""
Alignment engine: lowest-cost correspondence between two page sequences.

Global sequence alignment over a (|old|+1) x (|new|+1) table:
- diagonal pairs old[i-1] with new[j-1]: the Hamming distance when it is
  within the threshold, SUBSTITUTE_PENALTY otherwise
- up drops old[i-1] (DELETE), left adds new[j-1] (INSERT): GAP_PENALTY each
- ties resolve diagonal > up > left

The table lives in two flat arenas indexed by i * width + j.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .fingerprint import hamming
from .models import EditOp, Fingerprint, OpKind, Side, validate_sequence

logger = logging.getLogger(__name__)

# Values for 64-bit fingerprints: the gap exceeds any distance, and a
# substitution costs exactly two gaps (the tie goes to the diagonal).
GAP_PENALTY = 65
SUBSTITUTE_PENALTY = 2 * GAP_PENALTY

# A moved page may drift this many positions per point of distance.
RELOCATION_DISTANCE_DIVISOR = 5

_DIAG = 0
_UP = 1
_LEFT = 2

_INF = float("inf")


def default_penalties(old: List[Fingerprint], new: List[Fingerprint]) -> Tuple[int, int]:
    """(gap, substitute) penalties scaled to the fingerprint width."""
    widths = {fp.width for fp in old} | {fp.width for fp in new}
    if not widths:
        return GAP_PENALTY, SUBSTITUTE_PENALTY
    gap = max(widths) + 1
    return gap, 2 * gap


def _fill(
    old: List[Fingerprint],
    new: List[Fingerprint],
    threshold: int,
    gap: int,
    substitute: int,
    band: Optional[int],
) -> Tuple[bytearray, Optional[int]]:
    """
    Fill cost and choice arenas. With a band, only cells with
    |j - i| <= band + |n - m| are computed; the rest stay at infinity.
    Returns (choice, effective band or None).
    """
    n, m = len(old), len(new)
    width = m + 1
    limit = None if band is None else band + abs(n - m)

    cost: list = [_INF] * ((n + 1) * width)
    choice = bytearray((n + 1) * width)

    cost[0] = 0
    for i in range(1, n + 1):
        if limit is not None and i > limit:
            break
        cost[i * width] = i * gap
        choice[i * width] = _UP
    for j in range(1, m + 1):
        if limit is not None and j > limit:
            break
        cost[j] = j * gap
        choice[j] = _LEFT

    for i in range(1, n + 1):
        row = i * width
        prev = row - width
        if limit is None:
            lo, hi = 1, m
        else:
            lo, hi = max(1, i - limit), min(m, i + limit)
        a = old[i - 1]
        for j in range(lo, hi + 1):
            d = hamming(a, new[j - 1])
            best = cost[prev + j - 1] + (d if d <= threshold else substitute)
            move = _DIAG
            up = cost[prev + j] + gap
            if up < best:
                best, move = up, _UP
            left = cost[row + j - 1] + gap
            if left < best:
                best, move = left, _LEFT
            cost[row + j] = best
            choice[row + j] = move

    return choice, limit


def _backtrace(
    old: List[Fingerprint],
    new: List[Fingerprint],
    choice: bytearray,
    threshold: int,
    limit: Optional[int],
) -> Tuple[List[EditOp], bool]:
    """Follow recorded choices from the end corner. Also reports whether the path touched the band edge."""
    width = len(new) + 1
    i, j = len(old), len(new)
    ops: List[EditOp] = []
    on_edge = False

    while i > 0 or j > 0:
        if limit is not None and abs(j - i) >= limit:
            on_edge = True
        move = choice[i * width + j]
        if i > 0 and j > 0 and move == _DIAG:
            d = hamming(old[i - 1], new[j - 1])
            if d <= threshold:
                ops.append(EditOp.match(i - 1, j - 1, d))
            else:
                ops.append(EditOp.substitute(i - 1, j - 1, d))
            i -= 1
            j -= 1
        elif i > 0 and (j == 0 or move == _UP):
            ops.append(EditOp.delete(i - 1))
            i -= 1
        else:
            ops.append(EditOp.insert(j - 1))
            j -= 1

    ops.reverse()
    return ops, on_edge


def align(
    old: List[Fingerprint],
    new: List[Fingerprint],
    threshold: int,
    *,
    gap_penalty: Optional[int] = None,
    substitute_penalty: Optional[int] = None,
    band: Optional[int] = None,
) -> List[EditOp]:
    """
    Compute the lowest-cost edit script turning `old` into `new`.

    `band` restricts the table to a diagonal strip (performance only); when
    the best path reaches the strip edge, or costs as much as the cheapest
    conceivable path leaving the strip, the full table is computed instead.
    Penalties default to values scaled to the fingerprint width.
    """
    if threshold < 0:
        raise ValueError(f"threshold must be non-negative, got {threshold}")
    if band is not None and band < 0:
        raise ValueError(f"band must be non-negative, got {band}")
    validate_sequence(old, Side.OLD)
    validate_sequence(new, Side.NEW)

    gap, substitute = default_penalties(old, new)
    if gap_penalty is not None:
        gap = gap_penalty
    if substitute_penalty is not None:
        substitute = substitute_penalty

    if not old:
        return [EditOp.insert(j) for j in range(len(new))]
    if not new:
        return [EditOp.delete(i) for i in range(len(old))]

    if band is not None and band + abs(len(old) - len(new)) >= max(len(old), len(new)):
        band = None

    choice, limit = _fill(old, new, threshold, gap, substitute, band)
    ops, on_edge = _backtrace(old, new, choice, threshold, limit)

    if band is not None:
        # Any path leaving the strip needs at least this many gaps.
        outside = (2 * band + abs(len(old) - len(new)) + 2) * gap
        cost = script_cost(ops, gap_penalty=gap, substitute_penalty=substitute)
        on_edge = on_edge or cost >= outside

    if on_edge:
        logger.info("Banded alignment not conclusive (band=%d); recomputing full table", band)
        choice, _ = _fill(old, new, threshold, gap, substitute, None)
        ops, _ = _backtrace(old, new, choice, threshold, None)

    logger.debug(
        "Aligned %d -> %d pages: %d ops, cost=%d",
        len(old),
        len(new),
        len(ops),
        script_cost(ops, gap_penalty=gap, substitute_penalty=substitute),
    )
    return ops


def script_cost(ops: List[EditOp], *, gap_penalty: int = GAP_PENALTY, substitute_penalty: int = SUBSTITUTE_PENALTY) -> int:
    """Total cost of an edit script under the alignment cost model."""
    total = 0
    for op in ops:
        if op.kind is OpKind.MATCH:
            total += op.distance or 0
        elif op.kind is OpKind.SUBSTITUTE:
            total += substitute_penalty
        else:
            total += gap_penalty
    return total


def pair_relocations(
    ops: List[EditOp],
    old: List[Fingerprint],
    new: List[Fingerprint],
    threshold: int,
) -> List[EditOp]:
    """
    Turn DELETE/INSERT pairs whose pages match within `threshold` into a
    single relocated MATCH (a page that moved). The MATCH takes the DELETE's
    place so old-side order is kept; the INSERT is dropped.

    Candidates are ranked by distance + |old_idx - new_idx| // 5; the first
    deleted page in old order wins ties.
    """
    deleted = [op.old_idx for op in ops if op.kind is OpKind.DELETE]
    if not deleted:
        return list(ops)

    unclaimed = set(deleted)
    paired_old = {}
    paired_new = set()

    for op in ops:
        if op.kind is not OpKind.INSERT:
            continue
        page = new[op.new_idx]
        best: Optional[Tuple[int, int, int]] = None  # (score, old_idx, distance)
        for old_idx in deleted:
            if old_idx not in unclaimed:
                continue
            d = hamming(old[old_idx], page)
            if d > threshold:
                continue
            score = d + abs(old_idx - op.new_idx) // RELOCATION_DISTANCE_DIVISOR
            if best is None or score < best[0]:
                best = (score, old_idx, d)
        if best is None:
            continue
        _, old_idx, d = best
        unclaimed.discard(old_idx)
        paired_old[old_idx] = EditOp.relocation(old_idx, op.new_idx, d)
        paired_new.add(op.new_idx)

    if paired_old:
        logger.info("Paired %d relocated pages", len(paired_old))

    out: List[EditOp] = []
    for op in ops:
        if op.kind is OpKind.DELETE and op.old_idx in paired_old:
            out.append(paired_old[op.old_idx])
        elif op.kind is OpKind.INSERT and op.new_idx in paired_new:
            continue
        else:
            out.append(op)
    return out
