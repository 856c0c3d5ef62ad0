"""Occupied-region boundary extraction.

Cells are bucketed with the map_server rule (dark = occupied, ``negate``
flips it). Every 8-connected occupied region that borders a free or unknown
cell yields one closed polygon: the region's outer boundary traced with
Moore-neighbour tracing, clockwise in pixel space (x right, y down).
"""

from __future__ import annotations

from collections import deque
from typing import List, Optional, Sequence, Tuple

import numpy as np

from casemap.utils.logging import log, log_performance

from .map_logic import Point
from .map_meta import MapMetadata
from .map_raster import RasterImage

CELL_FREE = 0
CELL_UNKNOWN = -1
CELL_OCCUPIED = 100

Contour = Tuple[Point, ...]

# Moore neighbourhood, clockwise on screen starting west: W NW N NE E SE S SW
_DX = (-1, -1, 0, 1, 1, 1, 0, -1)
_DY = (0, -1, -1, -1, 0, 1, 1, 1)
_DIRECTION = {(dx, dy): i for i, (dx, dy) in enumerate(zip(_DX, _DY))}
_WEST = 0


class _TraceError(RuntimeError):
    """Tracing did not close; only reachable on corrupted input."""


def classify(image: RasterImage, metadata: MapMetadata) -> np.ndarray:
    """
    栅格分类

    Returns:
        int8 array of shape (height, width) holding CELL_FREE,
        CELL_OCCUPIED or CELL_UNKNOWN.
    """
    occ = (255.0 - image.array().astype(np.float64)) / 255.0
    if metadata.negate:
        occ = 1.0 - occ

    cells = np.full(occ.shape, CELL_UNKNOWN, dtype=np.int8)
    free = occ <= metadata.free_thresh
    cells[(occ >= metadata.occupied_thresh) & ~free] = CELL_OCCUPIED
    cells[free] = CELL_FREE
    return cells


@log_performance(threshold_ms=500.0)
def extract_contours(image: RasterImage, metadata: MapMetadata) -> List[Contour]:
    """
    提取占用区域外轮廓

    Deterministic and side-effect free. Any internal inconsistency is
    logged and answered with an empty list; contours are an overlay only.
    """
    try:
        occupied = classify(image, metadata) == CELL_OCCUPIED
        return _trace_regions(occupied)
    except (_TraceError, ValueError, IndexError) as exc:
        log.warning("contour extraction failed, continuing without overlay: %s", exc)
        return []


def _border_cells(occupied: np.ndarray) -> np.ndarray:
    """Occupied cells with at least one free/unknown 8-neighbour (off-image ignored)."""
    padded = np.pad(occupied, 1, mode="constant", constant_values=True)
    h, w = occupied.shape
    touches = np.zeros_like(occupied)
    for dx, dy in zip(_DX, _DY):
        touches |= ~padded[1 + dy:1 + dy + h, 1 + dx:1 + dx + w]
    return occupied & touches


def _trace_regions(occupied: np.ndarray) -> List[Contour]:
    h, w = occupied.shape
    border = _border_cells(occupied)
    labels = np.zeros((h, w), dtype=np.int32)
    contours: List[Contour] = []
    next_label = 0

    # flatnonzero is row-major, so the first unlabeled hit is the region's
    # top-most, left-most pixel
    for flat in np.flatnonzero(occupied):
        y, x = divmod(int(flat), w)
        if labels[y, x]:
            continue
        next_label += 1
        size, has_border = _flood(occupied, border, labels, (x, y), next_label)
        if has_border:
            contours.append(_moore_trace(occupied, (x, y), size))

    log.debug("traced %d contour(s) from %d region(s)", len(contours), next_label)
    return contours


def _flood(
    occupied: np.ndarray,
    border: np.ndarray,
    labels: np.ndarray,
    seed: Tuple[int, int],
    label: int,
) -> Tuple[int, bool]:
    """8-connected BFS labelling. Returns (region size, touches free/unknown)."""
    h, w = occupied.shape
    q = deque([seed])
    labels[seed[1], seed[0]] = label
    size = 0
    has_border = False
    while q:
        cx, cy = q.popleft()
        size += 1
        has_border = has_border or bool(border[cy, cx])
        for dx, dy in zip(_DX, _DY):
            nx, ny = cx + dx, cy + dy
            if 0 <= nx < w and 0 <= ny < h and occupied[ny, nx] and not labels[ny, nx]:
                labels[ny, nx] = label
                q.append((nx, ny))
    return size, has_border


def _moore_trace(occupied: np.ndarray, start: Tuple[int, int], region_size: int) -> Contour:
    """
    Moore-neighbour boundary tracing from the region's first raster-scan pixel.

    Stops when the first move out of ``start`` is about to repeat, which also
    closes shapes that pass through ``start`` more than once. An isolated
    pixel gives a single vertex, a one-pixel sliver a there-and-back loop.
    """
    h, w = occupied.shape

    def inside(x: int, y: int) -> bool:
        return 0 <= x < w and 0 <= y < h and bool(occupied[y, x])

    path: List[Tuple[int, int]] = [start]
    current = start
    back = _WEST  # start is left-most on the top row, so west is background
    first_move: Optional[Tuple[Tuple[int, int], Tuple[int, int]]] = None
    # each boundary pixel is entered at most 4 times (once per side)
    max_steps = 4 * region_size + 8

    for _ in range(max_steps):
        step = _next_boundary_pixel(inside, current, back)
        if step is None:
            return (Point(float(start[0]), float(start[1])),)
        nxt, back = step
        move = (current, nxt)
        if first_move is None:
            first_move = move
        elif move == first_move:
            break
        path.append(nxt)
        current = nxt
    else:
        raise _TraceError(f"boundary from {start} did not close after {max_steps} steps")

    if len(path) > 1 and path[-1] == path[0]:
        path.pop()
    return tuple(Point(float(x), float(y)) for x, y in path)


def _next_boundary_pixel(inside, current: Tuple[int, int], back: int):
    """Clockwise sweep around ``current`` starting after the backtrack direction."""
    cx, cy = current
    for i in range(1, 9):
        d = (back + i) % 8
        nx, ny = cx + _DX[d], cy + _DY[d]
        if inside(nx, ny):
            # the last background cell checked becomes the backtrack of nxt
            p = (back + i - 1) % 8
            bx, by = cx + _DX[p], cy + _DY[p]
            return (nx, ny), _DIRECTION[(bx - nx, by - ny)]
    return None


def contours_to_json(contours: Sequence[Contour]) -> List[List[dict]]:
    return [[p.to_json() for p in contour] for contour in contours]
