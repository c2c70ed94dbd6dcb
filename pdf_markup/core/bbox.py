from typing import Iterable, List, Sequence

from pdf_markup.core.types import PdfPoint, PdfRect

# --- Rectangle helpers ---
# All coordinates are PDF user space: origin bottom-left, y grows upward.

MIN_SIDE = 5.0
MIN_WIDTH = 20.0
MIN_HEIGHT = 12.0
TEXT_ICON_SIZE = 24.0


def normalize_rect(start: PdfPoint, end: PdfPoint) -> PdfRect:
    """Rectangle spanned by two opposite corners, in (left, bottom, right, top) order."""
    return PdfRect(
        min(start.x, end.x),
        min(start.y, end.y),
        max(start.x, end.x),
        max(start.y, end.y),
    )


def ensure_min_size(rect: PdfRect) -> PdfRect:
    """A drag that barely moved still yields a clickable box."""
    x2, y2 = rect.x2, rect.y2
    if x2 - rect.x1 < MIN_SIDE:
        x2 = rect.x1 + MIN_WIDTH
    if y2 - rect.y1 < MIN_SIDE:
        y2 = rect.y1 + MIN_HEIGHT
    return PdfRect(rect.x1, rect.y1, x2, y2)


def points_bounds(points: Sequence[PdfPoint], pad: float = 0.0) -> PdfRect:
    """Smallest rect holding every point, grown by `pad` on each side."""
    if not points:
        raise ValueError("Cannot compute bounds of an empty point set")
    return PdfRect(
        min(p.x for p in points) - pad,
        min(p.y for p in points) - pad,
        max(p.x for p in points) + pad,
        max(p.y for p in points) + pad,
    )


def ink_bounds(paths: Iterable[Sequence[PdfPoint]], stroke_width: float) -> PdfRect:
    """Bounding box of all strokes, grown by the stroke width."""
    points: List[PdfPoint] = [p for path in paths for p in path]
    return points_bounds(points, pad=stroke_width)


def default_quad_points(rect: PdfRect) -> List[PdfPoint]:
    """Quad covering the whole rect: top-left, top-right, bottom-left, bottom-right."""
    return [
        PdfPoint(rect.x1, rect.y2),
        PdfPoint(rect.x2, rect.y2),
        PdfPoint(rect.x1, rect.y1),
        PdfPoint(rect.x2, rect.y1),
    ]


def text_note_rect(anchor: PdfPoint, icon_size: float = TEXT_ICON_SIZE) -> PdfRect:
    """Icon box for a sticky note whose top-left corner sits at `anchor`."""
    return PdfRect(anchor.x, anchor.y - icon_size, anchor.x + icon_size, anchor.y)
