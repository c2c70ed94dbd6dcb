"""
Read-or-default helpers for annotation dictionary fields.

Each function takes one raw value from an annotation dictionary (possibly an
indirect reference, possibly missing) and returns a plain Python value,
falling back to the documented default when the value is absent or has the
wrong shape.
"""
from typing import List, Optional

from PyPDF2.generic import (
    ArrayObject,
    ByteStringObject,
    DictionaryObject,
    FloatObject,
    NameObject,
    NumberObject,
    PdfObject,
    TextStringObject,
)

from pdf_markup.backends.pypdf2_backend import resolve
from pdf_markup.core.types import (
    DEFAULT_STROKE_WIDTH,
    AnnotationColor,
    AnnotationType,
    PdfPoint,
    PdfRect,
)

DEFAULT_DECODED_OPACITY = 1.0

SUBTYPE_TO_TYPE = {
    "/Highlight": AnnotationType.HIGHLIGHT,
    "/Underline": AnnotationType.UNDERLINE,
    "/StrikeOut": AnnotationType.STRIKETHROUGH,
    "/Ink": AnnotationType.INK,
    "/Text": AnnotationType.TEXT,
}


def read_number(value: Optional[PdfObject]) -> Optional[float]:
    value = resolve(value)
    if isinstance(value, (NumberObject, FloatObject)):
        return float(value)
    return None


def read_annotation_type(value: Optional[PdfObject]) -> Optional[AnnotationType]:
    value = resolve(value)
    if not isinstance(value, NameObject):
        return None
    return SUBTYPE_TO_TYPE.get(str(value))


def read_rect(value: Optional[PdfObject]) -> Optional[PdfRect]:
    """Exactly four numbers, else None."""
    value = resolve(value)
    if not isinstance(value, ArrayObject) or len(value) != 4:
        return None
    coords = [read_number(v) for v in value]
    if any(c is None for c in coords):
        return None
    return PdfRect(*coords)


def read_color(value: Optional[PdfObject]) -> AnnotationColor:
    default = AnnotationColor()
    value = resolve(value)
    if not isinstance(value, ArrayObject) or len(value) < 3:
        return default
    r, g, b = (read_number(v) for v in value[:3])
    return AnnotationColor(
        default.r if r is None else r,
        default.g if g is None else g,
        default.b if b is None else b,
    )


def read_contents(value: Optional[PdfObject]) -> str:
    value = resolve(value)
    if isinstance(value, TextStringObject):
        return str(value)
    if isinstance(value, ByteStringObject):
        return bytes(value).decode("utf-8", errors="replace")
    return ""


def read_opacity(value: Optional[PdfObject]) -> float:
    opacity = read_number(value)
    return DEFAULT_DECODED_OPACITY if opacity is None else opacity


def read_points(value: Optional[PdfObject]) -> List[PdfPoint]:
    """Flat [x0 y0 x1 y1 ...] array as points; a dangling or non-numeric pair is skipped."""
    value = resolve(value)
    if not isinstance(value, ArrayObject):
        return []
    points = []
    for i in range(0, len(value) - 1, 2):
        x, y = read_number(value[i]), read_number(value[i + 1])
        if x is not None and y is not None:
            points.append(PdfPoint(x, y))
    return points


def read_ink_list(value: Optional[PdfObject]) -> List[List[PdfPoint]]:
    value = resolve(value)
    if not isinstance(value, ArrayObject):
        return []
    strokes = []
    for stroke in value:
        if not isinstance(resolve(stroke), ArrayObject):
            continue
        points = read_points(stroke)
        if points:
            strokes.append(points)
    return strokes


def read_stroke_width(value: Optional[PdfObject]) -> float:
    """Width from a border style dictionary (/BS), default 2.0."""
    value = resolve(value)
    if not isinstance(value, DictionaryObject):
        return DEFAULT_STROKE_WIDTH
    width = read_number(value.get("/W"))
    return DEFAULT_STROKE_WIDTH if width is None else width
