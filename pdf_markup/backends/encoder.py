from datetime import datetime, timezone
from itertools import groupby
from typing import Iterable, Optional, Sequence, Union
from pathlib import Path
import logging

from PyPDF2.generic import (
    ArrayObject,
    BooleanObject,
    DictionaryObject,
    FloatObject,
    IndirectObject,
    NameObject,
    NumberObject,
    TextStringObject,
)

from pdf_markup.backends.pypdf2_backend import DocumentGraph, Source
from pdf_markup.core.bbox import default_quad_points
from pdf_markup.core.types import AnnotationData, AnnotationType, PdfPoint, PdfRect, SaveResult

logger = logging.getLogger(__name__)

# Print (4) only; NoZoom (8) and NoRotate (16) are left unset.
ANNOTATION_FLAGS = 4

TYPE_TO_SUBTYPE = {
    AnnotationType.HIGHLIGHT: "/Highlight",
    AnnotationType.UNDERLINE: "/Underline",
    AnnotationType.STRIKETHROUGH: "/StrikeOut",
    AnnotationType.INK: "/Ink",
    AnnotationType.TEXT: "/Text",
}

TEXT_ICON = "/Comment"


def pdf_date(moment: Optional[datetime] = None) -> str:
    """PDF date string in UTC, e.g. D:20240131120000+00'00'."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("D:%Y%m%d%H%M%S+00'00'")


def _real(value: float) -> FloatObject:
    return FloatObject(value)


def _flatten(points: Iterable[PdfPoint]) -> ArrayObject:
    coords = ArrayObject()
    for p in points:
        coords.extend([_real(p.x), _real(p.y)])
    return coords


def _rect_array(rect: PdfRect) -> ArrayObject:
    return ArrayObject([_real(rect.x1), _real(rect.y1), _real(rect.x2), _real(rect.y2)])


def build_annotation_dict(
    annot: AnnotationData,
    page_ref: IndirectObject,
    timestamp: Optional[str] = None,
) -> DictionaryObject:
    """Annotation dictionary for `annot`, owned by the page at `page_ref`."""
    timestamp = timestamp or pdf_date()
    d = DictionaryObject()
    d[NameObject("/Type")] = NameObject("/Annot")
    d[NameObject("/Subtype")] = NameObject(TYPE_TO_SUBTYPE[annot.annotation_type])
    d[NameObject("/P")] = page_ref
    d[NameObject("/Rect")] = _rect_array(annot.rect)
    d[NameObject("/C")] = ArrayObject([_real(annot.color.r), _real(annot.color.g), _real(annot.color.b)])
    d[NameObject("/CA")] = _real(annot.opacity)
    d[NameObject("/F")] = NumberObject(ANNOTATION_FLAGS)
    d[NameObject("/CreationDate")] = TextStringObject(timestamp)
    d[NameObject("/M")] = TextStringObject(timestamp)

    if annot.annotation_type.is_markup:
        quads: Sequence[PdfPoint] = annot.quad_points or default_quad_points(annot.rect)
        d[NameObject("/QuadPoints")] = _flatten(quads)
    elif annot.annotation_type is AnnotationType.INK:
        # empty strokes are written as empty arrays, not dropped
        d[NameObject("/InkList")] = ArrayObject([_flatten(path) for path in annot.ink_paths])
        border = DictionaryObject()
        border[NameObject("/Type")] = NameObject("/Border")
        border[NameObject("/W")] = _real(annot.stroke_width)
        d[NameObject("/BS")] = border
    elif annot.annotation_type is AnnotationType.TEXT:
        d[NameObject("/Contents")] = TextStringObject(annot.contents)
        d[NameObject("/Name")] = NameObject(TEXT_ICON)
        d[NameObject("/Open")] = BooleanObject(False)
    return d


def add_annotations(graph: DocumentGraph, annotations: Sequence[AnnotationData]) -> int:
    """Append one new annotation object per instance to its page's /Annots."""
    ordered = sorted(annotations, key=lambda a: a.page)  # stable: per-page order kept

    # Validate every target first so a bad index leaves the graph untouched
    for annot in ordered:
        graph.page(annot.page)

    timestamp = pdf_date()
    for page_index, group in groupby(ordered, key=lambda a: a.page):
        page_ref, page = graph.page(page_index)
        new_refs = [graph.add_object(build_annotation_dict(a, page_ref, timestamp)) for a in group]
        graph.write_annots(page, graph.read_annots(page) + new_refs)
        logger.debug(f"Page {page_index}: appended {len(new_refs)} annotations")
    return len(ordered)


def save_annotations(
    source: Source,
    dest: Union[str, Path],
    annotations: Sequence[AnnotationData],
) -> SaveResult:
    """Load `source`, add `annotations`, and write the result to `dest`."""
    graph = DocumentGraph.load(source)
    count = add_annotations(graph, list(annotations))
    graph.save(dest)
    logger.info(f"Wrote {count} annotations to {dest}")
    return SaveResult(success=True, path=str(dest), annotations_count=count)
