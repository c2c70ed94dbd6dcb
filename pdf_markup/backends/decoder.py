from typing import List, Optional
import logging

from PyPDF2.generic import DictionaryObject, PdfObject

from pdf_markup.backends.fields import (
    read_annotation_type,
    read_color,
    read_contents,
    read_ink_list,
    read_opacity,
    read_points,
    read_rect,
    read_stroke_width,
)
from pdf_markup.backends.pypdf2_backend import DocumentGraph, Source
from pdf_markup.core.types import AnnotationData, AnnotationType

logger = logging.getLogger(__name__)


def parse_annotation(obj: Optional[PdfObject], page_index: int) -> Optional[AnnotationData]:
    """Decode one annotation dictionary, or None if it is unsupported or malformed."""
    if not isinstance(obj, DictionaryObject):
        return None

    annotation_type = read_annotation_type(obj.get("/Subtype"))
    if annotation_type is None:
        return None

    rect = read_rect(obj.get("/Rect"))
    if rect is None:
        return None

    quad_points = read_points(obj.get("/QuadPoints")) if annotation_type.is_markup else []
    ink_paths = read_ink_list(obj.get("/InkList")) if annotation_type is AnnotationType.INK else []

    return AnnotationData(
        annotation_type=annotation_type,
        page=page_index,
        rect=rect,
        quad_points=quad_points,
        ink_paths=ink_paths,
        contents=read_contents(obj.get("/Contents")),
        color=read_color(obj.get("/C")),
        opacity=read_opacity(obj.get("/CA")),
        stroke_width=read_stroke_width(obj.get("/BS")),
    )


def decode_page(graph: DocumentGraph, page_index: int) -> List[AnnotationData]:
    _, page = graph.page(page_index)
    items: List[AnnotationData] = []
    for entry in graph.read_annots(page):
        annot = parse_annotation(graph.get_object(entry), page_index)
        if annot is None:
            logger.debug(f"Skipping unsupported or malformed annotation on page {page_index}: {entry!r}")
            continue
        items.append(annot)
    return items


def get_annotations(source: Source) -> List[AnnotationData]:
    """Every supported annotation in the document, in page order then array order."""
    graph = DocumentGraph.load(source)
    items: List[AnnotationData] = []
    for page_index in range(graph.page_count):
        items.extend(decode_page(graph, page_index))
    logger.info(f"Decoded {len(items)} annotations from {graph.name}")
    return items
