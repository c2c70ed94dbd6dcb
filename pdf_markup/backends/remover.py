from pathlib import Path
from typing import Optional, Union
import logging

from PyPDF2.generic import DictionaryObject, PdfObject

from pdf_markup.backends.fields import read_rect
from pdf_markup.backends.pypdf2_backend import DocumentGraph, Source
from pdf_markup.core.types import PdfRect

logger = logging.getLogger(__name__)

RECT_TOLERANCE = 1.0  # PDF points, per coordinate


def rect_matches(candidate: PdfRect, target: PdfRect, tolerance: float = RECT_TOLERANCE) -> bool:
    return (
        abs(candidate.x1 - target.x1) < tolerance
        and abs(candidate.y1 - target.y1) < tolerance
        and abs(candidate.x2 - target.x2) < tolerance
        and abs(candidate.y2 - target.y2) < tolerance
    )


def _entry_matches(graph: DocumentGraph, entry: PdfObject, target: PdfRect) -> bool:
    annot: Optional[PdfObject] = graph.get_object(entry)
    if not isinstance(annot, DictionaryObject):
        return False
    rect = read_rect(annot.get("/Rect"))
    return rect is not None and rect_matches(rect, target)


def remove_matching(graph: DocumentGraph, page_index: int, target: PdfRect) -> int:
    """Drop every annotation on the page whose /Rect matches `target`; return how many."""
    _, page = graph.page(page_index)
    entries = graph.read_annots(page)
    kept = [e for e in entries if not _entry_matches(graph, e, target)]
    removed = len(entries) - len(kept)
    if removed:
        graph.write_annots(page, kept)
    return removed


def remove_annotation(
    source: Source,
    dest: Union[str, Path],
    page_index: int,
    rect: PdfRect,
) -> bool:
    """
    Remove annotations on one page located at `rect` (within 1 point).

    `dest` is only written when something was removed.
    """
    graph = DocumentGraph.load(source)
    removed = remove_matching(graph, page_index, rect)
    if not removed:
        logger.info(f"No annotation at {rect} on page {page_index} of {graph.name}")
        return False
    graph.save(dest)
    logger.info(f"Removed {removed} annotations from page {page_index}, saved to {dest}")
    return True


def clear_page(graph: DocumentGraph, page_index: int) -> int:
    """Detach every annotation from the page. The annotation objects stay in the graph."""
    _, page = graph.page(page_index)
    count = len(graph.read_annots(page))
    graph.remove_key(page, "/Annots")
    return count


def clear_page_annotations(source: Source, dest: Union[str, Path], page_index: int) -> int:
    """Remove all annotations from one page; `dest` is only written if there were any."""
    graph = DocumentGraph.load(source)
    count = clear_page(graph, page_index)
    if count > 0:
        graph.save(dest)
        logger.info(f"Cleared {count} annotations from page {page_index}, saved to {dest}")
    return count
