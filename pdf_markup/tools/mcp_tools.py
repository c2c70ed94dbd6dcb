import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from mcp.server.fastmcp import FastMCP

from pdf_markup.backends.decoder import get_annotations as backend_get_annotations
from pdf_markup.backends.encoder import save_annotations as backend_save_annotations
from pdf_markup.backends.remover import (
    clear_page_annotations as backend_clear_page_annotations,
    remove_annotation as backend_remove_annotation,
)
from pdf_markup.core.bbox import (
    ensure_min_size,
    ink_bounds,
    normalize_rect,
    points_bounds,
    text_note_rect,
)
from pdf_markup.core.errors import AnnotationError
from pdf_markup.core.paths import find_file, validate_destination, write_in_place
from pdf_markup.core.types import (
    DEFAULT_STROKE_WIDTH,
    AnnotationData,
    AnnotationType,
    PdfPoint,
    PdfRect,
)

logger = logging.getLogger(__name__)

mcp = FastMCP("PDF Markup")

T = TypeVar("T")


def _not_found(file_path: str) -> str:
    return (
        "Error: Could not find file '{file}'. Provide an absolute path or place the file within the configured accessible directories."
    ).format(file=file_path)


def _fill_geometry(data: Dict[str, Any]) -> Dict[str, Any]:
    """Derive a missing `rect` from the annotation's own geometry.

    - ink: bounding box of all strokes grown by the stroke width
    - markup: `start`/`end` drag corners (min size enforced), else the quad points' bounds
    - text: 24pt icon box hanging from `anchor`
    """
    if data.get("rect"):
        return data

    filled = dict(data)
    kind = AnnotationType(str(data.get("annotation_type", "")).lower())
    if kind is AnnotationType.INK and data.get("ink_paths"):
        paths = [[PdfPoint.from_dict(p) for p in path] for path in data["ink_paths"]]
        rect = ink_bounds(paths, float(data.get("stroke_width", DEFAULT_STROKE_WIDTH)))
    elif kind.is_markup and data.get("start") and data.get("end"):
        rect = ensure_min_size(normalize_rect(PdfPoint.from_dict(data["start"]), PdfPoint.from_dict(data["end"])))
    elif kind.is_markup and data.get("quad_points"):
        rect = points_bounds([PdfPoint.from_dict(p) for p in data["quad_points"]])
    elif kind is AnnotationType.TEXT and data.get("anchor"):
        rect = text_note_rect(PdfPoint.from_dict(data["anchor"]))
    else:
        raise ValueError(f"Annotation of type '{kind.value}' needs a rect")
    filled["rect"] = rect.to_dict()
    return filled


def _run_write(
    source: Path,
    dest_path: Optional[str],
    operation: Callable[[Path], T],
) -> Tuple[T, Path]:
    """Write to `dest_path`, or back over `source` through a temporary file.

    Returns the operation's result and the path the caller ends up with.
    """
    if dest_path:
        dest = validate_destination(dest_path)
        if not dest:
            raise ValueError(f"Destination not allowed: {dest_path}")
        if dest != source:
            return operation(dest), dest
    return write_in_place(source, operation), source


# ---------- Annotation tools ----------
@mcp.tool()
async def get_annotations(file_path: str, page: Optional[int] = None) -> str:
    """Read highlight, underline, strikethrough, ink and text annotations from a PDF.

    Parameters
    ----------
    file_path: str
        Filename (relative) or absolute path to the PDF. The file must reside within the configured accessible directories.
    page: Optional[int]
        0-based page index to restrict the result to, or omit for every page.
    """
    path = find_file(file_path)
    if not path:
        return _not_found(file_path)
    try:
        items = backend_get_annotations(path)
    except AnnotationError as e:
        logger.error(f"Annotation read failed for {path}: {e}")
        return f"Error: {e}"

    if page is not None:
        items = [a for a in items if a.page == page]
    result = {
        "file_name": path.name,
        "path": str(path),
        "page": "all" if page is None else page,
        "total_annotations": len(items),
        "annotations": [a.to_dict() for a in items],
    }
    return json.dumps(result, indent=2, ensure_ascii=False)


@mcp.tool()
async def save_annotations(
    file_path: str,
    annotations: List[Dict[str, Any]],
    dest_path: Optional[str] = None,
) -> str:
    """Add annotations to a PDF.

    Parameters
    ----------
    file_path: str
        Source PDF.
    annotations: list of objects
        Each has `annotation_type` (highlight, underline, strikethrough, ink, text), a 0-based `page`,
        and `rect` {x1, y1, x2, y2} in PDF points (origin bottom-left). Optional: `quad_points` [{x, y}],
        `ink_paths` [[{x, y}]], `contents`, `color` {r, g, b}, `opacity`, `stroke_width`.
        `rect` may be omitted for ink (derived from the strokes), for markup given `start`/`end`
        or `quad_points`, and for text given an `anchor` point.
    dest_path: Optional[str]
        Where to write the result. Omit to update `file_path` in place.
    """
    path = find_file(file_path)
    if not path:
        return _not_found(file_path)
    try:
        items = [AnnotationData.from_dict(_fill_geometry(a)) for a in annotations]
        result, written_to = _run_write(path, dest_path, lambda dest: backend_save_annotations(path, dest, items))
    except (AnnotationError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Saving annotations failed for {path}: {e}")
        return f"Error: {e}"

    payload = result.to_dict()
    # in-place saves report the source, not the temporary file
    payload["path"] = str(written_to)
    return json.dumps(payload, indent=2, ensure_ascii=False)


@mcp.tool()
async def remove_annotation(
    file_path: str,
    page_index: int,
    rect: Dict[str, float],
    dest_path: Optional[str] = None,
) -> str:
    """Remove every annotation on a page whose rect matches `rect` {x1, y1, x2, y2} within 1 point.

    The file is left untouched when nothing matches.
    """
    path = find_file(file_path)
    if not path:
        return _not_found(file_path)
    try:
        target = PdfRect.from_dict(rect)
        removed, _ = _run_write(path, dest_path, lambda dest: backend_remove_annotation(path, dest, page_index, target))
    except (AnnotationError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Removing annotation failed for {path}: {e}")
        return f"Error: {e}"
    return json.dumps({"file_name": path.name, "page_index": page_index, "removed": removed}, indent=2)


@mcp.tool()
async def clear_page_annotations(
    file_path: str,
    page_index: int,
    dest_path: Optional[str] = None,
) -> str:
    """Remove all annotations from one page and report how many were removed."""
    path = find_file(file_path)
    if not path:
        return _not_found(file_path)
    try:
        count, _ = _run_write(path, dest_path, lambda dest: backend_clear_page_annotations(path, dest, page_index))
    except (AnnotationError, ValueError) as e:
        logger.error(f"Clearing page {page_index} failed for {path}: {e}")
        return f"Error: {e}"
    return json.dumps({"file_name": path.name, "page_index": page_index, "removed_count": count}, indent=2)
