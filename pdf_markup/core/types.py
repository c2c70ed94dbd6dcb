from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

DEFAULT_OPACITY = 0.5
DEFAULT_STROKE_WIDTH = 2.0


class AnnotationType(str, Enum):
    HIGHLIGHT = "highlight"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    INK = "ink"      # freehand drawing
    TEXT = "text"    # sticky note

    @property
    def is_markup(self) -> bool:
        return self in (AnnotationType.HIGHLIGHT, AnnotationType.UNDERLINE, AnnotationType.STRIKETHROUGH)


@dataclass(frozen=True)
class PdfRect:
    """Bounding box in PDF user space (origin bottom-left, y up)."""
    x1: float
    y1: float
    x2: float
    y2: float

    def to_dict(self) -> Dict[str, float]:
        return {"x1": self.x1, "y1": self.y1, "x2": self.x2, "y2": self.y2}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PdfRect":
        return cls(float(data["x1"]), float(data["y1"]), float(data["x2"]), float(data["y2"]))


@dataclass(frozen=True)
class PdfPoint:
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PdfPoint":
        return cls(float(data["x"]), float(data["y"]))


@dataclass(frozen=True)
class AnnotationColor:
    r: float = 1.0
    g: float = 0.92
    b: float = 0.23

    def to_dict(self) -> Dict[str, float]:
        return {"r": self.r, "g": self.g, "b": self.b}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnnotationColor":
        default = cls()
        return cls(
            float(data.get("r", default.r)),
            float(data.get("g", default.g)),
            float(data.get("b", default.b)),
        )


def _points(raw: Sequence[Any]) -> Tuple[PdfPoint, ...]:
    return tuple(p if isinstance(p, PdfPoint) else PdfPoint.from_dict(p) for p in raw)


@dataclass(frozen=True)
class AnnotationData:
    """
    One annotation instance, independent of how it is laid out in the file.

    `quad_points` is only meaningful for markup types, `ink_paths` (one
    sequence per stroke) and `stroke_width` only for ink, `contents` only for
    text notes. `id` belongs to the caller and is never written to the PDF.
    """

    annotation_type: AnnotationType
    page: int
    rect: PdfRect
    quad_points: Tuple[PdfPoint, ...] = ()
    ink_paths: Tuple[Tuple[PdfPoint, ...], ...] = ()
    contents: str = ""
    color: AnnotationColor = field(default_factory=AnnotationColor)
    opacity: float = DEFAULT_OPACITY
    stroke_width: float = DEFAULT_STROKE_WIDTH
    id: Optional[str] = None

    def __post_init__(self):
        # Accept lists from callers but keep the instance immutable
        object.__setattr__(self, "annotation_type", AnnotationType(self.annotation_type))
        object.__setattr__(self, "quad_points", _points(self.quad_points))
        object.__setattr__(self, "ink_paths", tuple(_points(path) for path in self.ink_paths))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "annotation_type": self.annotation_type.value,
            "page": self.page,
            "rect": self.rect.to_dict(),
            "quad_points": [p.to_dict() for p in self.quad_points],
            "ink_paths": [[p.to_dict() for p in path] for path in self.ink_paths],
            "contents": self.contents,
            "color": self.color.to_dict(),
            "opacity": self.opacity,
            "stroke_width": self.stroke_width,
            "id": self.id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnnotationData":
        """Build an instance from its JSON form; missing optional keys take the defaults."""
        raw_type = str(data["annotation_type"]).lower()
        try:
            annotation_type = AnnotationType(raw_type)
        except ValueError:
            raise ValueError(f"Unknown annotation type: {data['annotation_type']}")

        color = data.get("color")
        return cls(
            annotation_type=annotation_type,
            page=int(data["page"]),
            rect=PdfRect.from_dict(data["rect"]),
            quad_points=data.get("quad_points") or (),
            ink_paths=data.get("ink_paths") or (),
            contents=str(data.get("contents") or ""),
            color=AnnotationColor.from_dict(color) if color else AnnotationColor(),
            opacity=float(data.get("opacity", DEFAULT_OPACITY)),
            stroke_width=float(data.get("stroke_width", DEFAULT_STROKE_WIDTH)),
            id=data.get("id"),
        )


@dataclass(frozen=True)
class SaveResult:
    success: bool
    path: str
    annotations_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "path": self.path, "annotations_count": self.annotations_count}
