"""
Tests for the annotation model and its JSON form.
"""

import dataclasses

import pytest

from pdf_markup.core.types import (
    AnnotationColor,
    AnnotationData,
    AnnotationType,
    PdfPoint,
    PdfRect,
    SaveResult,
)


class TestAnnotationData:

    def test_defaults(self):
        annot = AnnotationData(AnnotationType.HIGHLIGHT, 0, PdfRect(10, 10, 50, 30))

        assert annot.color == AnnotationColor(1.0, 0.92, 0.23)
        assert annot.opacity == 0.5
        assert annot.stroke_width == 2.0
        assert annot.contents == ""
        assert annot.quad_points == ()
        assert annot.ink_paths == ()
        assert annot.id is None

    def test_is_frozen(self):
        annot = AnnotationData(AnnotationType.TEXT, 0, PdfRect(0, 0, 24, 24), contents="hi")
        with pytest.raises(dataclasses.FrozenInstanceError):
            annot.contents = "changed"

    def test_lists_become_tuples(self):
        annot = AnnotationData(
            AnnotationType.INK, 1, PdfRect(0, 0, 10, 10),
            ink_paths=[[PdfPoint(1, 2), PdfPoint(3, 4)], []],
        )
        assert annot.ink_paths == ((PdfPoint(1, 2), PdfPoint(3, 4)), ())

    def test_markup_types(self):
        assert AnnotationType.HIGHLIGHT.is_markup
        assert AnnotationType.UNDERLINE.is_markup
        assert AnnotationType.STRIKETHROUGH.is_markup
        assert not AnnotationType.INK.is_markup
        assert not AnnotationType.TEXT.is_markup


class TestJsonForm:

    def test_from_dict_minimal_uses_defaults(self):
        annot = AnnotationData.from_dict({
            "annotation_type": "underline",
            "page": 2,
            "rect": {"x1": 1, "y1": 2, "x2": 3, "y2": 4},
        })

        assert annot.annotation_type is AnnotationType.UNDERLINE
        assert annot.page == 2
        assert annot.rect == PdfRect(1.0, 2.0, 3.0, 4.0)
        assert annot.color == AnnotationColor()
        assert annot.opacity == 0.5

    def test_round_trip_through_dict(self):
        annot = AnnotationData(
            AnnotationType.INK, 0, PdfRect(0, 0, 100, 100),
            ink_paths=[[PdfPoint(5, 5), PdfPoint(50, 60)]],
            color=AnnotationColor(0.1, 0.2, 0.3),
            opacity=0.8,
            stroke_width=3.5,
            id="annot_1",
        )
        assert AnnotationData.from_dict(annot.to_dict()) == annot

    def test_to_dict_uses_wire_names(self):
        data = AnnotationData(AnnotationType.STRIKETHROUGH, 0, PdfRect(1, 2, 3, 4)).to_dict()

        assert data["annotation_type"] == "strikethrough"
        assert data["rect"] == {"x1": 1, "y1": 2, "x2": 3, "y2": 4}
        assert data["color"] == {"r": 1.0, "g": 0.92, "b": 0.23}

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            AnnotationData.from_dict({"annotation_type": "squiggly", "page": 0, "rect": {"x1": 0, "y1": 0, "x2": 1, "y2": 1}})

    def test_partial_color(self):
        assert AnnotationColor.from_dict({"r": 0.0}) == AnnotationColor(0.0, 0.92, 0.23)

    def test_save_result_dict(self):
        assert SaveResult(True, "/tmp/a.pdf", 3).to_dict() == {
            "success": True,
            "path": "/tmp/a.pdf",
            "annotations_count": 3,
        }
