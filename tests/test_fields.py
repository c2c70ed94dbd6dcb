"""
Tests for the read-or-default field helpers, on hand-built PyPDF2 objects.
"""

from PyPDF2.generic import (
    ArrayObject,
    BooleanObject,
    ByteStringObject,
    DictionaryObject,
    FloatObject,
    NameObject,
    NumberObject,
    TextStringObject,
)

from pdf_markup.backends.fields import (
    read_annotation_type,
    read_color,
    read_contents,
    read_ink_list,
    read_number,
    read_opacity,
    read_points,
    read_rect,
    read_stroke_width,
)
from pdf_markup.core.types import AnnotationColor, AnnotationType, PdfPoint, PdfRect


def nums(*values):
    return ArrayObject([FloatObject(v) for v in values])


class TestNumbersAndRects:

    def test_read_number(self):
        assert read_number(NumberObject(3)) == 3.0
        assert read_number(FloatObject(1.5)) == 1.5
        assert read_number(NameObject("/X")) is None
        assert read_number(BooleanObject(True)) is None
        assert read_number(None) is None

    def test_rect_needs_exactly_four_numbers(self):
        assert read_rect(nums(10, 10, 50, 30)) == PdfRect(10, 10, 50, 30)
        assert read_rect(nums(10, 10, 50)) is None
        assert read_rect(nums(10, 10, 50, 30, 1)) is None
        assert read_rect(ArrayObject([FloatObject(1), FloatObject(2), NameObject("/A"), FloatObject(4)])) is None
        assert read_rect(None) is None

    def test_rect_accepts_integers(self):
        rect = ArrayObject([NumberObject(0), NumberObject(0), NumberObject(612), NumberObject(792)])
        assert read_rect(rect) == PdfRect(0, 0, 612, 792)


class TestOptionalFields:

    def test_color_defaults(self):
        assert read_color(None) == AnnotationColor()
        assert read_color(nums(0, 0)) == AnnotationColor()
        assert read_color(nums(0.1, 0.2, 0.3)) == AnnotationColor(0.1, 0.2, 0.3)

    def test_color_component_fallback(self):
        color = ArrayObject([FloatObject(0.5), NameObject("/bad"), FloatObject(0)])
        assert read_color(color) == AnnotationColor(0.5, 0.92, 0.0)

    def test_contents(self):
        assert read_contents(TextStringObject("Note")) == "Note"
        assert read_contents(ByteStringObject("café".encode("utf-8"))) == "café"
        assert read_contents(None) == ""
        assert read_contents(NumberObject(1)) == ""

    def test_opacity_defaults_to_opaque(self):
        assert read_opacity(None) == 1.0
        assert read_opacity(FloatObject(0.4)) == 0.4

    def test_stroke_width(self):
        border = DictionaryObject({NameObject("/W"): FloatObject(3)})
        assert read_stroke_width(border) == 3.0
        assert read_stroke_width(DictionaryObject()) == 2.0
        assert read_stroke_width(None) == 2.0

    def test_annotation_type_mapping(self):
        assert read_annotation_type(NameObject("/StrikeOut")) is AnnotationType.STRIKETHROUGH
        assert read_annotation_type(NameObject("/Ink")) is AnnotationType.INK
        assert read_annotation_type(NameObject("/Link")) is None
        assert read_annotation_type(TextStringObject("/Highlight")) is None


class TestGeometry:

    def test_points_in_pairs(self):
        assert read_points(nums(1, 2, 3, 4)) == [PdfPoint(1, 2), PdfPoint(3, 4)]

    def test_dangling_coordinate_ignored(self):
        assert read_points(nums(1, 2, 3)) == [PdfPoint(1, 2)]

    def test_non_array_points(self):
        assert read_points(None) == []
        assert read_points(NumberObject(4)) == []

    def test_ink_list_drops_empty_strokes(self):
        ink = ArrayObject([nums(1, 2, 3, 4), ArrayObject(), NumberObject(7), nums(5, 6)])
        assert read_ink_list(ink) == [
            [PdfPoint(1, 2), PdfPoint(3, 4)],
            [PdfPoint(5, 6)],
        ]
