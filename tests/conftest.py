"""
Pytest fixtures that build small PDFs with PyPDF2.

Pages are blank US Letter pages; annotations are raw dictionaries so tests
control every field, including malformed ones.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest
from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.generic import (
    ArrayObject,
    DictionaryObject,
    FloatObject,
    NameObject,
    PdfObject,
)


def annot_dict(subtype: str = "/Highlight", rect: Optional[Iterable[float]] = (10, 10, 50, 30), **fields: PdfObject) -> DictionaryObject:
    """Annotation dictionary with /Type, /Subtype and /Rect plus any extra `/Key=value` fields."""
    d = DictionaryObject()
    d[NameObject("/Type")] = NameObject("/Annot")
    d[NameObject("/Subtype")] = NameObject(subtype)
    if rect is not None:
        d[NameObject("/Rect")] = ArrayObject([FloatObject(v) for v in rect])
    for key, value in fields.items():
        d[NameObject("/" + key)] = value
    return d


def build_pdf(
    path: Path,
    page_count: int = 3,
    annots: Optional[Dict[int, List[PdfObject]]] = None,
    indirect_pages: Iterable[int] = (),
) -> Path:
    writer = PdfWriter()
    for _ in range(page_count):
        writer.add_blank_page(width=612, height=792)

    indirect_pages = set(indirect_pages)
    for index, objects in (annots or {}).items():
        page = writer.pages[index]
        array = ArrayObject([writer._add_object(obj) for obj in objects])
        page[NameObject("/Annots")] = writer._add_object(array) if index in indirect_pages else array

    with open(path, "wb") as f:
        writer.write(f)
    return path


def page_annots(path: Path, page_index: int) -> List[DictionaryObject]:
    """Resolved annotation dictionaries of one page, read back with a fresh reader."""
    page = PdfReader(str(path)).pages[page_index]
    if "/Annots" not in page:
        return []
    return [entry.get_object() for entry in page["/Annots"]]


@pytest.fixture
def pdf_factory(tmp_path):
    counter = {"n": 0}

    def make(**kwargs) -> Path:
        counter["n"] += 1
        return build_pdf(tmp_path / f"doc{counter['n']}.pdf", **kwargs)

    return make


@pytest.fixture
def blank_pdf(pdf_factory) -> Path:
    return pdf_factory(page_count=3)


@pytest.fixture
def dest(tmp_path) -> Path:
    return tmp_path / "out.pdf"
