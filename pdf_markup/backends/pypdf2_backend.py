from collections import deque
from io import BytesIO
from pathlib import Path
from typing import Deque, Dict, Iterator, List, Optional, Set, Tuple, Union
import logging
import os

from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PyPdfError
from PyPDF2.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    EncodedStreamObject,
    IndirectObject,
    NameObject,
    NullObject,
    PdfObject,
    StreamObject,
)

from pdf_markup.core.errors import AnnotationFailed, InvalidPageError, LoadError, SaveError

logger = logging.getLogger(__name__)

Source = Union[str, Path, bytes]

ANNOTS = NameObject("/Annots")


def resolve(obj: Optional[PdfObject]) -> Optional[PdfObject]:
    """Follow an indirect reference; direct objects come back unchanged."""
    if isinstance(obj, IndirectObject):
        return obj.get_object()
    return obj


class _GraphImport:
    """
    Copies every object reachable from the reader's trailer into writer slots.

    Each reader object gets exactly one writer slot, so shared objects stay
    shared and reference cycles (page /Parent, annotation /P) are preserved.
    Indirect objects are queued rather than recursed into.
    """

    def __init__(self, reader: PdfReader, writer: PdfWriter):
        self._reader = reader
        self._writer = writer
        self._slots: Dict[Tuple[int, int], IndirectObject] = {}
        self._pending: Deque[Tuple[IndirectObject, IndirectObject]] = deque()

    def bind(self, source: Optional[PdfObject], slot: IndirectObject) -> None:
        """Put `source` into an existing writer slot."""
        if isinstance(source, IndirectObject):
            key = (source.idnum, source.generation)
            if key in self._slots:
                return
            self._slots[key] = slot
            self._pending.append((source, slot))
        elif source is not None:
            self._writer._objects[slot.idnum - 1] = self._copy(source)

    def run(self) -> int:
        copied = 0
        while self._pending:
            source, slot = self._pending.popleft()
            obj = self._reader.get_object(source)
            # missing objects read as null, as in a non-strict PdfReader
            self._writer._objects[slot.idnum - 1] = NullObject() if obj is None else self._copy(obj)
            copied += 1
        return copied

    def _reference(self, source: IndirectObject) -> IndirectObject:
        key = (source.idnum, source.generation)
        slot = self._slots.get(key)
        if slot is None:
            slot = self._writer._add_object(NullObject())
            self._slots[key] = slot
            self._pending.append((source, slot))
        return slot

    def _copy(self, obj: PdfObject) -> PdfObject:
        if isinstance(obj, IndirectObject):
            return self._reference(obj)
        if isinstance(obj, StreamObject):
            stream = EncodedStreamObject() if isinstance(obj, EncodedStreamObject) else DecodedStreamObject()
            stream._data = obj._data
            for key, value in obj.items():
                stream[key] = self._copy(value)
            return stream
        if isinstance(obj, DictionaryObject):
            copy = DictionaryObject()
            for key, value in obj.items():
                copy[key] = self._copy(value)
            return copy
        if isinstance(obj, ArrayObject):
            return ArrayObject([self._copy(value) for value in obj])
        return obj


def _import_document(reader: PdfReader) -> PdfWriter:
    """A PdfWriter holding its own copy of the reader's whole object graph."""
    trailer = reader.trailer
    root = trailer.raw_get("/Root")
    catalog = resolve(root)
    if not isinstance(catalog, DictionaryObject):
        raise LoadError("Document catalog is not a dictionary")

    writer = PdfWriter()
    graph = _GraphImport(reader, writer)
    # catalog, page tree and info reuse the slots the writer already reserved
    graph.bind(root, writer._root)
    if "/Pages" in catalog:
        graph.bind(catalog.raw_get("/Pages"), writer._pages)
    if "/Info" in trailer:
        graph.bind(trailer.raw_get("/Info"), writer._info)
    copied = graph.run()

    writer._root_object = writer.get_object(writer._root)
    logger.debug(f"Imported {copied} indirect objects")
    return writer


class DocumentGraph:
    """
    Mutable object graph of one PDF, loaded privately for a single operation.

    The whole document is copied into a PdfWriter that owns every object, so
    objects can be added, changed and removed by reference, then written out
    once with `save`. Pages are addressed by 0-based index.
    """

    def __init__(self, writer: PdfWriter, name: str = "<bytes>"):
        self._writer = writer
        self.name = name
        self._page_refs: List[IndirectObject] = list(self._walk_pages())

    @classmethod
    def load(cls, source: Source) -> "DocumentGraph":
        name = "<bytes>" if isinstance(source, bytes) else str(source)
        try:
            stream = BytesIO(source) if isinstance(source, bytes) else source
            reader = PdfReader(stream)
            return cls(_import_document(reader), name)
        except LoadError as e:
            logger.error(f"PyPDF2 load failed for {name}: {e.message}")
            raise
        except (PyPdfError, OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"PyPDF2 load failed for {name}: {e}")
            raise LoadError(str(e)) from e

    def _walk_pages(self) -> Iterator[IndirectObject]:
        root = self._writer._root_object
        stack = [root.raw_get("/Pages")]
        seen: Set[int] = set()
        while stack:
            node_ref = stack.pop()
            if not isinstance(node_ref, IndirectObject) or node_ref.idnum in seen:
                continue
            seen.add(node_ref.idnum)
            node = node_ref.get_object()
            if not isinstance(node, DictionaryObject):
                continue
            kids = resolve(node.get("/Kids"))
            if isinstance(kids, ArrayObject):
                # reversed so pages pop off in document order
                stack.extend(reversed(list(kids)))
            else:
                yield node_ref

    @property
    def page_count(self) -> int:
        return len(self._page_refs)

    def page(self, index: int) -> Tuple[IndirectObject, DictionaryObject]:
        """Reference and dictionary of page `index`."""
        if index < 0 or index >= len(self._page_refs):
            raise InvalidPageError(index, len(self._page_refs))
        ref = self._page_refs[index]
        page = ref.get_object()
        if not isinstance(page, DictionaryObject):
            raise AnnotationFailed(f"Page {index} is not a dictionary")
        return ref, page

    def get_object(self, ref: PdfObject) -> Optional[PdfObject]:
        """Resolved object, or None for a reference that points nowhere."""
        try:
            return resolve(ref)
        except (IndexError, PyPdfError) as e:
            logger.debug(f"Dangling reference {ref!r} in {self.name}: {e}")
            return None

    def add_object(self, obj: PdfObject) -> IndirectObject:
        return self._writer._add_object(obj)

    def remove_key(self, dictionary: DictionaryObject, key: str) -> None:
        dictionary.pop(NameObject(key), None)

    # --- /Annots access ---

    def read_annots(self, page: DictionaryObject) -> List[PdfObject]:
        """Entries of the page's annotation array, direct or behind a reference."""
        annots = resolve(page.get(ANNOTS))
        if not isinstance(annots, ArrayObject):
            return []
        return list(annots)

    def write_annots(self, page: DictionaryObject, entries: List[PdfObject]) -> None:
        # Always a direct array; an indirect /Annots array is left orphaned.
        page[ANNOTS] = ArrayObject(entries)

    # --- Serialization ---

    def save(self, dest: Union[str, Path]) -> None:
        """Serialize the whole graph and write it to `dest` in one go."""
        buffer = BytesIO()
        try:
            self._writer.write(buffer)
        except (PyPdfError, ValueError, TypeError, KeyError) as e:
            logger.error(f"PyPDF2 serialization failed for {self.name}: {e}")
            raise SaveError(str(e)) from e

        try:
            f = open(dest, "wb")
        except OSError as e:
            # nothing was opened, so an existing file is still intact
            logger.error(f"Opening {dest} failed: {e}")
            raise SaveError(str(e)) from e

        try:
            with f:
                f.write(buffer.getvalue())
        except OSError as e:
            logger.error(f"Writing {dest} failed: {e}")
            _remove_partial(dest)
            raise SaveError(str(e)) from e
        logger.debug(f"Saved {self.name} to {dest}")


def _remove_partial(dest: Union[str, Path]) -> None:
    try:
        os.remove(dest)
    except OSError as e:
        logger.warning(f"Could not remove partial file {dest}: {e}")
