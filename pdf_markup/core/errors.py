from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    LOAD = "load"
    SAVE = "save"
    INVALID_PAGE = "invalid_page"
    ANNOTATION_FAILED = "annotation_failed"


class AnnotationError(Exception):
    """Base error for every annotation operation; `kind` tells them apart."""

    kind: ErrorKind = ErrorKind.ANNOTATION_FAILED
    prefix = "Annotation error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.prefix}: {self.message}"


class LoadError(AnnotationError):
    kind = ErrorKind.LOAD
    prefix = "Failed to load PDF"


class SaveError(AnnotationError):
    kind = ErrorKind.SAVE
    prefix = "Failed to save PDF"


class InvalidPageError(AnnotationError):
    kind = ErrorKind.INVALID_PAGE
    prefix = "Invalid page index"

    def __init__(self, index: int, page_count: Optional[int] = None):
        super().__init__(str(index))
        self.index = index
        self.page_count = page_count


class AnnotationFailed(AnnotationError):
    kind = ErrorKind.ANNOTATION_FAILED
