from __future__ import annotations


class RedactionError(Exception):
    """Base class for redaction-related errors."""


class InvalidDocumentError(RedactionError):
    pass


class MalformedContentError(RedactionError):
    def __init__(self, offset: int, message: str):
        super().__init__(f"Malformed content stream at byte {offset}: {message}")
        self.offset = offset
        self.message = message


class MissingContentError(RedactionError):
    def __init__(self, page_number: int, xref: int, reason: str):
        super().__init__(f"Page {page_number}: content object {xref} unusable: {reason}")
        self.page_number = page_number
        self.xref = xref
        self.reason = reason
