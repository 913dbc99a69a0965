"""Document-level metadata scrubbing."""

import pymupdf

from .logging import get_logger

logger = get_logger(__name__)


def _info_xref(doc: pymupdf.Document) -> int:
    kind, value = doc.xref_get_key(-1, "Info")
    if kind != "xref":
        return 0
    return int(value.split()[0])


def clear_metadata(doc: pymupdf.Document) -> None:
    """Empty the Info dictionary (standard and custom keys) and drop XMP metadata."""
    info_xref = _info_xref(doc)
    custom_keys = doc.xref_get_keys(info_xref) if info_xref else ()

    # Unlinks /Info from the trailer when given an empty dict.
    doc.set_metadata({})

    # Some PyMuPDF versions keep the dictionary and only blank the standard
    # entries; null out whatever is still linked.
    info_xref = _info_xref(doc)
    if info_xref:
        for key in doc.xref_get_keys(info_xref):
            doc.xref_set_key(info_xref, key, "null")

    doc.del_xml_metadata()
    logger.debug("Cleared document metadata (%d info key(s) present before)", len(custom_keys))
