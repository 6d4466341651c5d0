"""File signature gate applied before any parsing.

- A document declared as PDF must start with the literal bytes ``%PDF``.
- A document declared as delimited text must not contain control bytes
  (below ``0x20``) other than tab, LF and CR in its first 1024 bytes.
"""

from __future__ import annotations

PDF_MAGIC = b"%PDF"
PDF_MEDIA_TYPE = "application/pdf"

_TEXT_PROBE_BYTES = 1024
_ALLOWED_CONTROL = frozenset({0x09, 0x0A, 0x0D})


def is_pdf_document(media_type: str | None, filename: str | None) -> bool:
    """Return True when the document declares itself as PDF (media type or name)."""

    if media_type and media_type.split(";", 1)[0].strip().lower() == PDF_MEDIA_TYPE:
        return True
    return bool(filename) and filename.lower().endswith(".pdf")


def looks_like_pdf(data: bytes) -> bool:
    return data[:4] == PDF_MAGIC


def looks_like_text(data: bytes) -> bool:
    return all(b >= 0x20 or b in _ALLOWED_CONTROL for b in data[:_TEXT_PROBE_BYTES])


def validate_file_signature(data: bytes, *, as_pdf: bool) -> bool:
    """Check ``data`` against the signature rules of its declared kind."""

    return looks_like_pdf(data) if as_pdf else looks_like_text(data)


__all__ = [
    "PDF_MAGIC",
    "PDF_MEDIA_TYPE",
    "is_pdf_document",
    "looks_like_pdf",
    "looks_like_text",
    "validate_file_signature",
]
