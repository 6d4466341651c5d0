"""Document ingestion: signature gate, delimited-text and positional-text pipelines."""

from .delimited import decode_export, parse_delimited_export
from .pdf import parse_pdf_export
from .signature import is_pdf_document, validate_file_signature

__all__ = [
    "decode_export",
    "is_pdf_document",
    "parse_delimited_export",
    "parse_pdf_export",
    "validate_file_signature",
]
