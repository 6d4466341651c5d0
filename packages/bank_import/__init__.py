"""Public interface for the ``bank_import`` package.

Only symbol re-exports live here; importing the package has no side effects
(no client creation, no logging handler attachment, no environment reads).
"""

from .api import import_document, parse_document
from .errors import (
    ImportFailure,
    ImportFailureKind,
    ImportOutcome,
    ImportSuccess,
    InvalidAmountFormat,
    InvalidDateFormat,
    TransientClassifierError,
)
from .models import (
    CATEGORY_LABELS,
    Classification,
    EnrichedTransaction,
    ParseResult,
    RawTransaction,
)
from .settings import ImportSettings

__all__ = [
    # API
    "import_document",
    "parse_document",
    # Outcomes / errors
    "ImportFailure",
    "ImportFailureKind",
    "ImportOutcome",
    "ImportSuccess",
    "InvalidAmountFormat",
    "InvalidDateFormat",
    "TransientClassifierError",
    # Models
    "CATEGORY_LABELS",
    "Classification",
    "EnrichedTransaction",
    "ParseResult",
    "RawTransaction",
    "ImportSettings",
]
