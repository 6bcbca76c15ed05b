"""Domain models for the bulk spreadsheet importer."""

from .config_models import ApiConfig, EndpointConfig, ImportConfig
from .error_record import ErrorCategory, RejectionEntry, RejectionSource
from .field_schema import FieldSchema, ImportKind, ImportSchema, get_schema
from .processing_result import ImportResult, ImportSummary, ReconcileOutcome, ValidationOutcome
from .row_data import AcceptedRecord, RawRow, ValidatedRecord

__all__ = [
    # Configuration models
    "ApiConfig",
    "EndpointConfig",
    "ImportConfig",
    # Schemas
    "FieldSchema",
    "ImportKind",
    "ImportSchema",
    "get_schema",
    # Rows
    "RawRow",
    "ValidatedRecord",
    "AcceptedRecord",
    # Errors
    "ErrorCategory",
    "RejectionEntry",
    "RejectionSource",
    # Results
    "ValidationOutcome",
    "ReconcileOutcome",
    "ImportSummary",
    "ImportResult",
]
