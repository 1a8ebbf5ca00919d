from setkeeper.models.card import CardRecord, extract_number, identity_of, is_displayable
from setkeeper.models.collection import CollectionEntry, CollectionState, migrate_blob
from setkeeper.models.failure import (
    ApiResponse,
    FailureDetail,
    FailureKind,
    KnownError,
    OutcomeType,
    SetUnavailableError,
    create_success,
    create_unknown_failure,
    finalize_response,
)
from setkeeper.models.set_definition import (
    SETS,
    PlaceholderDescriptor,
    SetDefinition,
    UnknownSetError,
    get_set_definition,
)

__all__ = [
    "ApiResponse",
    "CardRecord",
    "CollectionEntry",
    "CollectionState",
    "FailureDetail",
    "FailureKind",
    "KnownError",
    "OutcomeType",
    "PlaceholderDescriptor",
    "SETS",
    "SetDefinition",
    "SetUnavailableError",
    "UnknownSetError",
    "create_success",
    "create_unknown_failure",
    "extract_number",
    "finalize_response",
    "get_set_definition",
    "identity_of",
    "is_displayable",
    "migrate_blob",
]
