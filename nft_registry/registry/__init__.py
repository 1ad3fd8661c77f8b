# Token registry package
from .token_registry import TokenRegistry, TokenRecord, RegistrySnapshot
from .ownership import OwnershipLedger
from .id_allocator import TokenIdAllocator, FIRST_TOKEN_ID
from .events import (
    EventLog, LoggedEvent, Event, EVENT_TYPES,
    Minted, RoyaltyUpdated, Transferred, AuthorityTransferred,
    Transfer, Approval, ApprovalForAll,
)
from .logger import EventLogger
from .errors import (
    ErrorCategory, ErrorCode, ErrorResponse,
    RegistryError, TokenNotFoundError, UnauthorizedError,
    InvalidIdentityError, InvalidArgumentError,
)
from .checkpoint import save_checkpoint, load_checkpoint, restore_registry, CheckpointData

__all__ = [
    "TokenRegistry", "TokenRecord", "RegistrySnapshot",
    "OwnershipLedger",
    "TokenIdAllocator", "FIRST_TOKEN_ID",
    "EventLog", "LoggedEvent", "Event", "EVENT_TYPES",
    "Minted", "RoyaltyUpdated", "Transferred", "AuthorityTransferred",
    "Transfer", "Approval", "ApprovalForAll",
    "EventLogger",
    "ErrorCategory", "ErrorCode", "ErrorResponse",
    "RegistryError", "TokenNotFoundError", "UnauthorizedError",
    "InvalidIdentityError", "InvalidArgumentError",
    "save_checkpoint", "load_checkpoint", "restore_registry", "CheckpointData",
]
