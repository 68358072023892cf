"""MeshLedger Core - configuration, logging and the error hierarchy."""

from .config import CoreSettings, clear_config_cache, get_config
from .exceptions import (
    AuditViolation,
    CapacityError,
    ConfigException,
    ConflictError,
    ConsensusError,
    DuplicateDecisionError,
    DuplicateProposalError,
    FaultyNodeError,
    KnowledgeConflictError,
    LivenessViolation,
    MeshLedgerError,
    NetworkError,
    NetworkFault,
    NoKnownBlockError,
    NotApplicableError,
    NotFoundError,
    PrematureDecisionError,
    RegistryError,
    RoleError,
    SafetyViolation,
    SelfLinkError,
    UnproposedValueError,
    ValidationError,
    ValidationRule,
)

__all__ = [
    # Config
    "CoreSettings",
    "clear_config_cache",
    "get_config",
    # Exceptions
    "AuditViolation",
    "CapacityError",
    "ConfigException",
    "ConflictError",
    "ConsensusError",
    "DuplicateDecisionError",
    "DuplicateProposalError",
    "FaultyNodeError",
    "KnowledgeConflictError",
    "LivenessViolation",
    "MeshLedgerError",
    "NetworkError",
    "NetworkFault",
    "NoKnownBlockError",
    "NotApplicableError",
    "NotFoundError",
    "PrematureDecisionError",
    "RegistryError",
    "RoleError",
    "SafetyViolation",
    "SelfLinkError",
    "UnproposedValueError",
    "ValidationError",
    "ValidationRule",
]
