from .models import FieldError, ValidatedPayload, ValidationResult
from .store import CONTRACT_NAMES, ContractStore

__all__ = [
    "CONTRACT_NAMES",
    "ContractStore",
    "FieldError",
    "ValidatedPayload",
    "ValidationResult",
]
