"""
Domain exceptions for the property custody core.

Five families are distinguished so callers can react by type:
validation problems (nothing written), conflicts (lost an optimistic race or
custody moved underneath the caller), invariant violations (the operation
would break a structural guarantee), referential blocks (deletion refused)
and storage failures.
"""

from typing import Any


class PropertyError(Exception):
    """Base exception for all custody-core errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(PropertyError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value else None,
            },
        )


class TransferValidationError(ValidationError):
    """One or more transfer fields are missing or inconsistent."""

    def __init__(self, errors: dict[str, str]):
        super().__init__(
            field="transfer",
            message="; ".join(f"{k}: {v}" for k, v in errors.items()),
        )
        self.errors = errors
        self.details["errors"] = errors


# Conflict Exceptions
class ConflictError(PropertyError):
    """Optimistic concurrency loss or a state the caller must resolve."""

    pass


class ItemNotAssignableError(ConflictError):
    """Item is not in a condition/status that allows custody assignment."""

    def __init__(self, property_number: str, condition: str, status: str):
        super().__init__(
            f"Item {property_number} cannot be assigned "
            f"(condition: {condition}, status: {status})",
            code="ITEM_NOT_ASSIGNABLE",
            details={
                "property_number": property_number,
                "condition": condition,
                "status": status,
            },
        )


class CustodyChangedError(ConflictError):
    """Item custody was changed by another operation."""

    def __init__(self, property_number: str, expected: str | None, actual: str | None):
        super().__init__(
            f"Custody of {property_number} changed: expected "
            f"{expected or 'no custodian'}, found {actual or 'no custodian'}",
            code="CUSTODY_CHANGED",
            details={
                "property_number": property_number,
                "expected_custodian": expected,
                "actual_custodian": actual,
            },
        )


class DuplicateTransferNumberError(ConflictError):
    """Transfer number already taken at insert time."""

    def __init__(self, transfer_number: str):
        super().__init__(
            f"Transfer number already exists: {transfer_number}",
            code="DUPLICATE_TRANSFER_NUMBER",
            details={"transfer_number": transfer_number},
        )


class DuplicateSlipNumberError(ConflictError):
    """Custodian slip number already taken at insert time."""

    def __init__(self, slip_number: str):
        super().__init__(
            f"Custodian slip number already exists: {slip_number}",
            code="DUPLICATE_SLIP_NUMBER",
            details={"slip_number": slip_number},
        )


class ConcurrentDeleteError(ConflictError):
    """A delete affected an unexpected number of rows."""

    def __init__(self, table: str, record_id: str, affected: int):
        super().__init__(
            f"Expected to delete exactly one row from {table} ({record_id}), "
            f"affected {affected}",
            code="CONCURRENT_DELETE",
            details={"table": table, "record_id": record_id, "affected": affected},
        )


# Invariant Exceptions
class InvariantViolationError(PropertyError):
    """Operation would break a structural guarantee."""

    pass


class OpenTransferError(InvariantViolationError):
    """Item is referenced by a Draft or Issued transfer."""

    def __init__(self, property_number: str, transfer_numbers: list[str]):
        super().__init__(
            f"Item {property_number} is on open transfer(s): "
            f"{', '.join(transfer_numbers)}",
            code="OPEN_TRANSFER",
            details={
                "property_number": property_number,
                "transfer_numbers": transfer_numbers,
            },
        )


class InvalidTransitionError(InvariantViolationError):
    """Transfer status transition is not allowed."""

    def __init__(self, transfer_number: str, current: str, target: str):
        super().__init__(
            f"Transfer {transfer_number} cannot move from {current} to {target}",
            code="INVALID_TRANSITION",
            details={
                "transfer_number": transfer_number,
                "current_status": current,
                "target_status": target,
            },
        )


class DivergentCompletionError(InvariantViolationError):
    """A completed transfer's items no longer match its ledger record."""

    def __init__(self, transfer_number: str, missing: list[str]):
        super().__init__(
            f"Transfer {transfer_number} is completed but items "
            f"{', '.join(missing)} have no matching ledger entry",
            code="DIVERGENT_COMPLETION",
            details={"transfer_number": transfer_number, "missing": missing},
        )


class AssignmentInvariantError(InvariantViolationError):
    """Assignment status and custodian reference disagree."""

    def __init__(self, property_number: str, assignment_status: str | None, custodian: str | None):
        super().__init__(
            f"Item {property_number} has assignment status "
            f"{assignment_status!r} with custodian {custodian!r}",
            code="ASSIGNMENT_INVARIANT",
            details={
                "property_number": property_number,
                "assignment_status": assignment_status,
                "custodian": custodian,
            },
        )


# Referential Exceptions
class ReferentialBlockError(PropertyError):
    """Deletion refused because dependents exist."""

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        blockers: list[dict[str, Any]],
        message: str | None = None,
    ):
        reasons = "; ".join(b.get("reason", "") for b in blockers)
        super().__init__(
            message or f"Cannot delete {entity_type} {entity_id}: {reasons}",
            code="REFERENTIAL_BLOCK",
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "blockers": blockers,
            },
        )
        self.blockers = blockers


class CustodyBlockError(ReferentialBlockError):
    """Item is under custody and can never be deleted."""

    def __init__(self, entity_id: str, property_number: str, custodian: str | None):
        holder = custodian or "a custodian"
        super().__init__(
            "inventory_item",
            entity_id,
            blockers=[
                {
                    "table": "inventory_items",
                    "record_id": entity_id,
                    "reason": f"assigned to {holder}",
                }
            ],
            message=(
                f"Item {property_number} cannot be deleted because it is "
                f"currently assigned to {holder}. Release it first."
            ),
        )
        self.code = "CUSTODY_BLOCK"
        self.custodian = custodian


# Storage Exceptions
class StorageError(PropertyError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class EntityNotFoundError(StorageError):
    """Requested record does not exist."""

    def __init__(self, entity_type: str, key: str):
        super().__init__(
            f"{entity_type} not found: {key}",
            code=f"{entity_type.upper()}_NOT_FOUND",
            details={"entity_type": entity_type, "key": key},
        )


class InventoryItemNotFoundError(EntityNotFoundError):
    """Inventory item not found."""

    def __init__(self, key: str):
        super().__init__("inventory_item", key)


class PropertyCardNotFoundError(EntityNotFoundError):
    """Property card not found."""

    def __init__(self, key: str):
        super().__init__("property_card", key)


class LedgerEntryNotFoundError(EntityNotFoundError):
    """Property card entry not found."""

    def __init__(self, key: str):
        super().__init__("ledger_entry", key)


class TransferNotFoundError(EntityNotFoundError):
    """Transfer not found."""

    def __init__(self, key: str):
        super().__init__("transfer", key)


class CascadeDeleteError(StorageError):
    """Forced delete failed after the cascade scrub and one retry."""

    def __init__(self, entity_type: str, entity_id: str, error: str, remaining: list[dict[str, Any]]):
        super().__init__(
            f"Failed to delete {entity_type} {entity_id} after cascade cleanup: {error}",
            code="CASCADE_DELETE_FAILED",
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "error": error,
                "remaining_dependents": remaining,
            },
        )


class NumberAllocationError(StorageError):
    """No free document number after the bounded retries."""

    document = "document"

    def __init__(self, attempts: int, last_number: str):
        super().__init__(
            f"Could not allocate a unique {self.document} number after {attempts} attempts "
            f"(last tried {last_number})",
            code=f"{self.document.upper().replace(' ', '_')}_NUMBER_EXHAUSTED",
            details={"attempts": attempts, "last_number": last_number},
        )


class TransferNumberAllocationError(NumberAllocationError):
    """No free transfer number after the bounded retries."""

    document = "transfer"


class SlipNumberAllocationError(NumberAllocationError):
    """No free custodian slip number after the bounded retries."""

    document = "custodian slip"


class ConfigurationError(PropertyError):
    """Configuration error."""

    pass
