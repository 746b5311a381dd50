"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The movement ledger and the unit costs captured on sales are the audit trail
of the inventory.  Stock history must be reconstructible from them at any
time, so they are append-only: corrections are new movements, never edits.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events and check our invariants:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

If a check fails, we raise ImmutabilityViolationError and the unit of work
is rolled back.  The database is never modified.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                 | Rule
-----------------------|-------------------------------------------------------
MovementRecord         | ALWAYS immutable, never deleted
SaleLine               | ALWAYS immutable, never deleted (captured unit cost)
SaleLineConsumption    | ALWAYS immutable, never deleted
InventoryBatch         | Never deleted; only quantity_available may change,
                       | only downward, never below zero

Bulk ``session.execute(update(...))`` statements bypass mapper events; the
services never issue them against protected tables.

===============================================================================
USAGE
===============================================================================

Called once during application startup (see inventory_services.wiring):

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY - never in production):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Batch columns that may change after creation
BATCH_MUTABLE_FIELDS = frozenset({"quantity_available"})


def _blocked(entity_type: str, target, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _changed_fields(target) -> set[str]:
    # AttributeState.history never loads expired attributes mid-flush
    state = inspect(target)
    return {
        prop.key
        for prop in state.mapper.column_attrs
        if state.attrs[prop.key].history.has_changes()
    }


def _check_movement_immutability(mapper, connection, target):
    """Movements are never modified."""
    _blocked(
        "MovementRecord",
        target,
        "UPDATE",
        "Movement records are immutable and cannot be modified",
    )


def _check_movement_delete(mapper, connection, target):
    _blocked(
        "MovementRecord",
        target,
        "DELETE",
        "Movement records cannot be deleted",
    )


def _check_sale_line_immutability(mapper, connection, target):
    _blocked(
        "SaleLine",
        target,
        "UPDATE",
        "Sale lines keep the unit cost captured at sale time and cannot be modified",
    )


def _check_sale_line_delete(mapper, connection, target):
    _blocked("SaleLine", target, "DELETE", "Sale lines cannot be deleted")


def _check_consumption_immutability(mapper, connection, target):
    _blocked(
        "SaleLineConsumption",
        target,
        "UPDATE",
        "Sale line consumptions are immutable and cannot be modified",
    )


def _check_consumption_delete(mapper, connection, target):
    _blocked(
        "SaleLineConsumption",
        target,
        "DELETE",
        "Sale line consumptions cannot be deleted",
    )


def _check_batch_immutability(mapper, connection, target):
    """
    Restrict batch updates to lowering quantity_available.

    Logic:
        1. Any change outside quantity_available: block.
        2. quantity_available rising: block (batches are never resurrected).
        3. quantity_available below zero: block.
    """
    changed = _changed_fields(target)
    frozen = changed - BATCH_MUTABLE_FIELDS
    if frozen:
        _blocked(
            "InventoryBatch",
            target,
            "UPDATE",
            f"Batch fields {sorted(frozen)} are fixed at creation",
        )

    if "quantity_available" not in changed:
        return

    history = inspect(target).attrs.quantity_available.history
    old_value = history.deleted[0] if history.deleted else None
    new_value = target.quantity_available

    if new_value is None or new_value < 0:
        _blocked(
            "InventoryBatch",
            target,
            "UPDATE",
            f"quantity_available cannot go below zero (got {new_value})",
        )
    if old_value is not None and new_value > old_value:
        _blocked(
            "InventoryBatch",
            target,
            "UPDATE",
            f"quantity_available can only decrease ({old_value} -> {new_value})",
        )


def _check_batch_delete(mapper, connection, target):
    _blocked(
        "InventoryBatch",
        target,
        "DELETE",
        "Batches are never deleted, even when fully depleted",
    )


def _listener_table():
    from inventory_kernel.models.inventory_batch import InventoryBatch
    from inventory_kernel.models.movement import MovementRecord
    from inventory_kernel.models.sale import SaleLine, SaleLineConsumption

    return (
        (MovementRecord, "before_update", _check_movement_immutability),
        (MovementRecord, "before_delete", _check_movement_delete),
        (SaleLine, "before_update", _check_sale_line_immutability),
        (SaleLine, "before_delete", _check_sale_line_delete),
        (SaleLineConsumption, "before_update", _check_consumption_immutability),
        (SaleLineConsumption, "before_delete", _check_consumption_delete),
        (InventoryBatch, "before_update", _check_batch_immutability),
        (InventoryBatch, "before_delete", _check_batch_delete),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already registered are not added twice.
    Call after all models are imported, before any database operation.
    """
    for target, event_name, listener_fn in _listener_table():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if it was never registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    for target, event_name, listener_fn in _listener_table():
        _safe_remove_listener(target, event_name, listener_fn)
