"""
BaseService -- abstract base for the stateful inventory services.

Responsibility:
    Provides the common constructor and session-handling contract for the
    services that write inventory state.  Every such service receives a
    SQLAlchemy ``Session`` and persists through ``session.flush()``, never
    ``session.commit()``.

Architecture position:
    Services -- imperative shell.  The workflow services open a
    ``UnitOfWork``, which owns commit and rollback, and hand its session to
    the collaborators built on this class.

Failure modes:
    - A subclass that commits on its own breaks the all-or-nothing
      guarantee of multi-step operations such as a multi-line sale.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for the flush-only services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide reporting reads; those belong in
          ``inventory_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
