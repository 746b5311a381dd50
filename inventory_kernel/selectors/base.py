"""
Module: inventory_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/, domain/ and
    models/.  MUST NOT import from services/, engines or outer layers.

Invariants enforced:
    - Read-only access: selectors accept a Session from the caller and never
      call session.add(), session.delete(), session.commit() or
      session.flush().
    - Selectors return frozen dataclasses or plain values, not ORM rows.
    - Selectors never take row locks.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only
        queries, and return DTOs or computed results.
    """

    def __init__(self, session: Session):
        self.session = session
