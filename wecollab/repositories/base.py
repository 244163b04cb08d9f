# wecollab/repositories/base.py
# Helpers shared by repositories

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional

from sqlalchemy.exc import IntegrityError, OperationalError, InterfaceError

from wecollab.middleware.error_handler import ConflictError, DatabaseError


def row_to_dict(row: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    return dict(row) if row is not None else None


def violated_constraint(exc: IntegrityError) -> Optional[str]:
    """Name of the violated constraint, if the driver exposes it."""
    cause = getattr(exc.orig, "__cause__", None)
    name = getattr(cause, "constraint_name", None) or getattr(exc.orig, "constraint_name", None)
    return name


@contextmanager
def translate_db_errors(messages: Optional[Mapping[str, str]] = None) -> Iterator[None]:
    """
    Map driver errors to application errors.

    messages: constraint name -> user-facing conflict message.
    """
    try:
        yield
    except IntegrityError as e:
        constraint = violated_constraint(e)
        text = str(e.orig)
        for name, message in (messages or {}).items():
            if constraint == name or (constraint is None and name in text):
                raise ConflictError(message, details={"constraint": name}) from e
        raise ConflictError("Conflicting data", details={"constraint": constraint}) from e
    except (OperationalError, InterfaceError) as e:
        raise DatabaseError() from e
