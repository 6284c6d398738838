"""Propagate the owning account through the call stack using contextvars."""

from contextvars import ContextVar
from uuid import UUID
from contextlib import contextmanager

_current_owner_id: ContextVar[UUID | None] = ContextVar("current_owner_id", default=None)


def get_current_owner_id() -> UUID:
    """
    Get the owner ID for the current request.

    Raises RuntimeError if no owner context is set. Every store call is
    scoped to an owner, so reaching one without context is a wiring bug.
    """
    owner_id = _current_owner_id.get()
    if owner_id is None:
        raise RuntimeError(
            "No owner context set. Owner-scoped operations must run inside "
            "a request or an owner_context() block."
        )
    return owner_id


def set_current_owner_id(owner_id: UUID) -> None:
    """Set the owner ID. Called by OwnerContextMiddleware per request."""
    _current_owner_id.set(owner_id)


def clear_current_owner_id() -> None:
    """Clear owner context. Must run in a finally block."""
    _current_owner_id.set(None)


@contextmanager
def owner_context(owner_id: UUID):
    """
    Temporarily act as an owner.

    Used by tests, the reconciliation sweep and CLI scripts:

        with owner_context(owner_id):
            actions.get_invoices(get_current_owner_id())
    """
    previous = _current_owner_id.get()
    set_current_owner_id(owner_id)
    try:
        yield owner_id
    finally:
        if previous is None:
            clear_current_owner_id()
        else:
            set_current_owner_id(previous)
