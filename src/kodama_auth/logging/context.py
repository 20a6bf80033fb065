"""Context variables for structured logging."""

from contextvars import ContextVar

_session: ContextVar[str] = ContextVar("session", default="")
_auth_type: ContextVar[str] = ContextVar("auth_type", default="")
_operation: ContextVar[str] = ContextVar("operation", default="")


def set_log_context(
    session: str | None = None,
    auth_type: str | None = None,
    operation: str | None = None,
) -> None:
    if session is not None:
        _session.set(session)
    if auth_type is not None:
        _auth_type.set(auth_type)
    if operation is not None:
        _operation.set(operation)


def get_log_context() -> dict[str, str]:
    return {
        "session": _session.get(),
        "auth_type": _auth_type.get(),
        "operation": _operation.get(),
    }


def clear_log_context() -> None:
    _session.set("")
    _auth_type.set("")
    _operation.set("")
