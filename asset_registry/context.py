"""
asset_registry.context: caller identity passed into every operation

The registry never authenticates anybody. The host execution environment
(an HTTP proxy, a CLI invocation, an embedding application) vouches for the
identity of the principal performing a call; this module only normalizes and
validates that trusted input.

Design notes
------------
- Identities are opaque strings ("admin", "bob", an address, ...). They are
  compared verbatim after stripping surrounding whitespace.
- An empty identity is rejected: a registry operation always has an actor.
- `trace_id` is carried for log correlation only; it never affects state.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .errors import ContextError

MAX_IDENTITY_LEN = 256


def normalize_identity(value: Any, *, field: str = "caller") -> str:
    """
    Coerce a principal identity into its canonical string form.

    Raises ContextError for non-strings, empty strings, oversize values and
    text that cannot be stored as UTF-8.
    """
    if not isinstance(value, str):
        raise ContextError(f"{field} must be a string", field=field, py_type=type(value).__name__)
    ident = value.strip()
    if not ident:
        raise ContextError(f"{field} must be non-empty", field=field)
    if len(ident) > MAX_IDENTITY_LEN:
        raise ContextError(f"{field} too long", field=field, length=len(ident), limit=MAX_IDENTITY_LEN)
    try:
        ident.encode("utf-8")
    except UnicodeEncodeError:
        raise ContextError(f"{field} is not valid unicode text", field=field) from None
    return ident


@dataclass(frozen=True)
class CallContext:
    """
    Per-call environment supplied by the trusted host.

    Fields
    ------
    caller:    Authenticated principal invoking the operation.
    trace_id:  Optional correlation id (request id, CLI run id).
    """

    caller: str
    trace_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "caller", normalize_identity(self.caller))

    @classmethod
    def of(cls, caller: "str | CallContext") -> "CallContext":
        """Accept either a bare identity or an existing context."""
        if isinstance(caller, CallContext):
            return caller
        return cls(caller=caller)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["CallContext", "normalize_identity", "MAX_IDENTITY_LEN"]
