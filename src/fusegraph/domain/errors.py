"""Exception hierarchy for graph rewriting.

Per-candidate failures (:class:`SurgeryError` and subclasses) are recovered
by the rewrite pass. Everything else aborts the pass and reaches the caller.
"""

from __future__ import annotations


class FusegraphError(Exception):
    """Base class for all fusegraph errors."""


class GraphIntegrityError(FusegraphError):
    """The graph violates a structural invariant (dangling or one-sided edge)."""


class SelectorProtocolViolation(FusegraphError):
    """A Selector answered outside its contract. Fatal to the pass."""


class PropertyLookupError(FusegraphError, LookupError):
    """No property is registered under the requested name."""

    def __init__(self, name: str, known: list[str] | None = None) -> None:
        self.name = name
        self.known = sorted(known or [])
        hint = f" (known: {', '.join(self.known)})" if self.known else ""
        super().__init__(f"Unknown property '{name}'{hint}")


class SurgeryError(FusegraphError):
    """Replacing a candidate set failed; the graph was left untouched."""

    code = "SURGERY_FAILED"


class CycleWouldFormError(SurgeryError):
    """Collapsing the candidate set would create a cycle through the boundary."""

    code = "CYCLE_WOULD_FORM"


class FactoryFailure(SurgeryError):
    """The property's node factory reported an error."""

    code = "FACTORY_FAILED"
