"""Capability negotiation between the operators and a source.

Besides get/set/delete, a source may implement four optional members.  Each
one unlocks a named capability:

=====  ========================  ===============================================
Flag   Source attribute          Meaning
=====  ========================  ===============================================
A1     ``list``                  Bulk listing by entity type
R1     ``get_task_board``        Task -> board lookup; a task has at most one board
R2     ``get_step_flow``         Step -> flow lookup; a step has at most one flow
ST1    ``get_tasks_with_step``   Step -> tasks lookup
=====  ========================  ===============================================

Requirements are written in disjunctive normal form: a list of clauses, each
clause a list of literals (``"R2"``, ``"!R2"``) that must all hold.  The
requirement passes if any clause passes.  The source is probed on every call,
so a backend may toggle capabilities during the life of the process.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, TypeVar, Union

from loguru import logger

from .errors import OptionsNotImplementedError

if TYPE_CHECKING:
    from .config import OperatorsSettings


class Capability(str, Enum):
    A1 = "A1"
    R1 = "R1"
    R2 = "R2"
    ST1 = "ST1"

    @property
    def source_attribute(self) -> str:
        return _SOURCE_ATTRIBUTES[self]


_SOURCE_ATTRIBUTES: dict[Capability, str] = {
    Capability.A1: "list",
    Capability.R1: "get_task_board",
    Capability.R2: "get_step_flow",
    Capability.ST1: "get_tasks_with_step",
}


@dataclass(frozen=True)
class OptionLiteral:
    """A capability flag, possibly negated (``!R2``)."""

    capability: Capability
    negated: bool = False

    @classmethod
    def parse(cls, raw: Union[str, "OptionLiteral", Capability]) -> "OptionLiteral":
        if isinstance(raw, OptionLiteral):
            return raw
        if isinstance(raw, Capability):
            return cls(raw)
        text = str(raw).strip()
        negated = text.startswith("!")
        name = text[1:] if negated else text
        try:
            return cls(Capability(name), negated)
        except ValueError:
            raise ValueError(f"Unknown capability option {raw!r}") from None

    def holds(self, present: frozenset[Capability]) -> bool:
        return (self.capability in present) != self.negated

    def __str__(self) -> str:
        return f"!{self.capability.value}" if self.negated else self.capability.value


Clause = tuple[OptionLiteral, ...]
RawClause = Union[str, Capability, OptionLiteral, Sequence[Union[str, Capability, OptionLiteral]]]

F = TypeVar("F", bound=Callable[..., Any])


def parse_options(clauses: Sequence[RawClause]) -> tuple[Clause, ...]:
    """Normalise ``("A1", ["!R2"], ["R2", "ST1"])`` into tuples of literals."""
    parsed: list[Clause] = []
    for clause in clauses:
        if isinstance(clause, (str, Capability, OptionLiteral)):
            parsed.append((OptionLiteral.parse(clause),))
        else:
            parsed.append(tuple(OptionLiteral.parse(lit) for lit in clause))
    return tuple(parsed)


def _format_options(clauses: Sequence[Clause]) -> str:
    return " OR ".join("(" + " AND ".join(str(lit) for lit in clause) + ")" for clause in clauses)


class CapabilityRegistry:
    """Probe a source for optional members and gate operators on them."""

    def __init__(self, source: Any, settings: Optional["OperatorsSettings"] = None) -> None:
        self.source = source
        self.settings = settings

    def _disabled(self) -> frozenset[Capability]:
        if self.settings is None:
            return frozenset()
        return frozenset(self.settings.disabled_capabilities)

    def has(self, capability: Capability) -> bool:
        if capability in self._disabled():
            return False
        member = getattr(self.source, capability.source_attribute, None)
        return member is not None and callable(member)

    def can_list(self) -> bool:
        return self.has(Capability.A1)

    def has_task_unique_board(self) -> bool:
        return self.has(Capability.R1)

    def has_step_unique_flow(self) -> bool:
        return self.has(Capability.R2)

    def can_get_tasks_from_step(self) -> bool:
        return self.has(Capability.ST1)

    def available(self) -> frozenset[Capability]:
        return frozenset(c for c in Capability if self.has(c))

    def current_options(self) -> list[str]:
        """The current feature vector as literals, e.g. ``["A1", "!R1", "R2", "ST1"]``."""
        present = self.available()
        return [c.value if c in present else f"!{c.value}" for c in Capability]

    def matches_options(self, clauses: Sequence[RawClause]) -> bool:
        parsed = parse_options(clauses)
        return self._matches(parsed, self.available())

    @staticmethod
    def _matches(clauses: Sequence[Clause], present: frozenset[Capability]) -> bool:
        return any(all(lit.holds(present) for lit in clause) for clause in clauses)

    def check(self, clauses: Sequence[Clause]) -> None:
        """Raise :class:`OptionsNotImplementedError` unless a clause holds right now."""
        present = self.available()
        matched = self._matches(clauses, present)
        if self.settings is not None and self.settings.log_capability_checks:
            logger.debug(
                "Capability check {} against {}: {}",
                _format_options(clauses),
                self.current_options(),
                "pass" if matched else "fail",
            )
        if not matched:
            raise OptionsNotImplementedError(
                f"Required options {_format_options(clauses)}. "
                f"Current options: {', '.join(self.current_options())}."
            )

    def require_options(self, *clauses: RawClause) -> Callable[[F], F]:
        """Wrap *fn* so every call is gated on *clauses*.

        The check runs before *fn* is invoked, so for a coroutine function the
        error is raised at call time and no coroutine is ever created.
        """
        parsed = parse_options(clauses)

        def decorate(fn: F) -> F:
            @functools.wraps(fn)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                self.check(parsed)
                return fn(*args, **kwargs)

            return wrapper  # type: ignore[return-value]

        return decorate


def requires_options(*clauses: RawClause) -> Callable[[F], F]:
    """Method decorator: gate an operator method on its bundle's registry."""
    parsed = parse_options(clauses)

    def decorate(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            self.config.check(parsed)
            return fn(self, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorate
