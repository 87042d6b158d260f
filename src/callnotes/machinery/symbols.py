"""
Symbol model shared by resolvers, the call graph and the renderer.

A CallableUnit is one method/constructor/operator declaration. Resolvers may
also hand back derived forms of a declaration: a BoundMethod (the declaration
reached through a receiver, e.g. ``self.run``) or an Instantiation (a generic
declaration specialized with type arguments). Both point back at the
declaration they came from through ``reduced_from`` / ``original_definition``.

Equality of units is identity equality on their UnitId. Nothing else about a
unit takes part in comparisons or hashing, so two overloads with the same
display name in different types stay distinct.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Tuple


class MethodKind(enum.Enum):
    """Kind of a callable declaration."""

    ORDINARY = "ordinary"
    CONSTRUCTOR = "constructor"
    DESTRUCTOR = "destructor"
    PROPERTY_GET = "property_get"
    PROPERTY_SET = "property_set"
    PROPERTY_DELETE = "property_delete"
    EVENT_ADD = "event_add"
    EVENT_REMOVE = "event_remove"
    EVENT_RAISE = "event_raise"
    BUILTIN_OPERATOR = "builtin_operator"
    USER_DEFINED_OPERATOR = "user_defined_operator"


ACCESSOR_KINDS = frozenset(
    [
        MethodKind.PROPERTY_GET,
        MethodKind.PROPERTY_SET,
        MethodKind.PROPERTY_DELETE,
        MethodKind.EVENT_ADD,
        MethodKind.EVENT_REMOVE,
        MethodKind.EVENT_RAISE,
    ]
)

OPERATOR_KINDS = frozenset(
    [MethodKind.BUILTIN_OPERATOR, MethodKind.USER_DEFINED_OPERATOR]
)


@dataclass(frozen=True)
class UnitId:
    """
    Opaque, hashable identity of a declaration.

    Only equality and hashing are meaningful; callers must not inspect the
    fields to decide whether two units are "the same".
    """

    assembly: str
    qualname: str
    path: str = ""
    line: int = 0
    column: int = 0


class SourceSpan(NamedTuple):
    """Source region of a declaration (1-based lines, 0-based columns)."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int


@dataclass(frozen=True)
class CallableUnit:
    """
    One method, constructor or operator declaration.

    Attributes:
        identity: Stable identity; the only field used for equality.
        name: Display name, also the cross-reference link key.
        declaring_type: Short name of the declaring type.
        declaring_type_display: Fully qualified declaring type for headers.
        path: Containing source file ("" for metadata-only units).
        span: Source span of the declaration.
        assembly: Compiled module/project the unit belongs to.
        in_source: True when at least one location is backed by source text.
        is_implicit: True for compiler-generated declarations.
        kind: MethodKind of the declaration.
        signature: Declaration signature, rendered verbatim.
        documentation: Raw documentation payload, if any.
    """

    identity: UnitId
    name: str = field(compare=False)
    declaring_type: str = field(default="", compare=False)
    declaring_type_display: str = field(default="", compare=False)
    path: str = field(default="", compare=False)
    span: SourceSpan = field(default=SourceSpan(0, 0, 0, 0), compare=False)
    assembly: str = field(default="", compare=False)
    in_source: bool = field(default=True, compare=False)
    is_implicit: bool = field(default=False, compare=False)
    kind: MethodKind = field(default=MethodKind.ORDINARY, compare=False)
    signature: str = field(default="", compare=False)
    documentation: Optional[str] = field(default=None, compare=False, repr=False)

    @property
    def reduced_from(self) -> Optional["CallableUnit"]:
        return None

    @property
    def original_definition(self) -> "CallableUnit":
        return self

    def sort_key(self):
        """Deterministic ordering key: display name first."""
        return (
            self.name,
            self.declaring_type_display,
            self.path,
            self.span.start_line,
            self.span.start_column,
        )


@dataclass(frozen=True)
class BoundMethod:
    """A declaration reached through a receiver, e.g. ``self.save()``."""

    declaration: CallableUnit
    receiver: str = ""

    @property
    def reduced_from(self) -> CallableUnit:
        return self.declaration

    @property
    def original_definition(self) -> "BoundMethod":
        return self


@dataclass(frozen=True)
class Instantiation:
    """A generic declaration specialized with type arguments."""

    definition: CallableUnit
    type_arguments: Tuple[str, ...] = ()

    @property
    def reduced_from(self) -> None:
        return None

    @property
    def original_definition(self) -> CallableUnit:
        return self.definition


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of resolving one call expression.

    Either ``symbol`` holds the single resolved target, or resolution was
    ambiguous and only ``candidates`` are known.
    """

    symbol: Optional[object] = None
    candidates: Tuple[object, ...] = ()

    @classmethod
    def resolved(cls, symbol) -> "Resolution":
        return cls(symbol=symbol)

    @classmethod
    def ambiguous(cls, candidates) -> "Resolution":
        return cls(candidates=tuple(candidates))

    @property
    def is_ambiguous(self) -> bool:
        return self.symbol is None and len(self.candidates) > 0
