"""
Static type model for Java sources: named types, subtyping, and method return types.

The analysis never compiles the code it inspects. Instead it resolves type
names that appear in source (declarations, casts, `new` expressions) against
a model of the APIs it cares about. Anything outside the model is simply
unresolved: lookups return None and callers treat that as "unknown", never as
an error.

Typical usage:
    from queryleak.known_types import default_type_system

    types = default_type_system()
    stream = types.resolve("java.util.stream.Stream")
    closeable = types.resolve("java.lang.AutoCloseable")
    stream.is_subtype_of(closeable)  # True
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

JAVA_LANG = "java.lang"


def normalize_type_name(raw: str) -> str:
    """
    Strip generic arguments and whitespace from a type name.

    Examples:
        >>> normalize_type_name("ResultQuery<Record1<Integer>>")
        'ResultQuery'
        >>> normalize_type_name(" org.jooq.Cursor < R > ")
        'org.jooq.Cursor'
    """
    name = raw.split("<", 1)[0]
    return "".join(name.split())


def simple_name(name: str) -> str:
    """Return the last dotted segment of a (possibly qualified) type name."""
    return name.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class JavaType:
    """One entry of the type model: a named type, its supertypes, and its methods."""

    name: str
    supertypes: tuple[str, ...] = ()
    # method name -> fully qualified return type name
    methods: Mapping[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ImportScope:
    """
    Names visible in one compilation unit.

    Resolution order for a simple name: single-type import, same package,
    on-demand imports (in declaration order), then java.lang. Types declared
    in the unit itself (top-level or nested) are listed in declared.
    """

    package: str = ""
    single: Mapping[str, str] = field(default_factory=dict, compare=False)
    on_demand: tuple[str, ...] = ()
    declared: frozenset[str] = frozenset()

    def candidates(self, name: str) -> list[str]:
        """Return the fully qualified names a simple type name could refer to."""
        result: list[str] = []
        if name in self.single:
            result.append(self.single[name])
        if self.package:
            result.append(f"{self.package}.{name}")
        result.extend(f"{pkg}.{name}" for pkg in self.on_demand)
        result.append(f"{JAVA_LANG}.{name}")
        return result


@dataclass(frozen=True)
class TypeDescriptor:
    """Opaque handle to a resolved static type; supports subtype queries only."""

    name: str
    system: TypeSystem = field(compare=False, repr=False)

    @property
    def simple_name(self) -> str:
        return simple_name(self.name)

    def is_subtype_of(self, other: Optional[TypeDescriptor]) -> bool:
        """True if this type equals or descends from other. Unresolved other is never a supertype."""
        if other is None:
            return False
        return self.system.is_subtype(self.name, other.name)


class TypeSystem:
    """
    A closed set of known Java types.

    Ancestor sets are computed on first use and memoised; the model itself is
    never mutated after construction.
    """

    def __init__(self, types: Iterable[JavaType]) -> None:
        self._types: dict[str, JavaType] = {}
        for t in types:
            if t.name in self._types:
                logger.debug("Duplicate type %s in model; keeping the last definition", t.name)
            self._types[t.name] = t
        self._ancestors: dict[str, frozenset[str]] = {}

    def get(self, name: str) -> Optional[JavaType]:
        return self._types.get(name)

    def resolve(self, name: str, imports: Optional[ImportScope] = None) -> Optional[TypeDescriptor]:
        """
        Resolve a type name as written in source into a TypeDescriptor.

        Fully qualified names are looked up as-is; anything else is tried
        against the import scope. A name whose first segment is a type declared
        in the compilation unit itself shadows the imports and is never
        modelled. Returns None for anything outside the model.
        """
        norm = normalize_type_name(name)
        if not norm:
            return None
        if norm in self._types:
            return TypeDescriptor(norm, self)
        scope = imports if imports is not None else ImportScope()
        if norm.split(".", 1)[0] in scope.declared:
            logger.debug("Type %s is declared in the compilation unit; not resolved", norm)
            return None
        for candidate in scope.candidates(norm):
            if candidate in self._types:
                return TypeDescriptor(candidate, self)
        return None

    def ancestors(self, name: str) -> frozenset[str]:
        """Return name plus every transitive supertype known to the model."""
        cached = self._ancestors.get(name)
        if cached is not None:
            return cached
        seen: set[str] = {name}
        queue = deque([name])
        while queue:
            current = self._types.get(queue.popleft())
            if current is None:
                continue
            for sup in current.supertypes:
                if sup not in seen:
                    seen.add(sup)
                    queue.append(sup)
        result = frozenset(seen)
        self._ancestors[name] = result
        return result

    def is_subtype(self, sub: str, sup: str) -> bool:
        if sub not in self._types:
            return False
        return sup in self.ancestors(sub)

    def method_return_type(self, owner: str, method: str) -> Optional[TypeDescriptor]:
        """
        Look up the return type of owner.method, searching supertypes breadth-first.

        Returns None when the method (or its return type) is not modelled.
        """
        seen: set[str] = set()
        queue = deque([owner])
        while queue:
            name = queue.popleft()
            if name in seen:
                continue
            seen.add(name)
            current = self._types.get(name)
            if current is None:
                continue
            if method in current.methods:
                ret = current.methods[method]
                return TypeDescriptor(ret, self) if ret in self._types else None
            queue.extend(current.supertypes)
        return None


@dataclass(frozen=True)
class CapabilityNames:
    """Names of the three capability types the leak rule is keyed on."""

    fluent_query_root: str = "org.jooq.ResultQuery"
    closeable: str = "java.lang.AutoCloseable"
    query_part: str = "org.jooq.QueryPart"


@dataclass(frozen=True)
class Capabilities:
    """CapabilityNames resolved against a TypeSystem. Unresolvable names are None."""

    fluent_query_root: Optional[TypeDescriptor]
    closeable: Optional[TypeDescriptor]
    query_part: Optional[TypeDescriptor]

    @classmethod
    def resolve(cls, type_system: TypeSystem, names: Optional[CapabilityNames] = None) -> Capabilities:
        names = names or CapabilityNames()
        resolved = cls(
            fluent_query_root=type_system.resolve(names.fluent_query_root),
            closeable=type_system.resolve(names.closeable),
            query_part=type_system.resolve(names.query_part),
        )
        for label, value in (
            ("fluent query root", resolved.fluent_query_root),
            ("closeable", resolved.closeable),
            ("query part", resolved.query_part),
        ):
            if value is None:
                logger.warning("Capability type for %s could not be resolved; rule will not match", label)
        logger.debug("Resolved capabilities: %s", resolved)
        return resolved
