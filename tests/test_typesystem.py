"""Tests for the Java type model: resolution, subtyping, method return types, capabilities."""

import logging

from queryleak.known_types import default_type_system
from queryleak.session import AnalysisSession
from queryleak.typesystem import (
    Capabilities,
    CapabilityNames,
    ImportScope,
    JavaType,
    TypeSystem,
    normalize_type_name,
)


def _diamond() -> TypeSystem:
    return TypeSystem(
        [
            JavaType("a.Top"),
            JavaType("a.Left", ("a.Top",), {"next": "a.Right"}),
            JavaType("a.Right", ("a.Top",), {"self": "a.Right", "gone": "a.Missing"}),
            JavaType("a.Bottom", ("a.Left", "a.Right")),
            JavaType("a.Cycle", ("a.Cycle2",)),
            JavaType("a.Cycle2", ("a.Cycle",)),
        ]
    )


def test_normalize_type_name():
    """Generic arguments and whitespace are stripped from type names."""
    assert normalize_type_name("ResultQuery<Record>") == "ResultQuery"
    assert normalize_type_name("Map<String, List<Integer>>") == "Map"
    assert normalize_type_name(" org.jooq.Cursor < R > ") == "org.jooq.Cursor"


def test_subtyping_is_reflexive_and_transitive():
    """Subtyping holds for the type itself and through every supertype."""
    types = _diamond()
    bottom = types.resolve("a.Bottom")
    assert bottom.is_subtype_of(bottom)
    assert bottom.is_subtype_of(types.resolve("a.Left"))
    assert bottom.is_subtype_of(types.resolve("a.Top"))
    assert not types.resolve("a.Top").is_subtype_of(bottom)


def test_subtype_of_unresolved_is_false():
    """Nothing is a subtype of an unresolved type."""
    types = _diamond()
    assert not types.resolve("a.Top").is_subtype_of(None)
    assert not types.is_subtype("a.Unknown", "a.Top")


def test_cyclic_hierarchy_terminates():
    """A cyclic supertype graph does not loop."""
    types = _diamond()
    assert types.is_subtype("a.Cycle", "a.Cycle2")
    assert types.is_subtype("a.Cycle2", "a.Cycle")
    assert not types.is_subtype("a.Cycle", "a.Top")


def test_method_return_type_searches_supertypes():
    """Inherited methods are found through supertypes."""
    types = _diamond()
    assert types.method_return_type("a.Bottom", "next").name == "a.Right"
    assert types.method_return_type("a.Bottom", "self").name == "a.Right"
    assert types.method_return_type("a.Bottom", "missing") is None
    assert types.method_return_type("a.Unknown", "next") is None


def test_method_return_type_outside_model_is_none():
    """A return type outside the model is None."""
    assert _diamond().method_return_type("a.Right", "gone") is None


def test_resolve_through_import_scope():
    """Simple names resolve through imports and the same package."""
    types = _diamond()
    scope = ImportScope(package="b", single={"Left": "a.Left"}, on_demand=("a",))
    assert types.resolve("Left", scope).name == "a.Left"
    assert types.resolve("Bottom<X>", scope).name == "a.Bottom"
    assert types.resolve("Nope", scope) is None
    assert types.resolve("Bottom") is None
    assert types.resolve("") is None


def test_resolve_prefers_single_import_over_on_demand():
    """A single-type import wins over an on-demand import."""
    types = TypeSystem([JavaType("x.Query"), JavaType("y.Query")])
    scope = ImportScope(single={"Query": "y.Query"}, on_demand=("x",))
    assert types.resolve("Query", scope).name == "y.Query"


def test_resolve_falls_back_to_java_lang():
    """java.lang types resolve without an import."""
    types = default_type_system()
    assert types.resolve("AutoCloseable", ImportScope()).name == "java.lang.AutoCloseable"


def test_default_model_jooq_hierarchy():
    """The bundled model has the jOOQ query hierarchy."""
    types = default_type_system()
    closeable = types.resolve("java.lang.AutoCloseable")
    query_part = types.resolve("org.jooq.QueryPart")
    root = types.resolve("org.jooq.ResultQuery")

    condition_step = types.resolve("org.jooq.SelectConditionStep")
    assert condition_step.is_subtype_of(root)
    assert condition_step.is_subtype_of(closeable)
    assert condition_step.is_subtype_of(query_part)

    for leaky in ("java.util.stream.Stream", "org.jooq.Cursor", "java.sql.ResultSet"):
        t = types.resolve(leaky)
        assert t.is_subtype_of(closeable), leaky
        assert not t.is_subtype_of(query_part), leaky

    assert not types.resolve("org.jooq.Result").is_subtype_of(closeable)


def test_default_model_fetch_methods():
    """The bundled model types the fetch and stream methods."""
    types = default_type_system()
    assert types.method_return_type("org.jooq.SelectConditionStep", "fetchStream").name == "java.util.stream.Stream"
    assert types.method_return_type("org.jooq.SelectJoinStep", "where").name == "org.jooq.SelectConditionStep"
    assert types.method_return_type("org.jooq.ResultQuery", "fetchLazy").name == "org.jooq.Cursor"


def test_capabilities_resolve_and_log_missing(caplog):
    """Capabilities that do not resolve are None and logged."""
    types = TypeSystem([JavaType("Root"), JavaType("Closeable")])
    names = CapabilityNames(fluent_query_root="Root", closeable="Closeable", query_part="QueryPart")
    with caplog.at_level(logging.WARNING):
        caps = Capabilities.resolve(types, names)
    assert caps.fluent_query_root.name == "Root"
    assert caps.closeable.name == "Closeable"
    assert caps.query_part is None
    assert "query part" in caplog.text


def test_session_resolves_capabilities_once(monkeypatch):
    """A session resolves its capabilities only once."""
    session = AnalysisSession(default_type_system())
    calls = []
    original = Capabilities.resolve

    def counting(type_system, names=None):
        calls.append(names)
        return original(type_system, names)

    monkeypatch.setattr(Capabilities, "resolve", staticmethod(counting))
    first = session.capabilities
    second = session.capabilities
    assert first is second
    assert len(calls) == 1
    assert first.fluent_query_root.name == "org.jooq.ResultQuery"


def test_declared_type_shadows_imports():
    """A type declared in the compilation unit is never resolved to a modelled type."""
    types = default_type_system()
    scope = ImportScope(on_demand=("org.jooq",), declared=frozenset({"Select", "Outer"}))
    assert types.resolve("Select", scope) is None
    assert types.resolve("Select<Record>", scope) is None
    assert types.resolve("Outer.Cursor", scope) is None
    assert types.resolve("Cursor", scope).name == "org.jooq.Cursor"
    assert types.resolve("org.jooq.Select", scope).name == "org.jooq.Select"
