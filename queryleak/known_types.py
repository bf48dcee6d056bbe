# Bundled type model: the JDK and jOOQ types the result-stream leak rule reasons about.
# Hierarchies are flattened where the real API has intermediate interfaces that
# never change a verdict; method tables list return types only.

from __future__ import annotations

from typing import Iterable

from queryleak.typesystem import JavaType, TypeSystem

# --- JDK -------------------------------------------------------------------

OBJECT = "java.lang.Object"
STRING = "java.lang.String"
AUTO_CLOSEABLE = "java.lang.AutoCloseable"
CLOSEABLE = "java.io.Closeable"
ITERABLE = "java.lang.Iterable"
ITERATOR = "java.util.Iterator"
COLLECTION = "java.util.Collection"
LIST = "java.util.List"
MAP = "java.util.Map"
OPTIONAL = "java.util.Optional"
BASE_STREAM = "java.util.stream.BaseStream"
STREAM = "java.util.stream.Stream"
COMPLETION_STAGE = "java.util.concurrent.CompletionStage"
COMPLETABLE_FUTURE = "java.util.concurrent.CompletableFuture"
SQL_RESULT_SET = "java.sql.ResultSet"
SQL_STATEMENT = "java.sql.Statement"

# --- jOOQ ------------------------------------------------------------------

JOOQ = "org.jooq"
QUERY_PART = f"{JOOQ}.QueryPart"
ATTACHABLE = f"{JOOQ}.Attachable"
STATEMENT = f"{JOOQ}.Statement"
QUERY = f"{JOOQ}.Query"
RESULT_QUERY = f"{JOOQ}.ResultQuery"
SELECT = f"{JOOQ}.Select"
CURSOR = f"{JOOQ}.Cursor"
RESULT = f"{JOOQ}.Result"
RECORD = f"{JOOQ}.Record"
CONDITION = f"{JOOQ}.Condition"
FIELD = f"{JOOQ}.Field"
SORT_FIELD = f"{JOOQ}.SortField"
TABLE = f"{JOOQ}.Table"
DSL_CONTEXT = f"{JOOQ}.DSLContext"
DSL = f"{JOOQ}.impl.DSL"


def _step(name: str) -> str:
    return f"{JOOQ}.{name}"


def _same(ret: str, *methods: str) -> dict[str, str]:
    return {m: ret for m in methods}


_STREAM_TO_STREAM = (
    "map", "filter", "flatMap", "distinct", "sorted", "peek", "limit", "skip",
    "onClose", "parallel", "sequential", "unordered", "takeWhile", "dropWhile",
    "mapMulti", "boxed",
)

_CONDITION_CHAIN = ("and", "or", "andNot", "orNot", "andExists", "orExists", "andNotExists", "orNotExists")

_JOIN_METHODS = ("join", "innerJoin", "leftJoin", "leftOuterJoin", "rightJoin", "rightOuterJoin", "fullJoin", "fullOuterJoin")

_SELECT_ENTRY = ("select", "selectDistinct", "selectOne", "selectZero", "selectCount")


def _jdk_types() -> list[JavaType]:
    return [
        JavaType(OBJECT, methods={"toString": STRING, "getClass": OBJECT}),
        JavaType(STRING, (OBJECT,), _same(STRING, "trim", "strip", "toLowerCase", "toUpperCase", "substring", "concat")),
        JavaType(AUTO_CLOSEABLE, (OBJECT,)),
        JavaType(CLOSEABLE, (AUTO_CLOSEABLE,)),
        JavaType(ITERABLE, (OBJECT,), {"iterator": ITERATOR}),
        JavaType(ITERATOR, (OBJECT,), {"next": OBJECT}),
        JavaType(COLLECTION, (ITERABLE,), {"stream": STREAM, "parallelStream": STREAM, "iterator": ITERATOR}),
        JavaType(LIST, (COLLECTION,), {"get": OBJECT, "subList": LIST, "reversed": LIST}),
        JavaType(MAP, (OBJECT,), {"get": OBJECT, "getOrDefault": OBJECT}),
        JavaType(
            OPTIONAL,
            (OBJECT,),
            {**_same(OPTIONAL, "map", "flatMap", "filter", "or"), **_same(OBJECT, "get", "orElse", "orElseGet", "orElseThrow"), "stream": STREAM},
        ),
        JavaType(
            BASE_STREAM,
            (AUTO_CLOSEABLE,),
            {**_same(BASE_STREAM, "onClose", "parallel", "sequential", "unordered"), "iterator": ITERATOR},
        ),
        JavaType(
            STREAM,
            (BASE_STREAM,),
            {
                **_same(STREAM, *_STREAM_TO_STREAM),
                **_same(OPTIONAL, "findFirst", "findAny", "min", "max"),
                "collect": OBJECT,
                "toList": LIST,
                "iterator": ITERATOR,
            },
        ),
        JavaType(
            COMPLETION_STAGE,
            (OBJECT,),
            {
                **_same(COMPLETION_STAGE, "thenApply", "thenAccept", "thenCompose", "thenRun", "exceptionally", "whenComplete"),
                "toCompletableFuture": COMPLETABLE_FUTURE,
            },
        ),
        JavaType(COMPLETABLE_FUTURE, (COMPLETION_STAGE,), {"join": OBJECT, "get": OBJECT}),
        JavaType(SQL_STATEMENT, (AUTO_CLOSEABLE,), {"executeQuery": SQL_RESULT_SET, "getResultSet": SQL_RESULT_SET}),
        JavaType(SQL_RESULT_SET, (AUTO_CLOSEABLE,), {"getString": STRING, "getObject": OBJECT, "getStatement": SQL_STATEMENT}),
    ]


def _select_chain() -> list[JavaType]:
    """The Select*Step interfaces, each extending the step that may follow it."""
    s = _step
    chain = [
        # (step, supertype, methods)
        ("SelectFinalStep", SELECT, {"getQuery": s("SelectQuery")}),
        ("SelectUnionStep", s("SelectFinalStep"), _same(s("SelectOrderByStep"), "union", "unionAll", "except", "exceptAll", "intersect", "intersectAll")),
        ("SelectOptionStep", s("SelectUnionStep"), {"option": s("SelectUnionStep")}),
        ("SelectForUpdateOfStep", s("SelectOptionStep"), _same(s("SelectOptionStep"), "of", "noWait", "wait", "skipLocked")),
        ("SelectForUpdateStep", s("SelectOptionStep"), _same(s("SelectForUpdateOfStep"), "forUpdate", "forShare", "forNoKeyUpdate", "forKeyShare")),
        ("SelectLimitAfterOffsetStep", s("SelectForUpdateStep"), {"limit": s("SelectForUpdateStep")}),
        ("SelectLimitPercentStep", s("SelectForUpdateStep"), {"offset": s("SelectForUpdateStep"), "percent": s("SelectForUpdateStep"), "withTies": s("SelectForUpdateStep")}),
        ("SelectLimitStep", s("SelectForUpdateStep"), {"limit": s("SelectLimitPercentStep"), "offset": s("SelectLimitAfterOffsetStep")}),
        ("SelectSeekStep1", s("SelectLimitStep"), {"seek": s("SelectLimitStep"), "seekAfter": s("SelectLimitStep")}),
        ("SelectOrderByStep", s("SelectLimitStep"), _same(s("SelectSeekStep1"), "orderBy", "orderSiblingsBy")),
        ("SelectQualifyStep", s("SelectOrderByStep"), {"qualify": s("SelectOrderByStep")}),
        ("SelectWindowStep", s("SelectQualifyStep"), {"window": s("SelectQualifyStep")}),
        ("SelectHavingConditionStep", s("SelectWindowStep"), _same(s("SelectHavingConditionStep"), *_CONDITION_CHAIN)),
        ("SelectHavingStep", s("SelectWindowStep"), {"having": s("SelectHavingConditionStep")}),
        ("SelectGroupByStep", s("SelectHavingStep"), {"groupBy": s("SelectHavingStep")}),
        ("SelectConnectByStep", s("SelectGroupByStep"), {"connectBy": s("SelectGroupByStep")}),
        ("SelectConditionStep", s("SelectConnectByStep"), _same(s("SelectConditionStep"), *_CONDITION_CHAIN)),
        ("SelectWhereStep", s("SelectConnectByStep"), _same(s("SelectConditionStep"), "where", "whereExists", "whereNotExists")),
        (
            "SelectJoinStep",
            s("SelectWhereStep"),
            {**_same(s("SelectOnStep"), *_JOIN_METHODS), **_same(s("SelectJoinStep"), "crossJoin", "naturalJoin")},
        ),
        ("SelectOnConditionStep", s("SelectJoinStep"), _same(s("SelectOnConditionStep"), "and", "or", "andNot", "orNot")),
        ("SelectFromStep", s("SelectWhereStep"), {"from": s("SelectJoinStep")}),
        ("SelectIntoStep", s("SelectFromStep"), {}),
        ("SelectDistinctOnStep", s("SelectIntoStep"), {}),
        ("SelectSelectStep", s("SelectDistinctOnStep"), {"select": s("SelectSelectStep")}),
    ]
    types = [JavaType(s(name), (sup,), methods) for name, sup, methods in chain]
    # SelectOnStep is not itself a Select: it only offers on()/using().
    types.append(JavaType(s("SelectOnStep"), (QUERY_PART,), {"on": s("SelectOnConditionStep"), "using": s("SelectJoinStep")}))
    types.append(JavaType(s("SelectQuery"), (SELECT,), {}))
    return types


def _jooq_types() -> list[JavaType]:
    return [
        JavaType(QUERY_PART, (OBJECT,), {"getSQL": STRING}),
        JavaType(ATTACHABLE, (OBJECT,), {}),
        JavaType(STATEMENT, (QUERY_PART,), {}),
        JavaType(QUERY, (STATEMENT, ATTACHABLE, AUTO_CLOSEABLE), _same(QUERY, "bind", "queryTimeout", "keepStatement", "cancel")),
        JavaType(
            RESULT_QUERY,
            (QUERY, ITERABLE),
            {
                "fetch": RESULT,
                "fetchLazy": CURSOR,
                "fetchStream": STREAM,
                "fetchStreamInto": STREAM,
                "stream": STREAM,
                "fetchResultSet": SQL_RESULT_SET,
                "fetchAsync": COMPLETION_STAGE,
                "fetchOptional": OPTIONAL,
                "fetchInto": LIST,
                "fetchMaps": LIST,
                "fetchMap": MAP,
                "fetchGroups": MAP,
                "iterator": ITERATOR,
                "collect": OBJECT,
                **_same(RECORD, "fetchOne", "fetchAny", "fetchSingle"),
                **_same(RESULT_QUERY, "bind", "fetchSize", "maxRows", "intern", "keepStatement", "queryTimeout", "resultSetType", "resultSetConcurrency", "coerce"),
            },
        ),
        JavaType(SELECT, (RESULT_QUERY,), {"asTable": TABLE, "asField": FIELD, **_same(SELECT, "union", "unionAll", "except", "intersect")}),
        JavaType(
            CURSOR,
            (ITERABLE, AUTO_CLOSEABLE),
            {
                "fetch": RESULT,
                "fetchNext": RECORD,
                "fetchNextOptional": OPTIONAL,
                "stream": STREAM,
                "resultSet": SQL_RESULT_SET,
                "iterator": ITERATOR,
            },
        ),
        JavaType(RESULT, (LIST, ATTACHABLE), {**_same(LIST, "into", "intoMaps", "getValues", "map"), "intoGroups": MAP}),
        JavaType(RECORD, (ATTACHABLE,), {**_same(OBJECT, "get", "getValue", "into"), **_same(RECORD, "original", "copy"), "intoMap": MAP}),
        JavaType(CONDITION, (QUERY_PART,), _same(CONDITION, "and", "or", "not", "andNot", "orNot")),
        JavaType(
            FIELD,
            (QUERY_PART,),
            {
                **_same(CONDITION, "eq", "ne", "gt", "ge", "lt", "le", "like", "notLike", "in", "notIn", "isNull", "isNotNull", "isTrue", "isFalse"),
                **_same(SORT_FIELD, "asc", "desc", "sortAsc", "sortDesc"),
                "as": FIELD,
                "coerce": FIELD,
            },
        ),
        JavaType(SORT_FIELD, (QUERY_PART,), _same(SORT_FIELD, "nullsFirst", "nullsLast")),
        JavaType(TABLE, (QUERY_PART,), {"as": TABLE, "field": FIELD, "where": TABLE}),
        JavaType(
            DSL_CONTEXT,
            (AUTO_CLOSEABLE,),
            {
                **_same(_step("SelectSelectStep"), *_SELECT_ENTRY),
                "selectFrom": _step("SelectWhereStep"),
                "resultQuery": RESULT_QUERY,
                "query": QUERY,
                "fetch": RESULT,
                "fetchLazy": CURSOR,
                "fetchStream": STREAM,
                "fetchOne": RECORD,
                "fetchSingle": RECORD,
                "fetchOptional": OPTIONAL,
                "newRecord": RECORD,
            },
        ),
        JavaType(
            DSL,
            (OBJECT,),
            {
                **_same(_step("SelectSelectStep"), *_SELECT_ENTRY),
                "selectFrom": _step("SelectWhereStep"),
                "using": DSL_CONTEXT,
                "resultQuery": RESULT_QUERY,
                "query": QUERY,
                **_same(FIELD, "field", "val", "inline", "count", "max", "min", "sum"),
                "table": TABLE,
                **_same(CONDITION, "condition", "trueCondition", "falseCondition", "noCondition", "exists", "notExists", "and", "or", "not"),
            },
        ),
    ]


JOOQ_TYPES: tuple[JavaType, ...] = tuple(_jdk_types() + _jooq_types() + _select_chain())


def default_type_system(extra: Iterable[JavaType] = ()) -> TypeSystem:
    """Build a TypeSystem from the bundled model, plus any extra project types."""
    return TypeSystem(list(JOOQ_TYPES) + list(extra))
