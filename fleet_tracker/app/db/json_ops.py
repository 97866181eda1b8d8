"""
JSON column helpers.

`json_array_append` appends one element to a JSON array column inside the
UPDATE statement itself, so the append never requires a read-modify-write
round trip through Python.
"""

import json
from typing import Any

from sqlalchemy import String, bindparam
from sqlalchemy.exc import CompileError
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement
from sqlalchemy.types import JSON


class json_array_append(FunctionElement):
    """SQL expression: ``column`` with ``element`` appended at the end."""

    type = JSON()
    inherit_cache = True
    name = "json_array_append"

    def __init__(self, column, element: Any):
        super().__init__(column, bindparam(None, json.dumps(element), type_=String()))


def _arguments(element, compiler, **kw):
    column, value = list(element.clauses)
    return compiler.process(column, **kw), compiler.process(value, **kw)


@compiles(json_array_append)
def _compile_default(element, compiler, **kw):
    raise CompileError(f"json_array_append is not supported on dialect {compiler.dialect.name!r}")


@compiles(json_array_append, "sqlite")
def _compile_sqlite(element, compiler, **kw):
    column, value = _arguments(element, compiler, **kw)
    return f"json_insert({column}, '$[#]', json({value}))"


@compiles(json_array_append, "postgresql")
def _compile_postgresql(element, compiler, **kw):
    column, value = _arguments(element, compiler, **kw)
    return f"({column} || jsonb_build_array(CAST({value} AS JSONB)))"
