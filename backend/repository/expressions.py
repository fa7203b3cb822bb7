# backend/repository/expressions.py
from typing import List

from sqlalchemy import Boolean, String, bindparam
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import ColumnElement


class tags_overlap(ColumnElement):
    """True when a tag column shares at least one value with ``tags``.

    PostgreSQL renders the native array ``&&`` operator; SQLite (tag lists stored
    as JSON) is matched through ``json_each``.
    """

    type = Boolean()
    inherit_cache = False

    def __init__(self, column, tags: List[str]):
        self.column = column
        self.tags = list(tags)


@compiles(tags_overlap)
def _compile_tags_overlap(element, compiler, **kw):
    return compiler.process(element.column.overlap(element.tags), **kw)


@compiles(tags_overlap, "sqlite")
def _compile_tags_overlap_sqlite(element, compiler, **kw):
    column = compiler.process(element.column, **kw)
    values = ", ".join(
        compiler.process(bindparam(None, tag, type_=String()), **kw) for tag in element.tags
    )
    return f"EXISTS (SELECT 1 FROM json_each({column}) WHERE json_each.value IN ({values}))"
