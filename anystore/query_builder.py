"""Assembling the SQL text of a collection query."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .bound import Bound, Bounds
from .registry import FilterRegistry, SortRegistry


@dataclass
class QueryJoin:
    """An index table joined to the document table, with per-field bounds."""

    table_name: str = ""
    bounds: list[Bounds] = field(default_factory=list)
    idx: Any = None


@dataclass
class QuerySort:
    """An ORDER BY term: an index column, or the document id if no table."""

    table_name: str = ""
    field_num: int = 0
    reverse: bool = False


@dataclass
class QueryBuilder:
    """Builds a SELECT over a collection; ``values`` holds the bound parameters."""

    table_name: str = ""
    joins: list[QueryJoin] = field(default_factory=list)
    sorts: list[QuerySort] = field(default_factory=list)
    id_bounds: Bounds = field(default_factory=Bounds)
    filter_id: int = 0
    sort_id: int = 0
    limit: int = 0
    offset: int = 0
    values: list[bytes] = field(default_factory=list)
    filter_registry: Optional[FilterRegistry] = None
    sort_registry: Optional[SortRegistry] = None

    def build(self, count: bool) -> str:
        """Return the SQL text; a count query selects COUNT(*) and has no order."""
        self.values = []
        out: list[str] = ["SELECT ", "COUNT(*)" if count else "data",
                          " FROM '", self.table_name, "' "]

        for join in self.joins:
            out.append(f"JOIN '{join.table_name}' ON '{join.table_name}'.docId = id ")

        where_started = False
        need_and = False

        def write_where() -> None:
            nonlocal where_started
            if not where_started:
                where_started = True
                out.append("WHERE ")

        def write_and() -> None:
            nonlocal need_and
            if need_and:
                out.append(" AND ")
            else:
                need_and = True

        def write_placeholder(table_num: int, field_num: int, bound_num: int,
                              is_end: bool, value: bytes) -> None:
            name = f"val_{table_num}_{field_num}_{bound_num}"
            if is_end:
                name += "_end"
            out.append(":" + name)
            self.values.append(bytes(value))

        def write_table_val(table_name: str, field_num: int) -> None:
            out.append(f"'{table_name}'.val{field_num}" if table_name else "id")

        def write_bound(join: QueryJoin, table_num: int, field_num: int,
                        bound_num: int, b: Bound) -> None:
            nonlocal need_and
            if b.start_include and b.end_include and b.start == b.end:
                write_table_val(join.table_name, field_num)
                out.append(" = ")
                write_placeholder(table_num, field_num, bound_num, False, b.start)
                return
            if b.start:
                write_table_val(join.table_name, field_num)
                out.append(" >= " if b.start_include else " > ")
                write_placeholder(table_num, field_num, bound_num, False, b.start)
                need_and = True
            if b.end:
                if b.start:
                    write_and()
                write_table_val(join.table_name, field_num)
                out.append(" <= " if b.end_include else " < ")
                write_placeholder(table_num, field_num, bound_num, True, b.end)
                need_and = True

        def write_bounds(join: QueryJoin, table_num: int) -> None:
            if not join.bounds:
                return
            write_where()
            write_and()
            for field_num, bounds in enumerate(join.bounds):
                if not bounds:
                    continue
                out.append(" AND (" if field_num else " (")
                for bound_num, b in enumerate(bounds):
                    out.append(" OR (" if bound_num else "(")
                    write_bound(join, table_num, field_num, bound_num, b)
                    out.append(")")
                out.append(")")

        if self.id_bounds:
            write_bounds(QueryJoin(bounds=[self.id_bounds]), 0)

        for table_num, join in enumerate(self.joins, start=1):
            write_bounds(join, table_num)

        if self.filter_id > 0:
            write_where()
            write_and()
            out.append(f"any_filter({self.filter_id}, data) ")

        if count:
            return "".join(out)

        order_started = False

        def write_order() -> None:
            nonlocal order_started
            if not order_started:
                order_started = True
                out.append(" ORDER BY ")
            else:
                out.append(", ")

        for s in self.sorts:
            write_order()
            out.append(f"'{s.table_name}'.val{s.field_num}" if s.table_name else "id")
            if s.reverse:
                out.append(" DESC")

        if self.sort_id > 0:
            write_order()
            out.append(f"any_sort({self.sort_id}, data)")

        if self.limit > 0:
            out.append(f" LIMIT {self.limit}")
        if self.offset > 0:
            if self.limit == 0:
                out.append(" LIMIT -1")
            out.append(f" OFFSET {self.offset}")

        return "".join(out)

    def close(self) -> None:
        """Release the registered filter and sort order and reset the builder."""
        if self.filter_id > 0 and self.filter_registry is not None:
            self.filter_registry.release(self.filter_id)
        if self.sort_id > 0 and self.sort_registry is not None:
            self.sort_registry.release(self.sort_id)
        self.filter_registry = None
        self.sort_registry = None
        self.values = []
        self.sorts = []
        self.id_bounds = Bounds()
        self.joins = []
        self.filter_id = 0
        self.sort_id = 0