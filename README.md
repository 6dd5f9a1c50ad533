# anystore

The building blocks of a document store on SQLite. Documents are plain
Python data (`None`, `bool`, `int`, `float`, `str`, `list`, `dict`). The
package provides:

- an order-preserving binary encoding for these values
- a Mongo-style condition language that matches documents and works out
  key ranges for indexes
- sort keys and update modifiers
- the SQL text for collection tables, index tables and queries

It needs nothing beyond the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Values and encoding

`anystore.values` converts input into document values and encodes them.

- `parse(value)` accepts JSON text, encoded bytes or plain Python data.
  It raises `ValueParseError` when the input cannot be converted.
- `encode(value)` writes a value as bytes whose order matches the order of
  the values. Each value begins with its `ValueType` byte.
- `encode_inverted(value)` gives bytes that sort in the reverse order.
- `decode(data)` reads one encoded value back.
- `format_key(data)` renders a composite key as text, such as `123/321`.
- `dumps(value)` writes compact JSON.
- `type_of(value)` returns the `ValueType` of a value.

```python
from anystore.values import encode, decode

assert encode(1) < encode(2) < encode("a")
assert decode(encode({"a": [1, "x"]})) == {"a": [1, "x"]}
```

## Conditions

```python
from anystore.condition import parse_condition
from anystore.values import parse

flt = parse_condition('{"a": {"$in": [1, 2, 3]}, "c": "test"}')
flt.ok(parse('{"a": 2, "c": "test"}'))   # True
flt.index_bounds("a", None)               # Bounds usable by an index on "a"
```

`parse_condition` accepts JSON text, encoded bytes, plain data or a ready
`Filter`. `None` gives `All()`. Invalid conditions raise `ConditionError`.
The filter classes are in `anystore.filters`: `Comp`, `Key`, `And`, `Or`,
`Nor`, `Not`, `In`, `All`, `Exists`, `TypeFilter`, `Regexp` and `Size`.
Each filter has `ok(value)` and `index_bounds(field_name, bounds)`.

Supported operators:

- logical: `$and`, `$or`, `$nor`, `$not`
- comparison: `$eq`, `$ne`, `$gt`, `$gte`, `$lt`, `$lte`
- arrays: `$in`, `$nin`, `$all`, `$size`
- other: `$exists`, `$type`, `$regex`

Key ranges are `Bound` objects held in an ordered, immutable `Bounds`
sequence (`anystore.bound`). Ranges that overlap are merged by
`append_bound` and `merge`.

## Sorting

```python
from anystore.sorting import parse_sort
from anystore.values import parse

sort = parse_sort("a.c", "-b")
key = sort.append_key(b"", parse('{"a": {"c": 1}, "b": 2}'))
```

Sort keys compare as plain byte strings. Prefix a field with `-` to sort
it in descending order. `sort.fields()` lists the `SortField`s involved.

## Modifiers

```python
from anystore.modifier_parse import parse_modifier
from anystore.values import parse

mod = parse_modifier('{"$set": {"key.sKey": "value"}, "$inc": {"n": 1}}')
result, modified = mod.modify(parse("{}"))
# result == {"key": {"sKey": "value"}, "n": 1}, modified is True
```

Supported modifiers are `$set`, `$unset`, `$inc`, `$rename`, `$pop`,
`$push`, `$pull`, `$pullAll` and `$addToSet`. A modifier does not change
its input. `modify` returns a new document and a flag that is true if the
document changed. Errors raise `ModifyError`. The modifier classes are in
`anystore.modifiers`.

## SQL generation and query support

| Module | What it provides |
| --- | --- |
| `anystore.sqlgen` | `DBSql`, `CollectionSql` and `IndexSql`, which give the SQL text for the system tables, document tables and index tables |
| `anystore.query_builder` | `QueryBuilder`, which builds the `SELECT` (or `COUNT(*)`) for a query from joins, bounds, sorts, limit and offset, and collects the bound parameter values in `values` |
| `anystore.registry` | `FilterRegistry` and `SortRegistry`, which hold a query's filter or sort order under a numeric id and evaluate encoded documents against it |
| `anystore.item` | `Item`, a document with an `id` field (`DocWithoutIdError` otherwise), plus `string_array_to_json` and `json_to_string_array` |
| `anystore.objectid` | `ObjectID`, `new_object_id`, `object_id_from_hex` and `object_id_from_timestamp` |
| `anystore.bitmap` | `Bitmap256`, an immutable set of 256 bit positions |
| `anystore.syncpool` | `SyncPool`, a thread-safe pool of `DocBuffer` scratch buffers |

```python
from anystore.sqlgen import DBSql
from anystore.query_builder import QueryBuilder

coll = DBSql("").collection("test")
coll.table_name()                 # "_test_docs"
coll.index("a").table_name()      # "_test_a_idx"

QueryBuilder(table_name="_test_docs", limit=5, offset=3).build(False)
# "SELECT data FROM '_test_docs'  LIMIT 5 OFFSET 3"
```

The generated queries call `any_filter(id, data)` and `any_sort(id, data)`.
`FilterRegistry.filter` and `SortRegistry.sort` compute the results these
functions should return. You must register them on your own SQLite
connection, for example with `sqlite3.Connection.create_function`.

## What this package does not do

The package does not open SQLite files, manage connections or run
transactions. It has no collection or database object that stores,
fetches or indexes documents, and it has no command-line tool. It produces
SQL text, parameters and callbacks, and your own code must execute them.