"""SQL text for the system tables, collection tables and index tables."""

from __future__ import annotations

from dataclasses import dataclass

_DB_INIT = """
	CREATE TABLE IF NOT EXISTS '%ns_system_collections' (
		name TEXT NOT NULL PRIMARY KEY
	);
	CREATE TABLE IF NOT EXISTS '%ns_system_indexes' (
		name TEXT NOT NULL,
		collection TEXT NOT NULL,
		fields TEXT NOT NULL,
		isSparse BOOL NOT NULL DEFAULT FALSE,
		isUnique BOOL NOT NULL DEFAULT FALSE
	);
	CREATE UNIQUE INDEX IF NOT EXISTS '%ns_system_indexes_index' ON '%ns_system_indexes' (collection, name);
"""

_REGISTER_INDEX = """
		INSERT INTO '%ns_system_indexes' (name, collection, fields, isSparse, isUnique) 
			VALUES(:indexName, :collName, :fields, :sparse, :unique)
	"""

_COLL_CREATE = """
	CREATE TABLE IF NOT EXISTS '%ns_%coll_docs' (
		id BLOB NOT NULL PRIMARY KEY,
		data JSONB NOT NULL
	);
"""

_COLL_DROP = """
	DROP TABLE '%ns_%coll_docs';
"""

_INDEX_CREATE_HEADER = "CREATE TABLE IF NOT EXISTS '%ns_%coll_%idx_idx' ("


@dataclass(frozen=True)
class DBSql:
    """Statements that concern the whole database within a namespace."""

    namespace: str = ""

    def with_ns(self, sql: str) -> str:
        return sql.replace("%ns", self.namespace)

    def init_db(self) -> str:
        return self.with_ns(_DB_INIT)

    def collection(self, name: str) -> CollectionSql:
        return CollectionSql(self, name)

    def register_collection_stmt(self) -> str:
        return self.with_ns("INSERT INTO '%ns_system_collections' (name) VALUES (:collName)")

    def remove_collection_stmt(self) -> str:
        return self.with_ns("DELETE FROM '%ns_system_collections' WHERE name = :collName")

    def rename_collection_stmt(self) -> str:
        return self.with_ns(
            "UPDATE '%ns_system_collections' SET name = :newName WHERE name = :oldName"
        )

    def rename_collection_index_stmt(self) -> str:
        return self.with_ns(
            "UPDATE '%ns_system_indexes' SET collection = :newName WHERE collection = :oldName"
        )

    def register_index_stmt(self) -> str:
        return self.with_ns(_REGISTER_INDEX)

    def remove_index_stmt(self) -> str:
        return self.with_ns(
            "DELETE FROM '%ns_system_indexes' WHERE name = :indexName AND collection = :collName"
        )

    def find_collection(self) -> str:
        return self.with_ns("SELECT * FROM '%ns_system_collections' WHERE name = :collName")

    def find_collections(self) -> str:
        return self.with_ns("SELECT name FROM '%ns_system_collections'")

    def find_indexes(self) -> str:
        return self.with_ns(
            "SELECT name, fields, isSparse, isUnique FROM '%ns_system_indexes' "
            "WHERE collection = :collName"
        )

    def count_indexes(self) -> str:
        return self.with_ns("SELECT COUNT(*) FROM '%ns_system_indexes'")

    def count_collections(self) -> str:
        return self.with_ns("SELECT COUNT(*) FROM '%ns_system_collections'")

    def stats_total_size(self) -> str:
        return (
            "SELECT page_count * page_size as size "
            "FROM pragma_page_count(), pragma_page_size();"
        )

    def stats_data_size(self) -> str:
        return (
            "SELECT (page_count - freelist_count) * page_size as size "
            "FROM pragma_page_count(), pragma_freelist_count(), pragma_page_size();"
        )


@dataclass(frozen=True)
class CollectionSql:
    """Statements for one collection's document table."""

    db: DBSql
    name: str

    def with_coll(self, sql: str) -> str:
        return self.db.with_ns(sql).replace("%coll", self.name)

    def with_2coll(self, sql: str, name: str) -> str:
        return self.with_coll(sql).replace("%2coll", name)

    def table_name(self) -> str:
        return self.with_coll("%ns_%coll_docs")

    def create(self) -> str:
        return self.with_coll(_COLL_CREATE)

    def drop(self) -> str:
        return self.with_coll(_COLL_DROP)

    def rename(self, new_name: str) -> str:
        return self.with_2coll(
            "ALTER TABLE '%ns_%coll_docs' RENAME TO '%ns_%2coll_docs';", new_name
        )

    def delete_stmt(self) -> str:
        return self.with_coll("DELETE FROM '%ns_%coll_docs' WHERE id = :id")

    def insert_stmt(self) -> str:
        return self.with_coll("INSERT INTO '%ns_%coll_docs' (id, data) VALUES (:id, :data)")

    def update_stmt(self) -> str:
        return self.with_coll("UPDATE '%ns_%coll_docs' SET data = :data WHERE id = :id")

    def find_id_stmt(self) -> str:
        return self.with_coll("SELECT data FROM '%ns_%coll_docs' WHERE id = :id")

    def index(self, index_name: str) -> IndexSql:
        return IndexSql(self, index_name)


@dataclass(frozen=True)
class IndexSql:
    """Statements for one index table of a collection."""

    collection: CollectionSql
    name: str

    def with_index(self, sql: str) -> str:
        return self.collection.with_coll(sql).replace("%idx", self.name)

    def table_name(self) -> str:
        return self.with_index("%ns_%coll_%idx_idx")

    def create(self, unique: bool, fields_is_desc: list[bool]) -> str:
        parts = [self.with_index(_INDEX_CREATE_HEADER)]
        parts.extend(f"\n\tval{i} BLOB NOT NULL," for i in range(len(fields_is_desc)))
        parts.append("\n\tdocId BLOB NOT NULL,")
        parts.append("\n\tPRIMARY KEY (")
        keys = [
            f"\n\tval{i}" + (" DESC" if is_desc else "")
            for i, is_desc in enumerate(fields_is_desc)
        ]
        parts.append(",".join(keys))
        if not unique:
            parts.append(", docId")
        parts.append(")\n)")
        return "".join(parts)

    def drop(self) -> str:
        return self.with_index("DROP TABLE '%ns_%coll_%idx_idx'")

    def rename_coll(self, new_coll_name: str) -> str:
        return self.collection.with_2coll(
            self.with_index("ALTER TABLE '%ns_%coll_%idx_idx' RENAME TO '%ns_%2coll_%idx_idx';"),
            new_coll_name,
        )

    def insert_stmt(self, num_fields: int) -> str:
        fields = ["docId", *(f"val{i}" for i in range(num_fields))]
        values = [":docId", *(f":val{i}" for i in range(num_fields))]
        head = self.with_index("INSERT INTO '%ns_%coll_%idx_idx'")
        return f"{head} ({', '.join(fields)}) VALUES ({', '.join(values)})"

    def delete_stmt(self, num_fields: int) -> str:
        conditions = ["docId = :docId", *(f"val{i} = :val{i}" for i in range(num_fields))]
        head = self.with_index("DELETE FROM '%ns_%coll_%idx_idx' WHERE")
        return f"{head} {' AND '.join(conditions)}"