import pytest

from anystore.sqlgen import CollectionSql, DBSql, IndexSql

DB = DBSql("ns")
COLL = DB.collection("docs")
IDX = COLL.index("field")


def test_collection_table_name_without_namespace():
    assert DBSql("").collection("test").table_name() == "_test_docs"


def test_index_table_name_without_namespace():
    assert DBSql("").collection("test_s").index("a").table_name() == "_test_s_a_idx"


def test_stats_total_size_is_fixed():
    assert DB.stats_total_size() == (
        "SELECT page_count * page_size as size FROM pragma_page_count(), pragma_page_size();"
    )


def test_with_coll_replaces_both_placeholders():
    assert COLL.with_coll("%ns/%coll") == "ns/docs"


def test_factories_build_equal_objects():
    assert DB.collection("docs") == CollectionSql(DBSql("ns"), "docs")
    assert COLL.index("field") == IndexSql(COLL, "field")


@pytest.mark.parametrize(
    "make",
    [
        DB.init_db,
        DB.register_collection_stmt,
        DB.remove_collection_stmt,
        DB.rename_collection_stmt,
        DB.rename_collection_index_stmt,
        DB.register_index_stmt,
        DB.remove_index_stmt,
        DB.find_collection,
        DB.find_collections,
        DB.find_indexes,
        DB.count_indexes,
        DB.count_collections,
        COLL.create,
        COLL.drop,
        lambda: COLL.rename("other"),
        COLL.delete_stmt,
        COLL.insert_stmt,
        COLL.update_stmt,
        COLL.find_id_stmt,
        lambda: IDX.create(False, [False, True]),
        IDX.drop,
        lambda: IDX.rename_coll("other"),
        lambda: IDX.insert_stmt(2),
        lambda: IDX.delete_stmt(2),
    ],
)
def test_no_placeholder_left(make):
    assert "%" not in make()


def test_system_tables_in_init():
    sql = DB.init_db()
    assert f"'{DB.with_ns('%ns_system_collections')}'" in sql
    assert f"'{DB.with_ns('%ns_system_indexes')}'" in sql


def test_collection_statements_name_table():
    table = f"'{COLL.table_name()}'"
    for stmt in (
        COLL.create(),
        COLL.drop(),
        COLL.delete_stmt(),
        COLL.insert_stmt(),
        COLL.update_stmt(),
        COLL.find_id_stmt(),
    ):
        assert table in stmt


def test_collection_rename_names_both_tables():
    sql = COLL.rename("other")
    assert f"'{COLL.table_name()}'" in sql
    assert f"'{DB.collection('other').table_name()}'" in sql


def test_index_rename_coll_names_both_tables():
    sql = IDX.rename_coll("other")
    assert f"'{IDX.table_name()}'" in sql
    assert f"'{DB.collection('other').index('field').table_name()}'" in sql


def test_index_create_non_unique():
    sql = IDX.create(False, [False, True, False])
    assert sql.startswith(IDX.with_index("CREATE TABLE IF NOT EXISTS '%ns_%coll_%idx_idx' ("))
    for i in range(3):
        assert f"val{i} BLOB NOT NULL" in sql
    assert "val3" not in sql
    assert "val1 DESC" in sql
    assert "val0 DESC" not in sql
    assert ", docId" in sql


def test_index_create_unique_has_no_doc_id_in_key():
    sql = IDX.create(True, [False])
    assert ", docId" not in sql
    assert "docId BLOB NOT NULL" in sql


def test_index_insert_stmt():
    sql = IDX.insert_stmt(3)
    assert f"'{IDX.table_name()}'" in sql
    assert sql.count(":val") == 3
    assert ":docId" in sql
    assert ":val3" not in sql


def test_index_delete_stmt():
    sql = IDX.delete_stmt(2)
    assert "docId = :docId" in sql
    assert sql.count(" AND ") == 2
    assert "val1 = :val1" in sql