from emberlite.dialects import SQLiteDialect


def test_sqlite_identifier_quoting():
    dialect = SQLiteDialect()
    assert dialect.quote_identifier("table") == '"table"'
    assert dialect.quote_identifier('bad"name') == '"bad""name"'


def test_sqlite_placeholder_and_capabilities():
    dialect = SQLiteDialect()
    assert dialect.parameter_placeholder() == "?"
    assert dialect.capabilities.supports_multi_row_values is False
    assert dialect.capabilities.supports_drop_column is False
    assert dialect.capabilities.supports_truncate is False


def test_sqlite_bookkeeping_names():
    dialect = SQLiteDialect()
    assert dialect.sequence_table == "sqlite_sequence"
    assert dialect.catalog_table == "sqlite_master"
    assert dialect.journal_pragma == "PRAGMA journal_mode=WAL;"
