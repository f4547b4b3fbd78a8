"""Tests for the alloydb-vectorstore CLI."""

from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest
from click.testing import CliRunner

from alloydb_vectorstore.cli import main
from alloydb_vectorstore.vectorstore.alloydb_store import AlloyDBVectorStore
from alloydb_vectorstore.vectorstore.distance import DistanceStrategy
from alloydb_vectorstore.vectorstore.exceptions import ExecutionError, SchemaMismatchError
from alloydb_vectorstore.vectorstore.index import HNSWIndex, ScaNNIndex


# ── Fixtures ──────────────────────────────────────────────


@pytest.fixture
def runner():
    return CliRunner()


def _mock_db():
    """Create a mock Database."""
    db = AsyncMock()
    db.connect = AsyncMock()
    db.close = AsyncMock()
    db.health_check = AsyncMock(return_value=True)
    db.vector_extension_version = AsyncMock(return_value="0.7.0")
    return db


def _mock_store():
    store = AsyncMock()
    store.apply_vector_index = AsyncMock(return_value="documents_langchainvectorindex")
    store.drop_vector_index = AsyncMock()
    store.remove_all = AsyncMock(return_value=2)
    store.default_index_name = MagicMock(return_value="documents_langchainvectorindex")
    return store


# ── init-table ───────────────────────────────────────────


class TestInitTable:
    """Tests for `init-table` command."""

    def test_init_table(self, runner):
        mock_db = _mock_db()
        init = AsyncMock()

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db), \
             patch("alloydb_vectorstore.storage.table.init_vectorstore_table", init):
            result = runner.invoke(main, [
                "init-table", "documents",
                "--vector-size", "768",
                "--metadata-column", "page:INT",
                "--metadata-column", "source:TEXT:notnull",
            ])

        assert result.exit_code == 0, result.output
        assert 'Table "public"."documents" initialized successfully' in result.output
        schema = init.call_args.args[1]
        assert schema.metadata_column_names == ["page", "source"]
        assert schema.metadata_columns[1].nullable is False
        assert init.call_args.args[2] == 768
        assert init.call_args.kwargs == {"overwrite_existing": False, "store_metadata": True}
        mock_db.close.assert_called_once()

    def test_init_table_no_json_overwrite(self, runner):
        mock_db = _mock_db()
        init = AsyncMock()

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db), \
             patch("alloydb_vectorstore.storage.table.init_vectorstore_table", init):
            result = runner.invoke(main, [
                "init-table", "documents", "--vector-size", "3", "--no-json", "--overwrite",
            ])

        assert result.exit_code == 0, result.output
        assert init.call_args.args[1].metadata_json_column is None
        assert init.call_args.kwargs == {"overwrite_existing": True, "store_metadata": False}

    def test_init_table_bad_metadata_column(self, runner):
        result = runner.invoke(main, [
            "init-table", "documents", "--vector-size", "3", "--metadata-column", "page",
        ])

        assert result.exit_code != 0
        assert "NAME:TYPE" in result.output

    def test_init_table_failure(self, runner):
        mock_db = _mock_db()
        init = AsyncMock(side_effect=ExecutionError(
            '"public"."documents"', "init_table", RuntimeError("permission denied"),
        ))

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db), \
             patch("alloydb_vectorstore.storage.table.init_vectorstore_table", init):
            result = runner.invoke(main, ["init-table", "documents", "--vector-size", "3"])

        assert result.exit_code == 1
        assert "Failed to initialize table" in result.output
        mock_db.close.assert_called_once()


# ── create-index / drop-index ────────────────────────────


class TestIndexCommands:
    """Tests for `create-index` and `drop-index` commands."""

    def test_create_hnsw_index(self, runner):
        mock_db = _mock_db()
        store = _mock_store()
        create = AsyncMock(return_value=store)

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db), \
             patch(
                 "alloydb_vectorstore.vectorstore.alloydb_store.AlloyDBVectorStore.create",
                 create,
             ):
            result = runner.invoke(main, ["create-index", "documents"])

        assert result.exit_code == 0, result.output
        assert "Created hnsw index documents_langchainvectorindex" in result.output
        index = store.apply_vector_index.call_args.args[0]
        assert index == HNSWIndex()
        assert store.apply_vector_index.call_args.kwargs == {"name": None, "concurrently": False}

    def test_create_scann_index_euclidean(self, runner):
        mock_db = _mock_db()
        store = _mock_store()
        create = AsyncMock(return_value=store)

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db), \
             patch(
                 "alloydb_vectorstore.vectorstore.alloydb_store.AlloyDBVectorStore.create",
                 create,
             ):
            result = runner.invoke(main, [
                "create-index", "documents", "--type", "scann",
                "--distance", "euclidean", "--name", "docs_idx", "--concurrently",
            ])

        assert result.exit_code == 0, result.output
        assert create.call_args.kwargs["distance_strategy"] is DistanceStrategy.EUCLIDEAN
        index = store.apply_vector_index.call_args.args[0]
        assert index == ScaNNIndex(distance_strategy=DistanceStrategy.EUCLIDEAN)
        assert store.apply_vector_index.call_args.kwargs == {
            "name": "docs_idx", "concurrently": True,
        }

    def test_create_index_missing_table(self, runner):
        mock_db = _mock_db()
        create = AsyncMock(side_effect=SchemaMismatchError(
            "Table does not exist", '"public"."missing"',
        ))

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db), \
             patch(
                 "alloydb_vectorstore.vectorstore.alloydb_store.AlloyDBVectorStore.create",
                 create,
             ):
            result = runner.invoke(main, ["create-index", "missing"])

        assert result.exit_code == 1
        assert "Table does not exist" in result.output
        mock_db.close.assert_called_once()

    def test_drop_index(self, runner):
        mock_db = _mock_db()
        store = _mock_store()

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db), \
             patch(
                 "alloydb_vectorstore.vectorstore.alloydb_store.AlloyDBVectorStore.create",
                 AsyncMock(return_value=store),
             ):
            result = runner.invoke(main, ["drop-index", "documents"])

        assert result.exit_code == 0, result.output
        store.drop_vector_index.assert_called_once_with(None)
        assert "Dropped index documents_langchainvectorindex" in result.output

    def test_drop_index_custom_columns(self, runner):
        mock_db = _mock_db()
        create = AsyncMock(return_value=_mock_store())

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db), \
             patch(
                 "alloydb_vectorstore.vectorstore.alloydb_store.AlloyDBVectorStore.create",
                 create,
             ):
            result = runner.invoke(main, [
                "drop-index", "docs",
                "--id-column", "doc_id", "--embedding-column", "vec",
            ])

        assert result.exit_code == 0, result.output
        schema = create.call_args.args[1]
        assert schema.id_column == "doc_id"
        assert schema.embedding_column == "vec"
        assert schema.content_column == "content"


class TestCustomColumnTable:
    """Index commands against a table created with a non-default id column."""

    @pytest.fixture
    def docs_db(self):
        mock_db = _mock_db()
        mock_db.fetch = AsyncMock(return_value=[
            {"column_name": "doc_id", "data_type": "uuid"},
            {"column_name": "content", "data_type": "text"},
            {"column_name": "embedding", "data_type": "USER-DEFINED"},
        ])
        return mock_db

    def test_default_id_column_not_found(self, runner, docs_db):
        with patch("alloydb_vectorstore.storage.database.Database", return_value=docs_db):
            result = runner.invoke(main, ["create-index", "docs"])

        assert result.exit_code == 1
        assert "langchain_id" in result.output

    def test_create_index_with_id_column(self, runner, docs_db):
        apply = AsyncMock(return_value="docs_langchainvectorindex")

        with patch("alloydb_vectorstore.storage.database.Database", return_value=docs_db), \
             patch.object(AlloyDBVectorStore, "apply_vector_index", apply):
            result = runner.invoke(main, ["create-index", "docs", "--id-column", "doc_id"])

        assert result.exit_code == 0, result.output
        assert "Created hnsw index docs_langchainvectorindex on docs" in result.output
        apply.assert_called_once()
        docs_db.close.assert_called_once()


# ── remove ───────────────────────────────────────────────


class TestRemove:
    """Tests for `remove` command."""

    def test_remove_ids(self, runner):
        mock_db = _mock_db()
        store = _mock_store()

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db), \
             patch(
                 "alloydb_vectorstore.vectorstore.alloydb_store.AlloyDBVectorStore.create",
                 AsyncMock(return_value=store),
             ):
            result = runner.invoke(main, ["remove", "documents", "a", "b", "c"])

        assert result.exit_code == 0, result.output
        store.remove_all.assert_called_once_with(["a", "b", "c"])
        assert "Deleted 2 of 3 rows from documents" in result.output

    def test_remove_requires_ids(self, runner):
        result = runner.invoke(main, ["remove", "documents"])

        assert result.exit_code != 0


# ── health ───────────────────────────────────────────────


class TestHealth:
    """Tests for `health` command."""

    def test_healthy(self, runner):
        mock_db = _mock_db()

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db):
            result = runner.invoke(main, ["health"])

        assert result.exit_code == 0
        assert "postgres: True" in result.output
        assert "vector_extension: True" in result.output
        assert "Database healthy!" in result.output

    def test_missing_vector_extension(self, runner):
        mock_db = _mock_db()
        mock_db.vector_extension_version = AsyncMock(return_value=None)

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db):
            result = runner.invoke(main, ["health"])

        assert result.exit_code == 1
        assert "postgres: True" in result.output
        assert "vector_extension: False" in result.output
        assert "Database unhealthy!" in result.output

    def test_unreachable(self, runner):
        mock_db = _mock_db()
        mock_db.connect = AsyncMock(side_effect=ConnectionRefusedError("refused"))

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db):
            result = runner.invoke(main, ["health"])

        assert result.exit_code == 1
        assert "postgres: False" in result.output
        mock_db.close.assert_called_once()

    def test_auth_failure(self, runner):
        mock_db = _mock_db()
        mock_db.connect = AsyncMock(
            side_effect=asyncpg.exceptions.InvalidPasswordError("password authentication failed")
        )

        with patch("alloydb_vectorstore.storage.database.Database", return_value=mock_db):
            result = runner.invoke(main, ["health"])

        assert result.exit_code == 1
        assert "Database unhealthy!" in result.output
