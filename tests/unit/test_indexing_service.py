"""Tests for github_plugin.services.indexing_service — fingerprint skip rule."""

import pytest

from github_plugin.models.schemas import file_id_for
from github_plugin.services.indexing_service import (
    IndexingConfig,
    IndexingService,
    content_fingerprint,
)
from github_plugin.services.repo_service import RepoInfo
from github_plugin.services.store import CODE_FILES


@pytest.fixture
def indexing(embedding_service, store):
    return IndexingService(embedding_service, store)


async def _snapshot(store, repository, paths):
    records = {}
    for path in paths:
        record = await store.backend.get(
            CODE_FILES, file_id_for(repository.owner, repository.name, path)
        )
        records[path] = (record.metadata["content_hash"], list(record.embedding))
    return records


class TestContentFingerprint:
    def test_sha256_hex(self):
        assert content_fingerprint("abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )


class TestRegisterRepository:
    @pytest.mark.asyncio
    async def test_registers_once(self, indexing, store, sample_project):
        info = RepoInfo(
            owner="acme", name="widgets", url="https://github.com/acme/widgets",
            local_path=str(sample_project),
        )
        first = await indexing.register_repository(info)
        second = await indexing.register_repository(info)
        assert first.id == second.id
        assert len(await store.list_repositories()) == 1


class TestIndexRepository:
    @pytest.mark.asyncio
    async def test_first_run_embeds_every_file(self, indexing, embedding_service, repository):
        result = await indexing.index_repository(repository)
        assert result.total_files > 0
        assert result.embedded_files == result.total_files
        assert len(embedding_service.calls) == result.total_files

    @pytest.mark.asyncio
    async def test_second_run_embeds_nothing(self, indexing, embedding_service, repository):
        await indexing.index_repository(repository)
        embedding_service.calls.clear()

        result = await indexing.index_repository(repository)
        assert embedding_service.calls == []
        assert result.embedded_files == 0
        assert result.unchanged_files == result.total_files

    @pytest.mark.asyncio
    async def test_records_byte_identical_after_rerun(self, indexing, store, repository):
        paths = ["README.md", "widgets/core.py"]
        await indexing.index_repository(repository)
        before = await _snapshot(store, repository, paths)
        await indexing.index_repository(repository)
        assert await _snapshot(store, repository, paths) == before

    @pytest.mark.asyncio
    async def test_changed_file_is_reembedded(self, indexing, embedding_service, store, repository, sample_project):
        await indexing.index_repository(repository)
        embedding_service.calls.clear()

        (sample_project / "README.md").write_text("# Widgets\nNow with gadgets.\n")
        result = await indexing.index_repository(repository)

        assert result.embedded_files == 1
        assert len(embedding_service.calls) == 1
        stored = await store.get_file(file_id_for("acme", "widgets", "README.md"))
        assert stored.content_hash == content_fingerprint("# Widgets\nNow with gadgets.\n")

    @pytest.mark.asyncio
    async def test_binary_file_skipped(self, indexing, repository, sample_project):
        (sample_project / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe")
        result = await indexing.index_repository(repository)
        assert result.skipped_files == 1
        assert any("logo.png" in e for e in result.errors)

    @pytest.mark.asyncio
    async def test_subpath_scopes_ingestion(self, embedding_service, store, repository):
        service = IndexingService(embedding_service, store, IndexingConfig(subpath="docs"))
        result = await service.index_repository(repository)
        assert result.total_files == 1
        assert await store.get_file(file_id_for("acme", "widgets", "docs/build.md")) is not None

    @pytest.mark.asyncio
    async def test_deleted_file_record_removed(self, indexing, store, repository, sample_project):
        await indexing.index_repository(repository)
        (sample_project / "docs" / "build.md").unlink()

        result = await indexing.index_repository(repository)

        assert result.removed_files == 1
        assert await store.get_file(file_id_for("acme", "widgets", "docs/build.md")) is None
        assert "docs/build.md" not in await store.list_file_paths(repository.id)
        assert await store.get_file(file_id_for("acme", "widgets", "README.md")) is not None

    @pytest.mark.asyncio
    async def test_subpath_run_keeps_records_outside_scope(self, indexing, embedding_service, store, repository):
        await indexing.index_repository(repository)
        scoped = IndexingService(embedding_service, store, IndexingConfig(subpath="docs"))

        result = await scoped.index_repository(repository)

        assert result.removed_files == 0
        assert await store.get_file(file_id_for("acme", "widgets", "main.py")) is not None
