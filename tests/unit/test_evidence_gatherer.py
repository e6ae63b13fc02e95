"""Tests for github_plugin.agents.evidence_gatherer — iterative file discovery."""

import json
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from github_plugin.agents.evidence_gatherer import (
    READ_ERROR_PLACEHOLDER,
    CheckedFileSet,
    EvidenceGatherer,
    EvidenceGathererConfig,
)
from github_plugin.api.middleware.error_handler import (
    EmbeddingError,
    InvalidInputError,
    RepositoryNotFoundError,
)
from github_plugin.models.schemas import IndexedFile, file_id_for, memory_id_for
from github_plugin.services.indexing_service import IndexingService
from github_plugin.services.store import MEMORIES

SUFFICIENCY_MARKER = "TASK: Determine if the information above is sufficient"
ANSWER_MARKER = "TASK: Answer the following question"
SELECTION_MARKER = "List of potential files:"


def _section(prompt, header):
    """Lines listed under a header of the file-selection prompt."""
    body = prompt.split(header + "\n", 1)[1].split("\n---", 1)[0]
    body = body.split("\nRespond with", 1)[0]
    return [line for line in body.splitlines() if line.strip()]


def candidates_in(prompt):
    return _section(prompt, SELECTION_MARKER)


def checked_in(prompt):
    return _section(prompt, "List of files already checked:")


def router(sufficient=False, answer="An answer.", pick=1):
    """Reply by prompt kind: sufficiency verdict, answer, or file picks."""
    def reply(prompt):
        if SUFFICIENCY_MARKER in prompt:
            return "YES" if sufficient else "NO"
        if ANSWER_MARKER in prompt:
            return answer(prompt) if callable(answer) else answer
        if SELECTION_MARKER in prompt:
            return "```json\n" + json.dumps(candidates_in(prompt)[:pick]) + "\n```"
        return ""
    return reply


@pytest_asyncio.fixture
async def indexed(embedding_service, store, repository):
    await store.save_repository(repository, await embedding_service.embed(repository.describe()))
    await IndexingService(embedding_service, store).index_repository(repository)
    embedding_service.calls.clear()
    return repository


def _gatherer(store, embedding_service, llm, **overrides):
    return EvidenceGatherer(store, embedding_service, llm, EvidenceGathererConfig(**overrides))


# ── CheckedFileSet ───────────────────────────────────────────────────────────


class TestCheckedFileSet:
    def test_keeps_insertion_order(self):
        checked = CheckedFileSet(["b.py", "a.py"])
        assert checked.paths == ["b.py", "a.py"]

    def test_no_duplicates(self):
        checked = CheckedFileSet(["a.py"])
        assert checked.update(["a.py", "b.py", "b.py"]) == ["b.py"]
        assert len(checked) == 2

    def test_empty_path_ignored(self):
        checked = CheckedFileSet()
        assert checked.add("") is False
        assert "" not in checked


# ── answer_question: terminal states ─────────────────────────────────────────


class TestAnswerQuestion:
    @pytest.mark.asyncio
    async def test_sufficient_first_round(self, indexed, store, embedding_service, make_llm):
        def answer(prompt):
            assert "Programming Language :: Python" in prompt
            return "The project is written in Python, see pyproject.toml."

        llm = make_llm(default=router(sufficient=True, answer=answer))
        gatherer = _gatherer(store, embedding_service, llm, top_k=20)

        result = await gatherer.answer_question("What language is this project written in?", indexed)

        assert result.sufficient is True
        assert "Python" in result.answer
        assert result.attempts == 1
        assert len(llm.prompts_containing(SUFFICIENCY_MARKER)) == 1
        assert llm.prompts_containing(SELECTION_MARKER) == []

    @pytest.mark.asyncio
    async def test_insufficient_after_exactly_two_rounds(self, indexed, store, embedding_service, make_llm):
        llm = make_llm(default=router(sufficient=False))
        gatherer = _gatherer(store, embedding_service, llm, max_attempts=2, top_k=1)

        result = await gatherer.answer_question("How is the project deployed?", indexed)

        assert result.insufficient_evidence is True
        assert result.answer is None
        assert result.attempts == 2
        assert len(llm.prompts_containing(SUFFICIENCY_MARKER)) == 2
        assert len(llm.prompts_containing(SELECTION_MARKER)) == 1
        assert llm.prompts_containing(ANSWER_MARKER) == []

    @pytest.mark.asyncio
    async def test_unparseable_verdict_is_not_sufficient(self, indexed, store, embedding_service, make_llm):
        llm = make_llm(default=lambda p: "It is hard to say." if SUFFICIENCY_MARKER in p else "[]")
        gatherer = _gatherer(store, embedding_service, llm, max_attempts=2)

        result = await gatherer.answer_question("What does it do?", indexed)
        assert result.insufficient_evidence is True

    @pytest.mark.asyncio
    async def test_unindexed_repository_reads_raw_tree(self, repository, store, embedding_service, make_llm):
        await store.save_repository(repository, [1.0])

        def reply(prompt):
            if SELECTION_MARKER in prompt:
                assert "pyproject.toml" in candidates_in(prompt)
                return '["pyproject.toml"]'
            if SUFFICIENCY_MARKER in prompt:
                return "YES"
            return "Python."

        notes = []

        async def notify(text):
            notes.append(text)

        llm = make_llm(default=reply)
        gatherer = _gatherer(store, embedding_service, llm, max_attempts=1)
        result = await gatherer.answer_question("What language is this project written in?", repository, notify)

        assert result.answer == "Python."
        assert result.attempts == 1
        assert result.checked_files == ["pyproject.toml"]
        assert len(llm.prompts_containing(SELECTION_MARKER)) == 1
        assert notes == ["I'll read the following files to gather more information: pyproject.toml"]

    @pytest.mark.asyncio
    async def test_unindexed_repository_nothing_picked(self, repository, store, embedding_service, make_llm):
        llm = make_llm(default="[]")
        result = await _gatherer(store, embedding_service, llm, max_attempts=2) \
            .answer_question("What is this?", repository)

        assert result.insufficient_evidence is True
        assert result.attempts == 0
        assert llm.prompts_containing(SUFFICIENCY_MARKER) == []

    @pytest.mark.asyncio
    async def test_second_round_answers(self, indexed, store, embedding_service, make_llm):
        verdicts = iter(["NO", "YES"])

        def reply(prompt):
            if SUFFICIENCY_MARKER in prompt:
                return next(verdicts)
            return router(answer="Run pip install.")(prompt)

        notes = []

        async def notify(text):
            notes.append(text)

        llm = make_llm(default=reply)
        gatherer = _gatherer(store, embedding_service, llm, top_k=1, max_attempts=3)
        result = await gatherer.answer_question("How do I build it?", indexed, notify)

        assert result.answer == "Run pip install."
        assert result.attempts == 2
        assert len(result.checked_files) == 2
        assert len(notes) == 1
        assert notes[0].startswith("I'll read the following files to gather more information: ")
        assert result.checked_files[1] in notes[0]


# ── answer_question: invariants ──────────────────────────────────────────────


class TestGatherInvariants:
    @pytest.mark.asyncio
    async def test_candidates_disjoint_and_checked_monotonic(self, indexed, store, embedding_service, make_llm):
        llm = make_llm(default=router(sufficient=False, pick=2))
        gatherer = _gatherer(store, embedding_service, llm, top_k=1, max_attempts=4)

        result = await gatherer.answer_question("Where is rendering implemented?", indexed)

        selections = llm.prompts_containing(SELECTION_MARKER)
        assert len(selections) == 3
        previous = []
        for prompt in selections:
            candidates, checked = candidates_in(prompt), checked_in(prompt)
            assert not set(candidates) & set(checked)
            assert checked[:len(previous)] == previous
            assert len(checked) > len(previous)
            previous = checked

        assert len(result.checked_files) == len(set(result.checked_files))
        assert result.checked_files[:len(previous)] == previous

    @pytest.mark.asyncio
    async def test_picks_filtered_to_candidates(self, indexed, store, embedding_service, make_llm):
        def reply(prompt):
            if SELECTION_MARKER in prompt:
                already = checked_in(prompt)[0]
                return json.dumps([already, "../../etc/passwd", "not/in/tree.py", "./docs/build.md"])
            return "NO"

        llm = make_llm(default=reply)
        gatherer = _gatherer(store, embedding_service, llm, top_k=1, max_attempts=2)
        result = await gatherer.answer_question("print running widgets", indexed)

        assert len(result.checked_files) == 2
        assert result.checked_files[1] == "docs/build.md"

    @pytest.mark.asyncio
    async def test_stops_when_no_new_files(self, indexed, store, embedding_service, make_llm):
        llm = make_llm(default=lambda p: "[]" if SELECTION_MARKER in p else "NO")
        gatherer = _gatherer(store, embedding_service, llm, max_attempts=5)

        result = await gatherer.answer_question("Anything?", indexed)

        assert result.insufficient_evidence is True
        assert result.attempts == 1
        assert len(llm.prompts_containing(SUFFICIENCY_MARKER)) == 1

    @pytest.mark.asyncio
    async def test_max_new_files_cap(self, indexed, store, embedding_service, make_llm):
        llm = make_llm(default=router(sufficient=False, pick=10))
        gatherer = _gatherer(store, embedding_service, llm, top_k=1, max_attempts=2, max_new_files=3)

        result = await gatherer.answer_question("Explain everything", indexed)
        assert len(result.checked_files) == 4


# ── per-file read failures ───────────────────────────────────────────────────


class TestReadFailures:
    @pytest.mark.asyncio
    async def test_one_failed_read_of_five(self, indexed, store, embedding_service, make_llm):
        question = "Where is the gone module?"
        await store.upsert_file(IndexedFile(
            id=file_id_for("acme", "widgets", "gone.py"),
            repository_id=indexed.id,
            name="gone.py",
            relative_path="gone.py",
            content_hash="stale",
            embedding=await embedding_service.embed(question),
        ))

        llm = make_llm(default=router(sufficient=False))
        gatherer = _gatherer(store, embedding_service, llm, top_k=5, max_attempts=2)
        result = await gatherer.answer_question(question, indexed)

        first_round = llm.prompts_containing(SUFFICIENCY_MARKER)[0]
        assert "File: gone.py" in first_round
        assert READ_ERROR_PLACEHOLDER in first_round
        assert result.attempts == 2

    @pytest.mark.asyncio
    async def test_read_evidence_tolerates_failure(self, indexed, store, embedding_service, make_llm):
        gatherer = _gatherer(store, embedding_service, make_llm())
        paths = ["README.md", "main.py", "missing.py", "widgets/core.py", "docs/build.md"]

        evidence = await gatherer._read_evidence(indexed.local_path, paths)

        assert [e.path for e in evidence] == paths
        failed = [e for e in evidence if e.error]
        assert len(failed) == 1
        assert failed[0].path == "missing.py"
        assert failed[0].content == READ_ERROR_PLACEHOLDER
        assert sum(1 for e in evidence if e.error is None) == 4

    @pytest.mark.asyncio
    async def test_path_escape_is_a_read_failure(self, indexed, store, embedding_service, make_llm):
        gatherer = _gatherer(store, embedding_service, make_llm())
        evidence = await gatherer._read_evidence(indexed.local_path, ["../../outside.txt"])
        assert evidence[0].content == READ_ERROR_PLACEHOLDER


# ── evidence memory ──────────────────────────────────────────────────────────


class TestEvidenceMemory:
    @pytest.mark.asyncio
    async def test_memory_seeds_next_session(self, indexed, store, embedding_service, make_llm):
        verdicts = iter(["NO", "YES"])

        def first_reply(prompt):
            if SUFFICIENCY_MARKER in prompt:
                return next(verdicts)
            return router()(prompt)

        question = "How is the project built?"
        first = await _gatherer(store, embedding_service, make_llm(default=first_reply), top_k=1) \
            .answer_question(question, indexed)
        assert first.sufficient and len(first.checked_files) == 2

        llm = make_llm(default=router(sufficient=True))
        second = await _gatherer(store, embedding_service, llm, top_k=1).answer_question(question, indexed)

        assert second.attempts == 1
        assert second.checked_files == first.checked_files

    @pytest.mark.asyncio
    async def test_repeated_question_keeps_one_memory(self, indexed, store, embedding_service, make_llm):
        for _ in range(3):
            llm = make_llm(default=router(sufficient=True))
            await _gatherer(store, embedding_service, llm).answer_question("How is it built?", indexed)

        assert store.backend.count(MEMORIES) == 1
        hits = await store.search_memories(await embedding_service.embed("How is it built?"), indexed.id)
        assert hits[0][0].id == memory_id_for(indexed.id, "How is it built?")

    @pytest.mark.asyncio
    async def test_memory_failure_does_not_fail_answer(self, indexed, store, embedding_service, make_llm):
        store.create_memory = AsyncMock(side_effect=RuntimeError("disk full"))
        llm = make_llm(default=router(sufficient=True, answer="ok"))
        result = await _gatherer(store, embedding_service, llm).answer_question("q?", indexed)
        assert result.answer == "ok"


# ── input errors ─────────────────────────────────────────────────────────────


class TestInputErrors:
    @pytest.mark.asyncio
    async def test_empty_question(self, indexed, store, embedding_service, make_llm):
        llm = make_llm()
        with pytest.raises(InvalidInputError):
            await _gatherer(store, embedding_service, llm).answer_question("   ", indexed)
        assert llm.prompts == []

    @pytest.mark.asyncio
    async def test_missing_repository(self, store, embedding_service, make_llm):
        with pytest.raises(RepositoryNotFoundError):
            await _gatherer(store, embedding_service, make_llm()).answer_question("q?", None)

    @pytest.mark.asyncio
    async def test_missing_checkout(self, indexed, store, embedding_service, make_llm, tmp_path):
        gone = indexed.model_copy(update={"local_path": str(tmp_path / "gone")})
        with pytest.raises(RepositoryNotFoundError):
            await _gatherer(store, embedding_service, make_llm()).answer_question("q?", gone)

    @pytest.mark.asyncio
    async def test_embedding_failure_propagates(self, indexed, store, make_llm):
        broken = AsyncMock()
        broken.embed.side_effect = EmbeddingError("model unavailable")
        with pytest.raises(EmbeddingError):
            await _gatherer(store, broken, make_llm()).answer_question("q?", indexed)
