"""
Evidence Gatherer - Answers questions about an ingested repository.

RESPONSIBILITY:
Given a question and a registered repository, iteratively decide which
files to read until the gathered evidence is sufficient to answer, or
give up after a small number of rounds.

FLOW:
1. Embed the question
2. Seed the checked files from a matching evidence memory (if any) and
   from a similarity search over the repository's indexed files; when
   nothing is seeded, let the model pick from the file tree first
   (not counted as a round)
3. Each round:
   a. Read every checked file (in parallel, per-file failures tolerated)
   b. Ask the model whether the evidence is sufficient (YES / NO)
   c. YES -> ask for the answer, remember the evidence, stop
   d. NO  -> offer the unread files of the tree, let the model pick
             up to N of them, add them to the checked files
4. Out of rounds -> insufficient evidence (not an exception)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Iterator, List, Optional

from github_plugin.api.middleware.error_handler import (
    InvalidInputError,
    RepositoryNotFoundError,
)
from github_plugin.agents.parsing import (
    BOOLEAN_FOOTER,
    STRING_ARRAY_FOOTER,
    parse_boolean_from_text,
    parse_json_array_from_text,
)
from github_plugin.models.schemas import EvidenceMemory, Repository, memory_id_for
from github_plugin.services.llm_service import ModelTier
from github_plugin.services.navigator import (
    list_files_recursive,
    read_text_file,
    resolve_in_root,
)

logger = logging.getLogger(__name__)

Notify = Callable[[str], Awaitable[None]]

READ_ERROR_PLACEHOLDER = "[error reading file]"


SUFFICIENCY_PROMPT = """Here is the content of files from the project {project}:

{evidence}

TASK: Determine if the information above is sufficient to answer the following question:
{question}
"""

ANSWER_PROMPT = """Here is the content of files from the project {project}:

{evidence}

TASK: Answer the following question:
{question}

Answer clearly and concisely. Provide references to files or code snippets if necessary.
"""

FILE_SELECTION_PROMPT = """Determine up to {limit} files to read to gather more information about the project {project}.
The files should contain information that can help answer the question:
{question}
---
List of potential files:
{candidates}
---
List of files already checked:
{checked}
"""


@dataclass
class EvidenceGathererConfig:
    """Configuration for the evidence gatherer."""
    max_attempts: int = 2
    top_k: int = 5
    file_depth: int = 3
    max_new_files: int = 5
    max_file_chars: int = 20000
    memory_score_threshold: float = 0.85
    answer_tier: ModelTier = ModelTier.SMALL


class CheckedFileSet:
    """
    Relative paths inspected during one question.

    Insertion ordered, free of duplicates and only ever grows.
    """

    def __init__(self, paths: Optional[Iterable[str]] = None):
        self._paths: List[str] = []
        self._seen = set()
        if paths:
            self.update(paths)

    def add(self, path: str) -> bool:
        if not path or path in self._seen:
            return False
        self._seen.add(path)
        self._paths.append(path)
        return True

    def update(self, paths: Iterable[str]) -> List[str]:
        """Add paths, returning the ones that were new."""
        return [p for p in paths if self.add(p)]

    @property
    def paths(self) -> List[str]:
        return list(self._paths)

    def __contains__(self, path: object) -> bool:
        return path in self._seen

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._paths))

    def __len__(self) -> int:
        return len(self._paths)


@dataclass
class FileEvidence:
    """Content of one checked file, or a placeholder when it could not be read."""
    path: str
    content: str
    error: Optional[str] = None


@dataclass
class GatherResult:
    """Outcome of answer_question."""
    answer: Optional[str] = None
    insufficient_evidence: bool = False
    attempts: int = 0
    checked_files: List[str] = field(default_factory=list)
    evidence: List[FileEvidence] = field(default_factory=list)

    @property
    def sufficient(self) -> bool:
        return self.answer is not None and not self.insufficient_evidence


def build_evidence_context(evidence: List[FileEvidence]) -> str:
    """Concatenate (path, content) pairs in checked order."""
    return "\n\n".join(
        f"File: {item.path}\n```\n{item.content}\n```" for item in evidence
    )


class EvidenceGatherer:
    """
    Iterative retrieval-augmented file discovery.

    Collaborators are injected; the gatherer itself keeps no state
    between questions.

    Usage:
        gatherer = EvidenceGatherer(store, embedding_service, llm_service)
        result = await gatherer.answer_question("What language is this?", repository)
        if result.insufficient_evidence:
            ...
    """

    def __init__(
        self,
        store: Any,
        embedding_service: Any,
        llm_service: Any,
        config: Optional[EvidenceGathererConfig] = None,
    ):
        self.store = store
        self.embedding_service = embedding_service
        self.llm = llm_service
        self.config = config or EvidenceGathererConfig()

    async def answer_question(
        self,
        question: str,
        repository: Optional[Repository],
        notify: Optional[Notify] = None,
    ) -> GatherResult:
        """
        Answer a question from the files of a repository.

        Raises:
            InvalidInputError: Empty question.
            RepositoryNotFoundError: No repository or no local checkout.
            ProviderError: Embedding or text generation failed.
        """
        question = (question or "").strip()
        if not question:
            raise InvalidInputError("Question must not be empty", field="question")
        if repository is None:
            raise RepositoryNotFoundError("no repository selected")
        root = repository.local_path
        if not root or not Path(root).is_dir():
            raise RepositoryNotFoundError(root or repository.full_name)

        embedding = await self.embedding_service.embed(question)

        checked = CheckedFileSet()
        checked.update(await self._recall(embedding, repository))
        matches = await self.store.similarity_search(
            embedding, repository.id, top_k=self.config.top_k
        )
        checked.update(m.path for m in matches)
        logger.info(f"Seeded {len(checked)} files for {repository.full_name}")

        result = GatherResult()

        # Nothing indexed: pick the first files from the raw tree
        if len(checked) == 0:
            if not await self._select_and_notify(question, repository, checked, notify):
                logger.info(f"No files to read in {repository.full_name}")

        while len(checked) > 0 and result.attempts < self.config.max_attempts:
            result.attempts += 1

            result.evidence = await self._read_evidence(root, checked.paths)
            context = build_evidence_context(result.evidence)

            verdict = await self.llm.generate_text(
                SUFFICIENCY_PROMPT.format(
                    project=repository.full_name,
                    evidence=context,
                    question=question,
                ) + BOOLEAN_FOOTER,
                ModelTier.SMALL,
            )
            sufficient = parse_boolean_from_text(verdict)
            logger.info(
                f"Round {result.attempts}: {len(checked)} files checked, "
                f"sufficient={sufficient}"
            )

            if sufficient:
                result.answer = await self.llm.generate_text(
                    ANSWER_PROMPT.format(
                        project=repository.full_name,
                        evidence=context,
                        question=question,
                    ),
                    self.config.answer_tier,
                )
                result.checked_files = checked.paths
                await self._remember(repository, question, embedding, checked.paths)
                return result

            if result.attempts >= self.config.max_attempts:
                break

            if not await self._select_and_notify(question, repository, checked, notify):
                logger.info(f"Round {result.attempts}: no new files to read")
                break

        result.insufficient_evidence = True
        result.checked_files = checked.paths
        return result

    async def _select_and_notify(
        self,
        question: str,
        repository: Repository,
        checked: CheckedFileSet,
        notify: Optional[Notify],
    ) -> List[str]:
        added = await self._select_files(question, repository, checked)
        if added and notify is not None:
            await notify(
                "I'll read the following files to gather more information: "
                + ", ".join(added)
            )
        return added

    async def _select_files(
        self,
        question: str,
        repository: Repository,
        checked: CheckedFileSet,
    ) -> List[str]:
        """Let the model pick unread files; returns the paths that were added."""
        root = repository.local_path
        tree = await asyncio.to_thread(
            list_files_recursive, root, self.config.file_depth
        )
        candidates = [p for p in tree if p not in checked]
        if not candidates:
            return []

        response = await self.llm.generate_text(
            FILE_SELECTION_PROMPT.format(
                limit=self.config.max_new_files,
                project=repository.full_name,
                question=question,
                candidates="\n".join(candidates),
                checked="\n".join(checked.paths),
            ) + STRING_ARRAY_FOOTER,
            ModelTier.SMALL,
        )

        allowed = set(candidates)
        selected = []
        for raw in parse_json_array_from_text(response):
            path = self._normalize(raw, root)
            if path in allowed and path not in selected:
                selected.append(path)
            if len(selected) >= self.config.max_new_files:
                break
        return checked.update(selected)

    async def _read_evidence(self, root: str, paths: List[str]) -> List[FileEvidence]:
        return list(await asyncio.gather(
            *(asyncio.to_thread(self._read_one, root, p) for p in paths)
        ))

    def _read_one(self, root: str, relative_path: str) -> FileEvidence:
        try:
            target = resolve_in_root(root, relative_path)
            content = read_text_file(str(target), max_chars=self.config.max_file_chars)
            return FileEvidence(path=relative_path, content=content)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.warning(f"Failed to read {relative_path}: {e}")
            return FileEvidence(
                path=relative_path, content=READ_ERROR_PLACEHOLDER, error=str(e)
            )

    async def _recall(self, embedding: List[float], repository: Repository) -> List[str]:
        """Paths of the closest remembered question, if it is close enough."""
        hits = await self.store.search_memories(embedding, repository.id, top_k=1)
        if not hits:
            return []
        memory, score = hits[0]
        if score < self.config.memory_score_threshold:
            return []
        logger.info(f"Reusing evidence of '{memory.question}' (score {score:.2f})")
        return memory.paths

    async def _remember(
        self,
        repository: Repository,
        question: str,
        embedding: List[float],
        paths: List[str],
    ) -> None:
        try:
            await self.store.create_memory(EvidenceMemory(
                id=memory_id_for(repository.id, question),
                repository_id=repository.id,
                question=question,
                paths=paths,
                embedding=embedding,
            ))
        except Exception as e:
            logger.warning(f"Failed to store evidence memory: {e}")

    @staticmethod
    def _normalize(path: str, root: str) -> str:
        path = path.strip().replace("\\", "/")
        root_prefix = Path(root).resolve().as_posix().rstrip("/") + "/"
        if path.startswith(root_prefix):
            path = path[len(root_prefix):]
        while path.startswith("./"):
            path = path[2:]
        return path.lstrip("/")
