"""
Code Store - Persistence for repositories, indexed files and memories.

RESPONSIBILITY:
Keeps one record per repository, one record per (repository, relative
path) with its content fingerprint and embedding, and the evidence
memories written by the gatherer. Supports exact lookup by id, metadata
filtering and similarity search scoped to a repository.

SUPPORTED BACKENDS:
- ChromaDB (local persistent storage, default)
- In-Memory (testing only)
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field
import json
import logging

from github_plugin.models.schemas import (
    EvidenceMemory,
    IndexedFile,
    Repository,
    SimilarityMatch,
    repository_id_for,
)

logger = logging.getLogger(__name__)


REPOSITORIES = "repositories"
CODE_FILES = "code_files"
MEMORIES = "memories"


@dataclass
class StoreConfig:
    """Configuration for the store."""
    backend: str = "chroma"  # chroma or memory
    persist_directory: str = "./data/store"
    collection_prefix: str = "github_plugin"


@dataclass
class StoredRecord:
    """A record as returned by a backend."""
    id: str
    embedding: List[float]
    document: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    score: Optional[float] = None


class BaseStoreBackend(ABC):
    """Base class for store backends. Collections are created on demand."""

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        id: str,
        embedding: List[float],
        document: str,
        metadata: Dict[str, Any]
    ) -> None:
        """Insert or replace a record."""

    @abstractmethod
    async def get(self, collection: str, id: str) -> Optional[StoredRecord]:
        """Exact lookup by id."""

    @abstractmethod
    async def find(
        self,
        collection: str,
        where: Optional[Dict[str, Any]] = None
    ) -> List[StoredRecord]:
        """All records whose metadata equals every key in where."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        embedding: List[float],
        top_k: int,
        where: Optional[Dict[str, Any]] = None
    ) -> List[StoredRecord]:
        """Most similar records first, with score set."""

    @abstractmethod
    async def delete(self, collection: str, ids: List[str]) -> None:
        """Delete records by id."""


class InMemoryBackend(BaseStoreBackend):
    """
    In-memory store for tests.

    Not for production use - nothing is persisted.
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, StoredRecord]] = {}

    def _collection(self, name: str) -> Dict[str, StoredRecord]:
        return self._collections.setdefault(name, {})

    async def upsert(self, collection, id, embedding, document, metadata) -> None:
        self._collection(collection)[id] = StoredRecord(
            id=id,
            embedding=list(embedding),
            document=document,
            metadata=dict(metadata),
        )

    async def get(self, collection, id) -> Optional[StoredRecord]:
        record = self._collection(collection).get(id)
        if record is None:
            return None
        return StoredRecord(
            id=record.id,
            embedding=list(record.embedding),
            document=record.document,
            metadata=dict(record.metadata),
        )

    async def find(self, collection, where=None) -> List[StoredRecord]:
        return [
            record for record in self._collection(collection).values()
            if self._matches(record.metadata, where)
        ]

    async def query(self, collection, embedding, top_k, where=None) -> List[StoredRecord]:
        results = []
        for record in self._collection(collection).values():
            if not self._matches(record.metadata, where):
                continue
            results.append(StoredRecord(
                id=record.id,
                embedding=record.embedding,
                document=record.document,
                metadata=record.metadata,
                score=self._cosine_similarity(embedding, record.embedding),
            ))

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:top_k]

    async def delete(self, collection, ids) -> None:
        records = self._collection(collection)
        for id in ids:
            records.pop(id, None)

    def count(self, collection: str) -> int:
        return len(self._collection(collection))

    def _cosine_similarity(self, a: List[float], b: List[float]) -> float:
        dot_product = sum(x * y for x, y in zip(a, b))
        norm_a = sum(x * x for x in a) ** 0.5
        norm_b = sum(x * x for x in b) ** 0.5
        if norm_a == 0 or norm_b == 0:
            return 0.0
        return dot_product / (norm_a * norm_b)

    def _matches(self, metadata: Dict[str, Any], where: Optional[Dict[str, Any]]) -> bool:
        if not where:
            return True
        return all(metadata.get(key) == value for key, value in where.items())


class ChromaBackend(BaseStoreBackend):
    """
    ChromaDB backend for local persistent storage.

    One Chroma collection per logical collection, using cosine space so
    that score = 1 - distance.
    """

    def __init__(self, persist_directory: str, collection_prefix: str):
        self.persist_directory = persist_directory
        self.collection_prefix = collection_prefix
        self._client = None
        self._collections: Dict[str, Any] = {}

    @property
    def client(self):
        if self._client is None:
            import chromadb
            self._client = chromadb.PersistentClient(path=self.persist_directory)
        return self._client

    def _collection(self, name: str):
        if name not in self._collections:
            self._collections[name] = self.client.get_or_create_collection(
                name=f"{self.collection_prefix}_{name}",
                metadata={"hnsw:space": "cosine"},
                embedding_function=None,
            )
        return self._collections[name]

    async def upsert(self, collection, id, embedding, document, metadata) -> None:
        self._collection(collection).upsert(
            ids=[id],
            embeddings=[embedding],
            documents=[document],
            metadatas=[metadata],
        )

    async def get(self, collection, id) -> Optional[StoredRecord]:
        result = self._collection(collection).get(
            ids=[id], include=["embeddings", "documents", "metadatas"]
        )
        records = self._records_from_get(result)
        return records[0] if records else None

    async def find(self, collection, where=None) -> List[StoredRecord]:
        result = self._collection(collection).get(
            where=self._where(where), include=["embeddings", "documents", "metadatas"]
        )
        return self._records_from_get(result)

    async def query(self, collection, embedding, top_k, where=None) -> List[StoredRecord]:
        chroma_collection = self._collection(collection)
        n_results = min(top_k, chroma_collection.count())
        if n_results <= 0:
            return []

        results = chroma_collection.query(
            query_embeddings=[embedding],
            n_results=n_results,
            where=self._where(where),
            include=["documents", "metadatas", "distances"],
        )

        records = []
        if results["ids"] and results["ids"][0]:
            for i, id in enumerate(results["ids"][0]):
                records.append(StoredRecord(
                    id=id,
                    embedding=[],
                    document=results["documents"][0][i] if results["documents"] else "",
                    metadata=results["metadatas"][0][i] if results["metadatas"] else {},
                    score=1 - results["distances"][0][i] if results["distances"] else 0.0,
                ))
        return records

    async def delete(self, collection, ids) -> None:
        if ids:
            self._collection(collection).delete(ids=ids)

    def _where(self, where: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not where:
            return None
        if len(where) == 1:
            return dict(where)
        return {"$and": [{key: value} for key, value in where.items()]}

    def _records_from_get(self, result: Dict[str, Any]) -> List[StoredRecord]:
        ids = result.get("ids") or []
        embeddings = result.get("embeddings")
        documents = result.get("documents")
        metadatas = result.get("metadatas")

        records = []
        for i, id in enumerate(ids):
            embedding = embeddings[i] if embeddings is not None else []
            records.append(StoredRecord(
                id=id,
                embedding=[float(x) for x in embedding],
                document=documents[i] if documents is not None else "",
                metadata=metadatas[i] if metadatas is not None else {},
            ))
        return records


class CodeStore:
    """
    Vector/relational store used by the ingestor, the gatherer and the actions.

    Usage:
        store = CodeStore(StoreConfig(backend="memory"))
        await store.save_repository(repository, embedding)
        existing = await store.get_file(file_id_for(repo.owner, repo.name, "src/main.py"))
        matches = await store.similarity_search(query_embedding, repository.id, top_k=5)
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        backend: Optional[BaseStoreBackend] = None,
    ):
        self.config = config or StoreConfig()
        self._backend = backend or self._create_backend()

    def _create_backend(self) -> BaseStoreBackend:
        if self.config.backend == "memory":
            return InMemoryBackend()

        elif self.config.backend == "chroma":
            return ChromaBackend(
                persist_directory=self.config.persist_directory,
                collection_prefix=self.config.collection_prefix,
            )

        else:
            raise ValueError(f"Unknown backend: {self.config.backend}")

    @property
    def backend(self) -> BaseStoreBackend:
        return self._backend

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    async def save_repository(self, repository: Repository, embedding: List[float]) -> Repository:
        """Register a repository. Keeps the original record if it already exists."""
        existing = await self.get_repository(repository.id)
        if existing is not None:
            return existing

        await self._backend.upsert(
            REPOSITORIES,
            id=repository.id,
            embedding=embedding,
            document=repository.describe(),
            metadata={
                "url": repository.url,
                "owner": repository.owner,
                "name": repository.name,
                "local_path": repository.local_path,
                "created_at": repository.created_at.isoformat(),
            },
        )
        logger.info(f"Registered repository {repository.full_name} ({repository.id})")
        return repository

    async def get_repository(self, repository_id: str) -> Optional[Repository]:
        record = await self._backend.get(REPOSITORIES, repository_id)
        return self._to_repository(record) if record else None

    async def get_repository_by_url(self, url: str) -> Optional[Repository]:
        """Lookup by the canonical repository URL (ids derive from it)."""
        return await self.get_repository(repository_id_for(url))

    async def list_repositories(self) -> List[Repository]:
        """All registered repositories, most recently created first."""
        records = await self._backend.find(REPOSITORIES)
        repositories = [self._to_repository(r) for r in records]
        repositories.sort(key=lambda r: r.created_at, reverse=True)
        return repositories

    async def search_repositories(
        self,
        embedding: List[float],
        top_k: int = 1
    ) -> List[Tuple[Repository, float]]:
        records = await self._backend.query(REPOSITORIES, embedding, top_k)
        return [(self._to_repository(r), r.score or 0.0) for r in records]

    # ------------------------------------------------------------------
    # Indexed files
    # ------------------------------------------------------------------

    async def get_file(self, file_id: str) -> Optional[IndexedFile]:
        """Exact lookup of the stored record for a (repository, path) key."""
        record = await self._backend.get(CODE_FILES, file_id)
        if record is None:
            return None
        return IndexedFile(
            id=record.id,
            repository_id=record.metadata["repository_id"],
            name=record.metadata.get("name", ""),
            relative_path=record.metadata["relative_path"],
            content_hash=record.metadata["content_hash"],
            embedding=record.embedding,
        )

    async def upsert_file(self, indexed_file: IndexedFile) -> None:
        await self._backend.upsert(
            CODE_FILES,
            id=indexed_file.id,
            embedding=indexed_file.embedding,
            document=indexed_file.relative_path,
            metadata={
                "repository_id": indexed_file.repository_id,
                "name": indexed_file.name,
                "relative_path": indexed_file.relative_path,
                "content_hash": indexed_file.content_hash,
            },
        )

    async def list_file_paths(self, repository_id: str) -> Dict[str, str]:
        """Relative path -> record id for every indexed file of a repository."""
        records = await self._backend.find(CODE_FILES, {"repository_id": repository_id})
        return {r.metadata["relative_path"]: r.id for r in records}

    async def delete_files(self, file_ids: List[str]) -> None:
        await self._backend.delete(CODE_FILES, file_ids)

    async def similarity_search(
        self,
        embedding: List[float],
        repository_id: str,
        top_k: int = 5
    ) -> List[SimilarityMatch]:
        """Indexed files of one repository ordered by similarity."""
        records = await self._backend.query(
            CODE_FILES, embedding, top_k, where={"repository_id": repository_id}
        )
        return [
            SimilarityMatch(path=r.metadata["relative_path"], score=r.score or 0.0)
            for r in records
        ]

    # ------------------------------------------------------------------
    # Evidence memories
    # ------------------------------------------------------------------

    async def create_memory(self, memory: EvidenceMemory) -> None:
        await self._backend.upsert(
            MEMORIES,
            id=memory.id,
            embedding=memory.embedding,
            document=memory.question,
            metadata={
                "repository_id": memory.repository_id,
                "paths": json.dumps(memory.paths),
                "created_at": memory.created_at.isoformat(),
            },
        )

    async def search_memories(
        self,
        embedding: List[float],
        repository_id: str,
        top_k: int = 1
    ) -> List[Tuple[EvidenceMemory, float]]:
        records = await self._backend.query(
            MEMORIES, embedding, top_k, where={"repository_id": repository_id}
        )
        return [
            (
                EvidenceMemory(
                    id=r.id,
                    repository_id=r.metadata["repository_id"],
                    question=r.document,
                    paths=json.loads(r.metadata.get("paths", "[]")),
                    embedding=r.embedding,
                    created_at=datetime.fromisoformat(r.metadata["created_at"]),
                ),
                r.score or 0.0,
            )
            for r in records
        ]

    def _to_repository(self, record: StoredRecord) -> Repository:
        return Repository(
            id=record.id,
            url=record.metadata["url"],
            owner=record.metadata["owner"],
            name=record.metadata["name"],
            local_path=record.metadata["local_path"],
            created_at=datetime.fromisoformat(record.metadata["created_at"]),
        )
