"""Shared test fixtures for the GitHub agent plugin test suite."""

import hashlib
import json
import re
from typing import Callable, List, Optional, Union

import pytest

from github_plugin.models.schemas import Repository, repository_id_for
from github_plugin.services.store import CodeStore, StoreConfig


class FakeEmbeddingService:
    """Deterministic bag-of-words embedding that counts its calls."""

    def __init__(self, dimension: int = 32):
        self.dimension = dimension
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        vector = [0.0] * self.dimension
        for token in re.findall(r"[a-z0-9]+", text.lower()):
            bucket = int(hashlib.md5(token.encode()).hexdigest(), 16) % self.dimension
            vector[bucket] += 1.0
        if not any(vector):
            vector[0] = 1.0
        return vector

    async def embed_many(self, texts: List[str]) -> List[List[float]]:
        return [await self.embed(t) for t in texts]


Reply = Union[str, Callable[[str], str]]


class ScriptedLLM:
    """
    Text generator that replays scripted replies and records prompts.

    Each reply is a string or a callable receiving the prompt. Once the
    script is exhausted, `default` is returned.
    """

    def __init__(self, *replies: Reply, default: Reply = "NO"):
        self.replies = list(replies)
        self.default = default
        self.prompts: List[str] = []
        self.tiers: List[object] = []

    async def generate_text(self, prompt: str, tier=None, system_prompt: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        self.tiers.append(tier)
        if not self.replies:
            return self.default(prompt) if callable(self.default) else self.default
        reply = self.replies.pop(0)
        return reply(prompt) if callable(reply) else reply

    def prompts_containing(self, marker: str) -> List[str]:
        return [p for p in self.prompts if marker in p]


@pytest.fixture
def sample_project(tmp_path):
    """Create a small Python project tree for testing."""
    root = tmp_path / "acme" / "widgets"
    root.mkdir(parents=True)

    (root / "README.md").write_text("# Widgets\nA widget library.\n")
    (root / "pyproject.toml").write_text(
        '[project]\nname = "widgets"\nrequires-python = ">=3.10"\n'
        'classifiers = ["Programming Language :: Python :: 3"]\n'
    )
    (root / "main.py").write_text("from widgets.core import run\n\nrun()\n")
    (root / "widgets").mkdir()
    (root / "widgets" / "__init__.py").write_text("")
    (root / "widgets" / "core.py").write_text(
        "def run():\n    print('running widgets')\n"
    )
    (root / "widgets" / "render").mkdir()
    (root / "widgets" / "render" / "svg.py").write_text("def to_svg(w):\n    return '<svg/>'\n")
    (root / "widgets" / "render" / "deep").mkdir()
    (root / "widgets" / "render" / "deep" / "hidden.py").write_text("X = 1\n")
    (root / "docs").mkdir()
    (root / "docs" / "build.md").write_text("Run `pip install -e .` to build.\n")
    (root / "package.json").write_text(json.dumps({"name": "widgets-docs"}))

    # Directories that should be skipped
    nm = root / "node_modules"
    nm.mkdir()
    (nm / "lodash.js").write_text("module.exports = {};\n")

    git_dir = root / ".git"
    git_dir.mkdir()
    (git_dir / "config").write_text("[core]\n")

    return root


@pytest.fixture
def embedding_service():
    return FakeEmbeddingService()


@pytest.fixture
def store():
    return CodeStore(StoreConfig(backend="memory"))


@pytest.fixture
def repository(sample_project):
    url = "https://github.com/acme/widgets"
    return Repository(
        id=repository_id_for(url),
        url=url,
        owner="acme",
        name="widgets",
        local_path=str(sample_project),
    )


@pytest.fixture
def make_llm():
    """Factory for ScriptedLLM instances."""
    return ScriptedLLM
