"""
Agent Layer for the GitHub Agent Plugin
=======================================

FLOW OVERVIEW:
--------------
1. A chat message arrives with an action name (CLONE_REPO, EXPLAIN_PROJECT, ...)
2. GithubPlugin resolves the action by name or simile
3. The action calls its services and reports through the chat callback
4. EXPLAIN_PROJECT / SUMMARIZE_REPO delegate to the EvidenceGatherer:

                    ┌─────────────────┐
                    │    Question     │
                    └────────┬────────┘
                             │
                    ┌────────▼────────┐
                    │ Seed files      │  ← memory + similarity search
                    └────────┬────────┘
                             │
                    ┌────────▼────────┐
               ┌───►│ Read + judge    │  ← sufficient? (YES / NO)
               │    └────────┬────────┘
               │      NO     │    YES
               │    ┌────────▼────────┐
               └────│ Pick new files  │     ──► Answer
                    └─────────────────┘

USAGE:
------
    from github_plugin.agents import EvidenceGatherer

    gatherer = EvidenceGatherer(store, embedding_service, llm_service)
    result = await gatherer.answer_question("How is it built?", repository)
"""

from github_plugin.agents.base import ActionResult, BaseAction, Callback
from github_plugin.agents.evidence_gatherer import (
    CheckedFileSet,
    EvidenceGatherer,
    EvidenceGathererConfig,
    GatherResult,
)
from github_plugin.agents.plugin import GithubPlugin
from github_plugin.agents.actions import (
    CloneRepoAction,
    QueryProjectAction,
    SummarizeRepoAction,
    CreateFileAction,
    CreatePullRequestAction,
)

__all__ = [
    # Base classes
    "ActionResult",
    "BaseAction",
    "Callback",
    # Evidence gathering
    "CheckedFileSet",
    "EvidenceGatherer",
    "EvidenceGathererConfig",
    "GatherResult",
    # Actions
    "GithubPlugin",
    "CloneRepoAction",
    "QueryProjectAction",
    "SummarizeRepoAction",
    "CreateFileAction",
    "CreatePullRequestAction",
]
