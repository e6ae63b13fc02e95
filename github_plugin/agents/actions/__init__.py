"""
Chat actions exposed by the plugin.
"""

from github_plugin.agents.actions.clone import CloneRepoAction
from github_plugin.agents.actions.query_project import QueryProjectAction, SummarizeRepoAction
from github_plugin.agents.actions.create_file import CreateFileAction
from github_plugin.agents.actions.create_pull_request import CreatePullRequestAction

__all__ = [
    "CloneRepoAction",
    "QueryProjectAction",
    "SummarizeRepoAction",
    "CreateFileAction",
    "CreatePullRequestAction",
]
