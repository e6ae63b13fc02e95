"""
Repository Service - Parses GitHub URLs and clones repositories.

Handles:
- Extracting a GitHub repository URL from free chat text
- Parsing GitHub URLs into owner / name
- Cloning into <storage>/<owner>/<name>, reusing an existing checkout
"""

import asyncio
import logging
import os
import re
import shutil
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

from github_plugin.api.middleware.error_handler import CloneError, InvalidInputError

logger = logging.getLogger(__name__)


@dataclass
class RepoInfo:
    """Parsed repository information."""
    owner: str
    name: str
    url: str
    branch: Optional[str] = None
    local_path: Optional[str] = None
    already_cloned: bool = False


@dataclass
class RepoServiceConfig:
    """Configuration for repository service."""
    storage_path: str = "./.repos"
    clone_timeout_seconds: int = 300
    clone_attempts: int = 3


# Matches a repository URL anywhere in a chat message
_MESSAGE_URL_PATTERN = re.compile(
    r"https://github\.com/[a-zA-Z0-9_.-]+/[a-zA-Z0-9_.-]+/?"
)

# Regex patterns for GitHub URLs
_GITHUB_PATTERNS = [
    r"https?://github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$",
    r"git@github\.com:([^/]+)/([^/]+?)(?:\.git)?$",
    r"https?://github\.com/([^/]+)/([^/]+)/tree/([^/]+)/?",
]


def extract_github_url(text: str) -> Optional[str]:
    """
    Return the first GitHub repository URL mentioned in *text*, in the
    canonical https://github.com/<owner>/<name> form used for storage.
    """
    match = _MESSAGE_URL_PATTERN.search(text or "")
    if not match:
        return None
    # Sentence punctuation and a .git suffix are not part of the name
    url = match.group(0).rstrip("/").rstrip(".")
    if url.endswith(".git"):
        url = url[:-4]
    return url


def parse_github_url(url: str) -> RepoInfo:
    """Parse a GitHub URL into components."""
    url = url.strip()
    for pattern in _GITHUB_PATTERNS:
        match = re.match(pattern, url)
        if match:
            groups = match.groups()
            owner = groups[0]
            name = groups[1]
            if name.endswith(".git"):
                name = name[:-4]
            branch = groups[2] if len(groups) > 2 else None
            return RepoInfo(
                owner=owner, name=name,
                url=f"https://github.com/{owner}/{name}",
                branch=branch,
            )
    raise InvalidInputError(f"Invalid GitHub URL: {url}", field="repo_url")


class RepoService:
    """
    Clones GitHub repositories into a local working directory.

    Clones are idempotent: a checkout that already holds a .git
    directory is reused as-is instead of being cloned again.
    """

    def __init__(self, config: Optional[RepoServiceConfig] = None):
        self.config = config or RepoServiceConfig()
        self.storage_path = Path(self.config.storage_path)

    def local_path_for(self, repo_info: RepoInfo) -> Path:
        return (self.storage_path / repo_info.owner / repo_info.name).resolve()

    async def clone(self, url: str) -> RepoInfo:
        """
        Clone a GitHub repository, or reuse the existing checkout.

        Args:
            url: Repository URL.

        Returns:
            RepoInfo with local_path set; already_cloned tells whether
            an existing checkout was reused.

        Raises:
            InvalidInputError: If the URL is not a GitHub repository URL.
            CloneError: If git fails or times out on every attempt.
        """
        repo_info = parse_github_url(url)
        local_path = self.local_path_for(repo_info)
        repo_info.local_path = str(local_path)

        if (local_path / ".git").is_dir():
            logger.info(f"Repository already cloned at {local_path}")
            repo_info.already_cloned = True
            return repo_info

        logger.info(f"Cloning {repo_info.url} into {local_path}")
        local_path.parent.mkdir(parents=True, exist_ok=True)

        last_error: Optional[CloneError] = None
        for attempt in range(self.config.clone_attempts):
            try:
                await self._execute_clone(repo_info, local_path)
                break
            except CloneError as e:
                last_error = e
                logger.warning(f"Clone attempt {attempt + 1} failed: {e.message}")
                if local_path.exists():
                    shutil.rmtree(local_path, ignore_errors=True)
                if attempt < self.config.clone_attempts - 1:
                    await asyncio.sleep(2 ** attempt)
        else:
            raise last_error

        if not local_path.is_dir():
            raise CloneError("Failed to clone repository", repo_url=repo_info.url)

        logger.info(f"Repository cloned successfully at {local_path}")
        return repo_info

    async def _execute_clone(self, repo_info: RepoInfo, target: Path) -> None:
        """Run git clone for a single attempt."""
        cmd = ["git", "clone", "--no-tags"]
        if repo_info.branch:
            cmd.extend(["--branch", repo_info.branch])
        cmd.extend([repo_info.url, str(target)])

        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"

        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )

        try:
            _, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.config.clone_timeout_seconds,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise CloneError(
                f"Clone timed out after {self.config.clone_timeout_seconds}s",
                repo_url=repo_info.url,
            )

        if process.returncode != 0:
            raise CloneError(
                f"git clone failed with code {process.returncode}: "
                f"{stderr.decode(errors='replace').strip()}",
                repo_url=repo_info.url,
            )
