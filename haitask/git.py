"""Commit source: read recent commits and repository facts through the git CLI."""

import logging
import subprocess
from pathlib import Path

from haitask.errors import RepositoryError
from haitask.models import BATCH_SEPARATOR, CommitData

logger = logging.getLogger(__name__)


def _git(args: list[str], cwd: Path | None) -> str:
    try:
        result = subprocess.run(["git", *args], capture_output=True, text=True, cwd=cwd)
    except FileNotFoundError as exc:
        raise RepositoryError("git executable not found on PATH") from exc
    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        if "not a git repository" in stderr.lower():
            raise RepositoryError("Not a git repository. Run haitask inside a git working tree.")
        raise RepositoryError(f"git {' '.join(args)} failed: {stderr or f'exit {result.returncode}'}")
    return result.stdout


def get_commits(n: int = 1, cwd: Path | None = None) -> CommitData:
    """Return the last n commit messages (newest first) plus branch and repo facts.

    git_dir is the real metadata directory, which is not <root>/.git when
    .git is a file (linked worktrees, submodules).

    With n > 1 the messages are joined with BATCH_SEPARATOR.
    """
    num = max(1, int(n))
    # %x00 terminates each message so multi-paragraph bodies survive the split.
    raw_log = _git(["log", f"-{num}", "--pretty=format:%B%x00"], cwd)
    branch = _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd).strip()
    repo_root = _git(["rev-parse", "--show-toplevel"], cwd).strip()
    git_dir = _git(["rev-parse", "--absolute-git-dir"], cwd).strip()
    commit_hash = _git(["rev-parse", "HEAD"], cwd).strip()

    parts = [part.strip() for part in raw_log.split("\0") if part.strip()][:num]
    message = BATCH_SEPARATOR.join(parts) if parts else raw_log.strip()
    logger.debug("Read %d commit(s) on %s at %s", len(parts), branch, commit_hash[:7])

    return CommitData(
        message=message,
        branch=branch,
        repo_name=Path(repo_root).name if repo_root else "",
        repo_root=repo_root,
        commit_hash=commit_hash,
        count=max(1, len(parts)),
        git_dir=git_dir,
    )
