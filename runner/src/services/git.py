"""
Source checkout via the git CLI.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from runner.src.core.errors import CommandError

logger = logging.getLogger(__name__)

class GitCheckout:
    """
    Checks out ``branch`` of ``repo_url`` into the workspace and returns the
    commit id. Without a repo_url the workspace is assumed to be checked out
    already (e.g. by the CI system) and only the commit id is read.
    """

    def __init__(self, executor, repo_url: Optional[str] = None, branch: str = "main"):
        self.executor = executor
        self.repo_url = repo_url
        self.branch = branch

    def _git(self, args: List[str], cwd: Path, timeout: int = 120) -> str:
        command = ["git"] + args
        output = self.executor.execute(command, cwd=cwd, timeout=timeout)
        if not output.ok:
            raise CommandError(command, output.exit_code, output.stdout, output.stderr)
        return output.stdout

    def checkout(self, workspace: Union[str, Path], branch: Optional[str] = None) -> str:
        workspace = Path(workspace)
        branch = branch or self.branch

        if self.repo_url:
            if not (workspace / ".git").exists():
                workspace.mkdir(parents=True, exist_ok=True)
                logger.info(f"Cloning {self.repo_url} ({branch})")
                self._git(
                    ["clone", "--depth", "1", "--branch", branch, self.repo_url, "."],
                    cwd=workspace,
                )
            else:
                logger.info(f"Updating existing checkout to origin/{branch}")
                self._git(["fetch", "--depth", "1", "origin", branch], cwd=workspace, timeout=60)
                self._git(["reset", "--hard", "FETCH_HEAD"], cwd=workspace, timeout=30)

        commit = self._git(["rev-parse", "HEAD"], cwd=workspace, timeout=30).strip()
        # Dry runs produce no output
        commit = commit or "unknown"
        logger.info(f"Checked out commit {commit}")
        return commit
