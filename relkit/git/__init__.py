"""Git access for release automation.

Usage:
    from relkit.git import Repository

    repo = Repository(Path("/path/to/app"))
    branch = repo.current_branch()
"""

from relkit.git.repository import GitError, GitStatus, Repository, StatusEntry

__all__ = ["GitError", "GitStatus", "Repository", "StatusEntry"]
