"""
Git client infrastructure for tagregistry.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic
"""

import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)


@dataclass
class GitTag:
    """A git tag with metadata."""
    name: str
    commit: str
    date: Optional[datetime] = None
    tagger: str = ""
    message: str = ""


class GitClient:
    """
    Abstraction over git commands.

    Arguments are passed as a list (no shell), so tag names and refs
    coming from users are never interpreted by a shell.

    Example:
        client = GitClient()
        sha = client.rev_parse("/path/to/repo", "main")
        if sha:
            client.create_tag("/path/to/repo", "v1.0", sha)
    """

    def __init__(self, timeout: int = 30):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 30)
        """
        self.timeout = timeout

    def _run(self, args: Sequence[str], cwd: str) -> Tuple[Optional[str], int, str]:
        """
        Run a git command.

        Args:
            args: Arguments after "git"
            cwd: Working directory

        Returns:
            Tuple of (stdout, returncode, stderr)
        """
        cmd = ['git', *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {' '.join(cmd)}")
            return None, -1, "timed out"
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(cmd)} - {e}")
            return None, -1, str(e)

        output = result.stdout.strip() if result.stdout else None
        return output, result.returncode, (result.stderr or "").strip()

    def is_git_repo(self, path: str) -> bool:
        """Check if path is a git repository (bare or not)."""
        root = Path(path)
        return (root / ".git").exists() or (root / "HEAD").exists()

    def rev_parse(self, path: str, ref: str) -> Optional[str]:
        """
        Resolve a commit-ish to a full commit hash.

        Returns:
            The commit hash or None if ref does not name a commit
        """
        if ref.startswith('-'):
            return None
        output, code, _ = self._run(
            ['rev-parse', '--verify', '--quiet', f'{ref}^{{commit}}'], cwd=path
        )
        if code == 0 and output:
            return output
        return None

    def create_tag(self, path: str, name: str, commit: str, message: str = "") -> Tuple[bool, str]:
        """
        Create a lightweight (or annotated, if message is given) tag.

        Returns:
            (success, stderr)
        """
        args = ['tag']
        if message:
            args += ['-a', '-m', message]
        args += ['--', name, commit]
        _, code, err = self._run(args, cwd=path)
        return code == 0, err

    def delete_tag(self, path: str, name: str) -> Tuple[bool, str]:
        """Delete a tag. Returns (success, stderr)."""
        _, code, err = self._run(['tag', '-d', '--', name], cwd=path)
        return code == 0, err

    def tags(self, path: str) -> List[GitTag]:
        """
        List git tags with the date of the commit they point to.

        Returns:
            List of GitTag objects in git's default (name) order
        """
        fmt = ('%(refname:lstrip=2)|%(objectname)|%(*objectname)'
               '|%(committerdate:iso-strict)|%(*committerdate:iso-strict)'
               '|%(taggeremail)|%(contents:subject)')
        output, code, _ = self._run(['for-each-ref', f'--format={fmt}', 'refs/tags'], cwd=path)
        if code != 0 or not output:
            return []

        tags = []
        for line in output.split('\n'):
            if not line or '|' not in line:
                continue

            parts = line.split('|', 6)
            if len(parts) < 5:
                continue

            name = parts[0].strip()
            # Annotated tags: the peeled (*) fields describe the commit
            commit = parts[2].strip() or parts[1].strip()
            date_str = parts[4].strip() or parts[3].strip()
            tagger = parts[5].strip() if len(parts) > 5 else ''
            message = parts[6].strip() if len(parts) > 6 else ''

            tags.append(GitTag(
                name=name,
                commit=commit,
                date=_parse_git_date(date_str),
                tagger=tagger,
                message=message
            ))

        return tags


def _parse_git_date(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        date = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if date.tzinfo:
        date = date.astimezone(timezone.utc).replace(tzinfo=None)
    return date
