"""
GitHub integration helpers for publishing drafts.

Everything that talks to GitHub goes through the gh CLI behind the
GhInvoker interface. GhCliInvoker runs the real commands; RecordingInvoker
only records (and optionally prints) them, for dry runs and tests.
"""

import logging
import shlex
import subprocess
from dataclasses import dataclass, field

from ghpilot.lib.errors import PublishError

logger = logging.getLogger(__name__)


# Timeout for GitHub CLI operations (seconds)
GH_TIMEOUT_SECONDS = 30


@dataclass
class CreatedIssue:
    """Issue created by gh."""
    url: str
    number: int | None = None


def issue_create_command(
    repo: str,
    title: str,
    body: str,
    labels: list[str] | tuple[str, ...] = (),
    assignees: list[str] | tuple[str, ...] = (),
    gh_cmd: str = "gh",
) -> list[str]:
    """Build the gh issue create command line."""
    cmd = [gh_cmd, "issue", "create", "--repo", repo, "--title", title, "--body", body]
    for label in labels:
        cmd += ["--label", label]
    for assignee in assignees:
        cmd += ["--assignee", assignee]
    return cmd


def project_item_command(
    owner: str,
    project_number: int,
    title: str,
    body: str,
    gh_cmd: str = "gh",
) -> list[str]:
    """Build the gh project item-create command line."""
    return [
        gh_cmd, "project", "item-create", str(project_number),
        "--owner", owner,
        "--title", title,
        "--body", body,
    ]


def parse_issue_number(url: str) -> int | None:
    """Extract the issue number from an issue URL."""
    try:
        return int(url.rstrip("/").split("/")[-1])
    except (ValueError, IndexError):
        return None


class GhInvoker:
    """Interface to the two gh capabilities publishing needs."""

    def create_issue(
        self,
        repo: str,
        title: str,
        body: str,
        labels: list[str] | tuple[str, ...] = (),
        assignees: list[str] | tuple[str, ...] = (),
    ) -> CreatedIssue:
        raise NotImplementedError

    def create_project_item(self, owner: str, project_number: int, title: str, body: str) -> None:
        raise NotImplementedError


class GhCliInvoker(GhInvoker):
    """Runs gh as a subprocess. Any failure raises PublishError."""

    def __init__(self, gh_cmd: str = "gh", timeout: int = GH_TIMEOUT_SECONDS):
        self.gh_cmd = gh_cmd
        self.timeout = timeout

    def _run(self, cmd: list[str], action: str) -> str:
        logger.debug(f"Running: {shlex.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise PublishError(f"GitHub CLI ({self.gh_cmd}) not found. Install: https://cli.github.com/") from None
        except subprocess.TimeoutExpired:
            raise PublishError(f"GitHub operation timed out after {self.timeout}s while trying to {action}") from None
        except subprocess.SubprocessError as e:
            raise PublishError(f"GitHub operation failed while trying to {action}: {e}") from None

        if result.returncode != 0:
            error = result.stderr.strip() or result.stdout.strip() or f"exit {result.returncode}"
            raise PublishError(f"Failed to {action}: {error}")

        return result.stdout.strip()

    def create_issue(self, repo, title, body, labels=(), assignees=()) -> CreatedIssue:
        cmd = issue_create_command(repo, title, body, labels, assignees, gh_cmd=self.gh_cmd)
        output = self._run(cmd, f"create issue '{title}'")
        # gh may print progress lines before the URL
        url = output.splitlines()[-1].strip() if output else ""
        return CreatedIssue(url=url, number=parse_issue_number(url))

    def create_project_item(self, owner, project_number, title, body) -> None:
        cmd = project_item_command(owner, project_number, title, body, gh_cmd=self.gh_cmd)
        self._run(cmd, f"create project draft '{title}'")


@dataclass
class RecordingInvoker(GhInvoker):
    """Records gh calls without running them.

    With echo=True each call is printed as the equivalent command line,
    which is what a dry run shows the user.
    """
    echo: bool = False
    calls: list[list[str]] = field(default_factory=list)
    fail_on: set[str] = field(default_factory=set)

    def _record(self, cmd: list[str], title: str) -> None:
        if title in self.fail_on:
            raise PublishError(f"Failed to create '{title}': simulated failure")
        self.calls.append(cmd)
        if self.echo:
            print(shlex.join(cmd))

    def create_issue(self, repo, title, body, labels=(), assignees=()) -> CreatedIssue:
        self._record(issue_create_command(repo, title, body, labels, assignees), title)
        number = len(self.calls)
        return CreatedIssue(url=f"https://github.com/{repo}/issues/{number}", number=number)

    def create_project_item(self, owner, project_number, title, body) -> None:
        self._record(project_item_command(owner, project_number, title, body), title)


def check_gh_available(gh_cmd: str = "gh") -> tuple[bool, str]:
    """Check gh CLI is installed and authenticated.

    Returns: (ok, error_message)
    """
    try:
        # Check installed
        result = subprocess.run(
            [gh_cmd, "--version"],
            capture_output=True,
            timeout=5,
        )
        if result.returncode != 0:
            return False, "GitHub CLI (gh) not installed. Install: https://cli.github.com/"

        # Check authenticated
        result = subprocess.run(
            [gh_cmd, "auth", "status"],
            capture_output=True,
            text=True,
            timeout=10,
        )
        if result.returncode != 0:
            return False, "GitHub CLI not authenticated. Run: gh auth login"

        return True, ""

    except FileNotFoundError:
        return False, "GitHub CLI (gh) not found. Install: https://cli.github.com/"
    except subprocess.TimeoutExpired:
        return False, "GitHub CLI timed out"
