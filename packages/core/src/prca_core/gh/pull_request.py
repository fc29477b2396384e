"""GitHub pull request as the comment thread the pipeline writes to."""

from __future__ import annotations

import logging

from github import Github

from prca_core.models import IssueRecord

logger = logging.getLogger(__name__)


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def commentable_lines(patch: str | None) -> set[int]:
    """New-file line numbers that appear in the patch's hunks.

    GitHub only accepts line comments on these; removed lines do not exist in
    the new file and are skipped.
    """
    lines: set[int] = set()
    file_line: int | None = None
    for line in (patch or "").splitlines():
        if line.startswith("@@"):
            try:
                new_file_range = line.split("+")[1].split(" ")[0]
                file_line = int(new_file_range.split(",")[0])
            except (IndexError, ValueError):
                file_line = None
            continue
        if file_line is None:
            continue
        if line.startswith("-"):
            continue
        if line.startswith("\\"):
            # "\ No newline at end of file"
            continue
        lines.add(file_line)
        file_line += 1
    return lines


class PullRequestCommentService:
    """Deletes, lists and creates review comments on one pull request.

    Each issue becomes its own review comment, so a later run can delete
    everything it posted by author. Issues on lines outside the diff are
    attached to the file instead of a line.

    GithubException propagates; the orchestrator decides which failures are fatal.
    """

    def __init__(self, pr):
        self.pr = pr
        self._changed_files: list[str] = []
        self._patches: dict[str, str | None] = {}

    def delete_comments_by_authors(self, names: list[str]) -> None:
        logins = {name.lower() for name in names}
        if not logins:
            return
        deleted = 0
        for comment in self.pr.get_review_comments():
            user = comment.user
            if user is not None and (user.login or "").lower() in logins:
                comment.delete()
                deleted += 1
        logger.info("Deleted %d previous comment(s) by %s", deleted, ", ".join(sorted(names)))

    def list_changed_files(self) -> list[str]:
        # Leading separator so report paths (always "/"-prefixed) can suffix-match.
        self._patches = {"/" + f.filename: f.patch for f in self.pr.get_files()}
        self._changed_files = list(self._patches)
        return list(self._changed_files)

    def create_comments(self, records: list[IssueRecord]) -> None:
        if not records:
            logger.info("No comments to post.")
            return
        commit = self.pr.base.repo.get_commit(self.pr.head.sha)
        hunk_lines: dict[str, set[int]] = {}
        file_level = 0
        for r in records:
            changed = self._changed_path(r.file)
            path = (changed or r.file).lstrip("/")
            if changed not in hunk_lines:
                hunk_lines[changed] = commentable_lines(self._patches.get(changed))
            if r.line in hunk_lines[changed]:
                self.pr.create_review_comment(r.content, commit, path, line=r.line, side="RIGHT")
                continue
            logger.info("Line %d of %s is outside the diff; commenting on the file instead", r.line, path)
            self.pr.create_review_comment(f"Line {r.line}: {r.content}", commit, path, subject_type="file")
            file_level += 1
        logger.info(
            "Posted %d comment(s) to pull request #%s, %d of them on the file rather than a line",
            len(records),
            self.pr.number,
            file_level,
        )

    def _changed_path(self, file: str) -> str | None:
        """Spell the record's path the way the pull request does."""
        target = file.lower()
        for changed in self._changed_files:
            if changed.lower().endswith(target):
                return changed
        return None
