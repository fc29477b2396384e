"""End-to-end pipeline: report → filtered, prioritised PR comments.

Steps run strictly in order, each waiting for the previous one's outcome:

    fetch report → delete stale comments → fetch changed files
                 → filter / sort / truncate → post → severity policy

Only the deletion step is allowed to fail without aborting the run. Stale
comments are removed before posting, so a posting failure leaves the PR
without analysis comments and must surface as a failed run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol

from prca_core.errors import (
    ChangedFilesUnavailableError,
    CommentDeletionError,
    CommentPostingError,
    ConfigurationError,
    PrcaError,
    SeverityThresholdExceeded,
)
from prca_core.models import IssueRecord
from prca_core.report import ReportProcessor
from prca_core.resolver import SourceTreeResolver
from prca_core.severity import Severity, SeverityService

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_LIMIT = 100


class CommentService(Protocol):
    """The pull request comment thread the orchestrator writes to."""

    def delete_comments_by_authors(self, names: list[str]) -> None: ...

    def list_changed_files(self) -> list[str]: ...

    def create_comments(self, records: list[IssueRecord]) -> None: ...


class Stage(str, Enum):
    FETCH_REPORT = "fetch the analysis report"
    DELETE_COMMENTS = "delete previous analysis comments"
    CHANGED_FILES = "get the files modified by the pull request"
    POST_COMMENTS = "post new analysis comments"
    SEVERITY_POLICY = "pass the severity policy"


class StepStatus(str, Enum):
    OK = "ok"
    FATAL = "fatal"
    RECOVERABLE = "recoverable"


@dataclass(frozen=True)
class StepResult:
    status: StepStatus
    value: Any = None
    error: PrcaError | None = None

    @property
    def failed(self) -> bool:
        return self.status is not StepStatus.OK


@dataclass
class PipelineOutcome:
    """What the host process needs to report: pass/fail plus a reason.

    ``stage`` and ``error`` identify the failing step; both are None on success.
    """

    success: bool
    reason: str
    stage: Stage | None = None
    error: PrcaError | None = None
    posted: list[IssueRecord] = field(default_factory=list)
    dropped: int = 0


def _split_names(value) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set)):
        value = [value]
    names = (str(name).strip() for name in value if name is not None)
    return tuple(name for name in names if name)


@dataclass(frozen=True)
class OrchestratorConfig:
    message_limit: int = DEFAULT_MESSAGE_LIMIT
    minimum_severity_to_display: Severity = Severity.INFO
    failed_task_severity: Severity = Severity.NONE  # NONE = never fail on severity
    comment_author_names_to_delete: tuple[str, ...] = ()
    base_report_url: str = ""

    def __post_init__(self):
        limit = self.message_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ConfigurationError(f"Expected message limit to be a positive integer, but it was {limit!r}")
        for name in ("minimum_severity_to_display", "failed_task_severity"):
            if not isinstance(getattr(self, name), Severity):
                raise ConfigurationError(f"{name} must be a Severity, got {getattr(self, name)!r}")

    @classmethod
    def from_mapping(cls, config: dict, severity_service: SeverityService | None = None) -> OrchestratorConfig:
        """Build the config from a merged settings dict, applying defaults for absent keys."""
        severity_service = severity_service or SeverityService()

        limit = config.get("message_limit")
        if limit is None:
            limit = DEFAULT_MESSAGE_LIMIT
        elif isinstance(limit, str):
            try:
                limit = int(limit.strip())
            except ValueError as e:
                raise ConfigurationError(f"Expected message limit to be a number, but instead it was {limit!r}") from e

        minimum = config.get("minimum_severity_to_display") or "info"
        failed = config.get("failed_task_severity") or "none"

        url = config.get("base_report_url") or ""
        if url and not url.endswith("/"):
            url += "/"

        return cls(
            message_limit=limit,
            minimum_severity_to_display=severity_service.severity_from_name(minimum),
            failed_task_severity=severity_service.severity_from_name(failed),
            comment_author_names_to_delete=_split_names(config.get("comment_author_names_to_delete")),
            base_report_url=url,
        )


def filter_records(
    records: list[IssueRecord],
    changed_files: list[str],
    minimum_severity: Severity,
) -> list[IssueRecord]:
    """Keep records at or above ``minimum_severity`` whose file is in the change set.

    Paths match when a changed file ends with the record's file, ignoring case,
    so a PR path carrying an extra root prefix still matches.
    """
    changed = [path.lower() for path in changed_files]
    result = []
    for record in records:
        if record is None or record.severity < minimum_severity:
            continue
        file = record.file.lower()
        if any(path.endswith(file) for path in changed):
            result.append(record)
        else:
            logger.debug("%s is not changed by this pull request", record.file)
    return result


def sort_records(records: list[IssueRecord]) -> list[IssueRecord]:
    """Descending severity; equal severities keep their input order."""
    return sorted(records, key=lambda r: r.severity, reverse=True)


def truncate_records(records: list[IssueRecord], limit: int) -> tuple[list[IssueRecord], int]:
    dropped = max(len(records) - limit, 0)
    if dropped:
        logger.warning(
            "The number of messages posted is limited to %d. %d messages will not be posted.",
            limit,
            dropped,
        )
    return records[:limit], dropped


class PrcaOrchestrator:
    def __init__(
        self,
        report_processor: ReportProcessor,
        comment_service: CommentService,
        config: OrchestratorConfig | None = None,
    ):
        if report_processor is None:
            raise ValueError("report_processor is required")
        if comment_service is None:
            raise ValueError("comment_service is required")
        self.report_processor = report_processor
        self.comment_service = comment_service
        self.config = config or OrchestratorConfig()

    @classmethod
    def create(cls, config: dict, comment_service: CommentService, source_dir: str | None = None) -> PrcaOrchestrator:
        """Wire the default severity service, report processor and path resolver."""
        severity_service = SeverityService()
        orchestrator_config = OrchestratorConfig.from_mapping(config, severity_service)
        resolver = SourceTreeResolver(source_dir) if source_dir else None
        processor = ReportProcessor(severity_service, orchestrator_config.base_report_url, resolver)
        return cls(processor, comment_service, orchestrator_config)

    @property
    def message_limit(self) -> int:
        return self.config.message_limit

    def post_issues(self, report_path: str) -> PipelineOutcome:
        logger.info("Analysis report path: %s", report_path)

        fetched = self._run(Stage.FETCH_REPORT, lambda: self.report_processor.fetch_comments(report_path))
        if fetched.failed:
            return self._fail(Stage.FETCH_REPORT, fetched.error)
        all_records: list[IssueRecord] = fetched.value

        deleted = self._run(
            Stage.DELETE_COMMENTS,
            lambda: self.comment_service.delete_comments_by_authors(list(self.config.comment_author_names_to_delete)),
            CommentDeletionError,
            fatal=False,
        )
        if deleted.failed:
            logger.warning("Failed to delete previous analysis comments. Reason: %s", deleted.error)

        changed = self._run(Stage.CHANGED_FILES, self.comment_service.list_changed_files, ChangedFilesUnavailableError)
        if changed.failed:
            return self._fail(Stage.CHANGED_FILES, changed.error)
        changed_files: list[str] = list(changed.value or [])
        logger.debug("%d changed files in the PR: %s", len(changed_files), changed_files)

        to_post, dropped = self.select_records(all_records, changed_files)

        logger.info("%d messages are to be posted.", len(to_post))
        posted = self._run(Stage.POST_COMMENTS, lambda: self.comment_service.create_comments(list(to_post)), CommentPostingError)
        if posted.failed:
            return self._fail(Stage.POST_COMMENTS, posted.error)

        breach = self._check_failed_severity(to_post)
        if breach is not None:
            return PipelineOutcome(
                success=False,
                reason=str(breach),
                stage=Stage.SEVERITY_POLICY,
                error=breach,
                posted=to_post,
                dropped=dropped,
            )

        return PipelineOutcome(
            success=True,
            reason=f"Posted {len(to_post)} analysis comment(s).",
            posted=to_post,
            dropped=dropped,
        )

    def select_records(self, records: list[IssueRecord], changed_files: list[str]) -> tuple[list[IssueRecord], int]:
        """Filter, prioritise and cap the records; returns (records, dropped count)."""
        logger.debug("%d messages exist before filtering", len(records))
        matching = filter_records(records, changed_files, self.config.minimum_severity_to_display)
        logger.info(
            "%d messages are for files changed in this PR. %d messages are not.",
            len(matching),
            len(records) - len(matching),
        )
        return truncate_records(sort_records(matching), self.config.message_limit)

    # ------------------------------------------------------------------ #
    # Helpers                                                              #
    # ------------------------------------------------------------------ #

    def _run(
        self,
        stage: Stage,
        action: Callable[[], Any],
        error_cls: type[PrcaError] | None = None,
        fatal: bool = True,
    ) -> StepResult:
        logger.debug("Step: %s", stage.value)
        try:
            return StepResult(StepStatus.OK, value=action())
        except PrcaError as e:
            error = e
        except Exception as e:
            # Without an error_cls the step has no collaborator to blame; let it propagate.
            if error_cls is None:
                raise
            error = error_cls(f"Failed to {stage.value}. Reason: {e}")
            error.__cause__ = e
        return StepResult(StepStatus.FATAL if fatal else StepStatus.RECOVERABLE, error=error)

    def _fail(self, stage: Stage, error: PrcaError) -> PipelineOutcome:
        reason = f"Failed to {stage.value}: {error}"
        if stage is Stage.POST_COMMENTS:
            reason += " Previous analysis comments may already have been deleted."
        logger.error(reason)
        return PipelineOutcome(success=False, reason=reason, stage=stage, error=error)

    def _check_failed_severity(self, records: list[IssueRecord]) -> SeverityThresholdExceeded | None:
        threshold = self.config.failed_task_severity
        if threshold is Severity.NONE:
            return None
        offending = [r for r in records if r.severity >= threshold]
        for record in offending:
            logger.warning(
                "The message %s has a severity of [%s] or higher.",
                record.content,
                threshold.name.lower(),
            )
        if not offending:
            return None
        return SeverityThresholdExceeded(threshold.name.lower(), len(offending))
