"""Turn a static-analysis report into postable issue records."""

from __future__ import annotations

import glob
import json
import logging
import os
import posixpath
import time
from pathlib import Path

from prca_core.errors import ReportMalformedError, ReportNotFoundError
from prca_core.models import Component, IssueRecord, Report, ReportIssue, parse_report
from prca_core.resolver import PathResolver
from prca_core.severity import Severity, SeverityService

logger = logging.getLogger(__name__)


def normalize_issue_path(file_path: str) -> str:
    """Forward slashes and exactly one leading separator, as PR file paths have."""
    return "/" + file_path.replace("\\", "/").lstrip("/")


def build_component_index(components: list[Component]) -> dict[str, str]:
    """Map component keys to repository-relative paths.

    A component that belongs to a module gets its module's own path prepended.
    Only the directly enclosing module is used; nested modules are not
    resolved further up the chain.
    """
    by_key: dict[str, Component] = {}
    for component in components:
        by_key.setdefault(component.key, component)

    index: dict[str, str] = {}
    for component in components:
        if component.path is None:
            continue
        component_path = component.path.replace("\\", "/")
        if component.module_key is not None:
            module = by_key.get(component.module_key)
            if module is None:
                logger.warning(
                    "Component %s refers to unknown module %s; using its path as-is",
                    component.key,
                    component.module_key,
                )
            elif module.path:
                component_path = posixpath.join(module.path.replace("\\", "/"), component_path.lstrip("/"))
            logger.debug("Component %s in module %s resolves to %s", component.key, component.module_key, component_path)
        index[component.key] = component_path

    logger.debug("The analysis report contains %d components with paths", len(index))
    return index


def find_report(source_dir: str, directory_pattern: str = "**", file_name: str = "sonar-report.json") -> str:
    """Locate the report file under ``source_dir``.

    When several files match, the first in sorted order is used.
    """
    pattern = os.path.join(source_dir, directory_pattern, file_name)
    matches = sorted(glob.glob(pattern, recursive=True))
    logger.debug("Searching for %s - found %d file(s)", pattern, len(matches))
    if not matches:
        raise ReportNotFoundError(f"No analysis report matching {pattern} - did the analysis run before this step?")
    if len(matches) > 1:
        logger.warning("Found %d analysis reports; using %s", len(matches), matches[0])
    return matches[0]


class ReportProcessor:
    """Parses an analysis report into ``IssueRecord`` objects, one per new issue."""

    def __init__(
        self,
        severity_service: SeverityService,
        base_report_url: str = "",
        resolver: PathResolver | None = None,
    ):
        self.severity_service = severity_service
        self.base_report_url = base_report_url or ""
        self.resolver = resolver

    def get_severity_service(self) -> SeverityService:
        return self.severity_service

    def fetch_comments(self, report_path: str) -> list[IssueRecord]:
        start = time.monotonic()
        report = self._load(report_path)
        records = self._build_records(report)
        logger.info(
            "Took %d ms to fetch %d comment(s) from the analysis report",
            (time.monotonic() - start) * 1000,
            len(records),
        )
        return records

    # ------------------------------------------------------------------ #
    # Loading                                                              #
    # ------------------------------------------------------------------ #

    def _load(self, report_path: str) -> Report:
        if not report_path:
            raise ReportNotFoundError("No analysis report path was provided.")
        try:
            content = Path(report_path).read_text(encoding="utf-8")
        except OSError as e:
            raise ReportNotFoundError(f"Could not find {report_path} - did the analysis complete?") from e
        except UnicodeDecodeError as e:
            raise ReportMalformedError(f"Could not read the analysis report {report_path}: {e}") from e

        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise ReportMalformedError(f"Could not parse the analysis report file. The error is: {e}") from e

        return parse_report(document)

    # ------------------------------------------------------------------ #
    # Records                                                              #
    # ------------------------------------------------------------------ #

    def _build_records(self, report: Report) -> list[IssueRecord]:
        known_keys = {c.key for c in report.components}
        index = build_component_index(report.components)

        if not index:
            logger.info("The analysis report is empty as it lists no components with paths")
            return []
        if report.issues is None:
            logger.info("The analysis report is empty as there are no issues")
            return []

        new_issues = [issue for issue in report.issues if issue.is_new]
        logger.info(
            "The analysis report contains %d issues, out of which %d are new.",
            len(report.issues),
            len(new_issues),
        )

        # Lives for this call only; keyed by the normalized report path.
        resolved_paths: dict[str, str] = {}
        records: list[IssueRecord] = []
        for issue in new_issues:
            if not issue.component:
                raise ReportMalformedError(
                    f"Invalid analysis report - an issue does not have the component attribute: {issue.message!r}"
                )
            if issue.component not in known_keys:
                raise ReportMalformedError(
                    f"Invalid analysis report - an issue refers to unknown component {issue.component!r}"
                )
            indexed_path = index.get(issue.component)
            if indexed_path is None:
                logger.warning(
                    "Issue %r belongs to component %s, which has no file path, and will be ignored",
                    issue.message,
                    issue.component,
                )
                continue

            file_path = self._resolve_path(normalize_issue_path(indexed_path), resolved_paths)
            record = self._build_record(file_path, issue)
            if record is not None:
                records.append(record)

        return records

    def _resolve_path(self, normalized: str, cache: dict[str, str]) -> str:
        if self.resolver is None:
            return normalized
        if normalized in cache:
            logger.debug("File %s already resolved, using cached %s", normalized, cache[normalized])
            return cache[normalized]
        found = self.resolver.resolve(normalized)
        resolved = normalize_issue_path(found) if found else normalized
        if resolved != normalized:
            logger.debug("Resolved %s to %s on disk", normalized, resolved)
        cache[normalized] = resolved
        return resolved

    def _build_record(self, file_path: str, issue: ReportIssue) -> IssueRecord | None:
        severity = self.severity_service.severity_from_issue(issue)
        content = self._build_content(issue.message, issue.rule, severity)

        line = issue.line
        if isinstance(line, bool) or not isinstance(line, int) or not line:
            logger.warning(
                "An analysis issue does not have an associated line and will be ignored. File %s. Content %s",
                file_path,
                content,
            )
            return None
        if line < 1:
            logger.warning(
                "An analysis issue was reported on line %d and will be ignored. File %s. Content %s",
                line,
                file_path,
                content,
            )
            return None

        return IssueRecord(content=content, file=file_path, line=line, severity=severity)

    def _build_content(self, message: str, rule: str, severity: Severity) -> str:
        content = ""
        if severity > Severity.NONE:
            content = f"**_{self.severity_service.display_name(severity)}_**: "
        content += f"{message} ({rule})."
        if self.base_report_url:
            content += f" (description is here: {self.base_report_url}coding_rules#q={rule})"
        return content
