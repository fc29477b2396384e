"""Data models for analysis reports and the comments built from them.

The report document is untyped JSON. ``parse_report`` validates it once into
``Report`` so the rest of the pipeline works with explicit fields and never
has to guess whether a key exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from prca_core.errors import ReportMalformedError
from prca_core.severity import Severity


@dataclass(frozen=True)
class IssueRecord:
    """A single comment ready to be posted on the pull request.

    ``file`` always uses forward slashes and starts with ``/``.
    """

    content: str
    file: str
    line: int
    severity: Severity


@dataclass(frozen=True)
class Component:
    key: str
    path: str | None = None
    module_key: str | None = None


@dataclass(frozen=True)
class ReportIssue:
    component: str | None
    message: str = ""
    rule: str = ""
    severity: str | None = None
    line: Any = None
    is_new: bool = False


@dataclass
class Report:
    components: list[Component] = field(default_factory=list)
    # None when the document has no "issues" collection at all.
    issues: list[ReportIssue] | None = None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _parse_component(raw: Any) -> Component:
    if not isinstance(raw, dict) or not raw.get("key"):
        raise ReportMalformedError("Invalid analysis report - some components do not have keys")
    return Component(
        key=str(raw["key"]),
        path=_optional_str(raw.get("path")),
        module_key=_optional_str(raw.get("moduleKey")),
    )


def _parse_issue(raw: Any) -> ReportIssue:
    if not isinstance(raw, dict):
        raise ReportMalformedError(f"Invalid analysis report - issue entry is not an object: {raw!r}")
    return ReportIssue(
        component=_optional_str(raw.get("component")) or None,
        message=str(raw.get("message") or ""),
        rule=str(raw.get("rule") or ""),
        severity=_optional_str(raw.get("severity")),
        line=raw.get("line"),
        is_new=raw.get("isNew") is True,
    )


def parse_report(document: Any) -> Report:
    """Validate a decoded report document.

    Missing ``components`` or ``issues`` collections are valid (nothing to
    report). A component without a ``key`` anywhere in the document rejects
    the whole report.
    """
    if not isinstance(document, dict):
        raise ReportMalformedError("Invalid analysis report - the document is not a JSON object")

    raw_components = document.get("components") or []
    if not isinstance(raw_components, list):
        raise ReportMalformedError("Invalid analysis report - 'components' is not a list")
    components = [_parse_component(c) for c in raw_components]

    raw_issues = document.get("issues")
    if raw_issues is None:
        return Report(components=components, issues=None)
    if not isinstance(raw_issues, list):
        raise ReportMalformedError("Invalid analysis report - 'issues' is not a list")

    return Report(components=components, issues=[_parse_issue(i) for i in raw_issues])
