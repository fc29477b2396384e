"""Severity vocabulary shared by report parsing, filtering and the failure policy.

The numeric values only order the members against each other. They are not a
wire format: reports and configuration always use the lowercase names.
"""

from __future__ import annotations

import logging
from enum import IntEnum

logger = logging.getLogger(__name__)


class Severity(IntEnum):
    NONE = 1
    INFO = 2
    MINOR = 3
    MAJOR = 4
    CRITICAL = 5
    BLOCKER = 6


_BY_NAME = {s.name.lower(): s for s in Severity}


class SeverityService:
    """Maps between severity names found in reports/config and ``Severity``.

    Never raises on bad input: anything unrecognised becomes ``Severity.NONE``
    and a warning is logged, so one malformed issue cannot abort a run.
    """

    def severity_from_name(self, name: str | None) -> Severity:
        if not name or not isinstance(name, str):
            logger.warning("Severity provided is not correct [%s]; using 'none'", name)
            return Severity.NONE
        severity = _BY_NAME.get(name.strip().lower())
        if severity is None:
            logger.warning("Unknown severity [%s]; using 'none'", name)
            return Severity.NONE
        return severity

    def severity_from_issue(self, issue) -> Severity:
        """Read the severity of a report issue, defaulting to ``none`` when absent."""
        name = getattr(issue, "severity", None)
        if not name:
            logger.warning(
                "Issue %r on %s does not have a severity associated",
                getattr(issue, "message", ""),
                getattr(issue, "component", "?"),
            )
            return Severity.NONE
        return self.severity_from_name(name)

    def display_name(self, severity: int) -> str:
        try:
            return Severity(severity).name.lower()
        except ValueError:
            return Severity.NONE.name.lower()
