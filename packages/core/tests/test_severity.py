"""Tests for the severity vocabulary."""

import logging

import pytest

from prca_core.models import ReportIssue
from prca_core.severity import Severity, SeverityService


@pytest.fixture
def service():
    return SeverityService()


class TestSeverityOrder:
    def test_total_order(self):
        ordered = [Severity.NONE, Severity.INFO, Severity.MINOR, Severity.MAJOR, Severity.CRITICAL, Severity.BLOCKER]
        assert sorted(ordered, reverse=True) == list(reversed(ordered))
        assert all(a < b for a, b in zip(ordered, ordered[1:]))


class TestSeverityFromName:
    @pytest.mark.parametrize("name", ["none", "info", "minor", "major", "critical", "blocker"])
    def test_round_trip_through_display_name(self, service, name):
        assert service.display_name(service.severity_from_name(name.upper())) == name
        assert service.display_name(service.severity_from_name(name.capitalize())) == name

    def test_unknown_name_is_none_with_warning(self, service, caplog):
        with caplog.at_level(logging.WARNING):
            assert service.severity_from_name("catastrophic") is Severity.NONE
        assert "catastrophic" in caplog.text

    @pytest.mark.parametrize("value", ["", None])
    def test_missing_name_is_none_with_warning(self, service, caplog, value):
        with caplog.at_level(logging.WARNING):
            assert service.severity_from_name(value) is Severity.NONE
        assert len(caplog.records) == 1

    def test_explicit_none_does_not_warn(self, service, caplog):
        with caplog.at_level(logging.WARNING):
            assert service.severity_from_name("None") is Severity.NONE
        assert caplog.records == []


class TestSeverityFromIssue:
    def test_reads_issue_severity(self, service):
        issue = ReportIssue(component="A", severity="CRITICAL")
        assert service.severity_from_issue(issue) is Severity.CRITICAL

    def test_missing_severity_names_the_issue(self, service, caplog):
        issue = ReportIssue(component="A", message="Bad code right here...")
        with caplog.at_level(logging.WARNING):
            assert service.severity_from_issue(issue) is Severity.NONE
        assert "Bad code right here..." in caplog.text


class TestDisplayName:
    def test_unrecognised_number_is_none(self, service):
        assert service.display_name(42) == "none"
        assert service.display_name(0) == "none"

    def test_accepts_plain_int(self, service):
        assert service.display_name(4) == "major"
