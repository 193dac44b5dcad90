"""Reporting exports."""
from .base import ReportManager, Reporter
from .json_reporter import JsonReporter
from .markdown import MarkdownReporter, render_document, render_section, report_filename
from .terminal import TerminalReporter

__all__ = [
    "ReportManager",
    "Reporter",
    "JsonReporter",
    "MarkdownReporter",
    "TerminalReporter",
    "render_document",
    "render_section",
    "report_filename",
]
