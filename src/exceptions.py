"""Exceptions raised while turning markdown files into JIRA issues."""


class MDToJiraError(Exception):
    """Base exception for md-to-jira errors."""


class ConfigError(MDToJiraError):
    """Settings are missing or invalid. Fatal for the whole run."""


class ParseError(MDToJiraError):
    """A markdown file has no usable front matter. The file is skipped."""


class JiraError(MDToJiraError):
    """A JIRA REST call failed."""

    def __init__(self, message, status=None, body=''):
        super().__init__(message)
        self.status = status
        self.body   = body
