#!/usr/bin/env python

import os
import frontmatter
import yaml

from src.exceptions import ParseError

# Dependency type that sets an epic link field instead of creating an issue link
EPIC_DEPENDENCY = 'Epic'
MARKDOWN_EXT    = '.md'


def find_markdown_files(folder):
    """Collect every markdown file below `folder`, in walk order"""
    def raise_error(err):
        raise err

    files = []
    for root, dirs, names in os.walk(folder, onerror=raise_error):
        dirs.sort()
        for name in sorted(names):
            if os.path.splitext(name)[1] == MARKDOWN_EXT:
                files.append(os.path.join(root, name))
    return files


def load_ticket(path):
    """Read and parse a single markdown ticket file"""
    try:
        with open(path, 'rb') as fh:
            content = fh.read()
    except OSError as e:
        raise ParseError('unable to read {}: {}'.format(path, e)) from e
    return parse_ticket(content)


def parse_ticket(content):
    """Split raw file content into TicketMetadata and the markdown body"""
    if isinstance(content, bytes):
        try:
            content = content.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ParseError('file is not valid UTF-8: {}'.format(e)) from e

    # Get rid of Windows line breaks if any
    content = content.replace('\r', '')

    try:
        post = frontmatter.loads(content)
    except yaml.YAMLError as e:
        raise ParseError('malformed front matter: {}'.format(e)) from e

    if not post.metadata:
        raise ParseError('no front matter block found')

    return Ticket(TicketMetadata.from_dict(post.metadata), post.content)


def dump_ticket(ticket):
    """Serialize a ticket back into front matter + markdown"""
    post = frontmatter.Post(ticket.markdown, **ticket.metadata.to_dict())
    return frontmatter.dumps(post)


def _string(data, name, required=False):
    value = data.get(name)
    if value is None or value == '':
        if required:
            raise ParseError('missing required field "{}"'.format(name))
        return ''
    if isinstance(value, (list, dict)):
        raise ParseError('field "{}" must be a string'.format(name))
    return str(value)


def _string_list(data, name):
    value = data.get(name)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError('field "{}" must be a list'.format(name))
    for item in value:
        if item is None or isinstance(item, (list, dict)):
            raise ParseError('field "{}" must only contain strings'.format(name))
    return [str(item) for item in value]


class TimeTracking:
    def __init__(self, original_estimate='', remaining_estimate=''):
        self.original_estimate  = original_estimate
        self.remaining_estimate = remaining_estimate

    @classmethod
    def from_dict(cls, data):
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ParseError('field "timeTracking" must be a mapping')
        return cls(
            _string(data, 'originalEstimate'),
            _string(data, 'remainingEstimate')
        )

    def to_dict(self):
        result = {}
        if self.original_estimate:
            result['originalEstimate'] = self.original_estimate
        if self.remaining_estimate:
            result['remainingEstimate'] = self.remaining_estimate
        return result


class Dependency:
    def __init__(self, type, ticket, epic_link_field=''):
        self.type            = type
        self.ticket          = ticket
        self.epic_link_field = epic_link_field

    @property
    def is_epic(self):
        return self.type == EPIC_DEPENDENCY

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ParseError('each dependency must be a mapping')
        dependency = cls(
            _string(data, 'type', required=True),
            _string(data, 'ticket', required=True),
            _string(data, 'epicLinkField')
        )
        if dependency.is_epic and not dependency.epic_link_field:
            raise ParseError(
                'epic dependency on "{}" needs an "epicLinkField"'.format(dependency.ticket))
        return dependency

    def to_dict(self):
        result = {'type': self.type, 'ticket': self.ticket}
        if self.epic_link_field:
            result['epicLinkField'] = self.epic_link_field
        return result


class TicketMetadata:
    def __init__(self, issuetype, project, key, summary, epic_label_field='', epic_label='',
                 time_tracking=None, labels=None, attachments=None, dependencies=None):
        self.issuetype        = issuetype
        self.project          = project
        self.key              = key
        self.summary          = summary
        self.epic_label_field = epic_label_field
        self.epic_label       = epic_label
        self.time_tracking    = time_tracking or TimeTracking()
        self.attachments      = list(attachments or [])
        self.dependencies     = list(dependencies or [])

        # Labels behave as a set, first occurrence keeps its position
        self.labels = []
        for label in labels or []:
            if label not in self.labels:
                self.labels.append(label)

    @classmethod
    def from_dict(cls, data):
        """Build metadata from a decoded front matter mapping"""
        if not isinstance(data, dict):
            raise ParseError('front matter must be a mapping')

        dependencies = data.get('dependencies')
        if dependencies is None:
            dependencies = []
        if not isinstance(dependencies, list):
            raise ParseError('field "dependencies" must be a list')

        return cls(
            _string(data, 'issuetype', required=True),
            _string(data, 'project', required=True),
            _string(data, 'key'),
            _string(data, 'summary', required=True),
            epic_label_field=_string(data, 'epicLabelField'),
            epic_label=_string(data, 'epicLabel'),
            time_tracking=TimeTracking.from_dict(data.get('timeTracking')),
            labels=_string_list(data, 'labels'),
            attachments=_string_list(data, 'attachments'),
            dependencies=[Dependency.from_dict(d) for d in dependencies]
        )

    def to_dict(self):
        result = {
            'issuetype': self.issuetype,
            'project':   self.project,
            'summary':   self.summary,
        }
        if self.key:
            result['key'] = self.key
        if self.epic_label_field:
            result['epicLabelField'] = self.epic_label_field
        if self.epic_label:
            result['epicLabel'] = self.epic_label
        if self.labels:
            result['labels'] = list(self.labels)
        if self.attachments:
            result['attachments'] = list(self.attachments)
        time_tracking = self.time_tracking.to_dict()
        if time_tracking:
            result['timeTracking'] = time_tracking
        if self.dependencies:
            result['dependencies'] = [d.to_dict() for d in self.dependencies]
        return result


class Ticket:
    def __init__(self, metadata, markdown='', jira_markup='', issue=None):
        self.metadata    = metadata
        self.markdown    = markdown
        self.jira_markup = jira_markup
        # Response of the JIRA create call: {'id': ..., 'key': ..., 'self': ...}
        self.issue       = issue

    @property
    def key(self):
        return self.metadata.key

    @property
    def issue_key(self):
        return self.issue['key'] if self.issue else None

    def __repr__(self):
        return '<Ticket {} {}>'.format(self.key, self.issue_key or '(not created)')
