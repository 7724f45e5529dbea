#!/usr/bin/env python

import os
import getpass
from dotenv import load_dotenv

from src.exceptions import ConfigError, JiraError, ParseError
from src.jira_client import jira_connect, report_errors
from src.markup import md2wiki
from src.ticket import dump_ticket, find_markdown_files, load_ticket

# argparse dest -> environment variable fallback
SETTINGS = ('JIRA_USER', 'JIRA_RECIPIENT', 'JIRA_PASSWORD', 'JIRA_AUTH_TYPE', 'JIRA_SERVER', 'FOLDER')


class MDToJira:
    def __init__(self, args, client=None):

        # Local environment supercedes .env file
        load_dotenv(override=True)

        settings = {}
        for name in SETTINGS:
            value = getattr(args, name, None)
            settings[name] = value if value else os.environ.get(name, '')

        self.args      = args
        self.username  = settings['JIRA_USER']
        self.recipient = settings['JIRA_RECIPIENT']
        self.password  = settings['JIRA_PASSWORD']
        self.auth_type = settings['JIRA_AUTH_TYPE'] or 'basic'
        self.server    = settings['JIRA_SERVER']
        self.folder    = settings['FOLDER']
        self.dry_run   = bool(getattr(args, 'dry_run', False))
        self.verbose   = bool(getattr(args, 'verbose', False))
        self.client    = client
        self.summary   = BatchSummary()

        required = {'FOLDER': self.folder}
        if self.dry_run is False:
            required.update({
                'JIRA_USER': self.username,
                'JIRA_RECIPIENT': self.recipient,
                'JIRA_SERVER': self.server
            })
        missing = [name for name in required if not required[name]]
        if missing:
            raise ConfigError('missing required setting(s): {}'.format(', '.join(missing)))

    def resolve_password(self):
        if self.password:
            return self.password
        print('Please enter your password')
        try:
            self.password = getpass.getpass('')
        except (EOFError, KeyboardInterrupt, OSError) as e:
            raise ConfigError('Error reading the password') from e
        return self.password

    def connect(self):
        """Authenticate against JIRA and validate the configured user"""
        if self.client is None:
            self.client = jira_connect(self.auth_type, self.username, self.resolve_password(), self.server)
        try:
            self.client.get_user(self.username)
        except JiraError as e:
            print('WARNING: unable to look up user {}: {}'.format(self.username, e))
        return self.client

    def run(self):
        """Create JIRA issues for every markdown file in the folder, then link them"""
        if self.dry_run is False:
            self.connect()

        files = find_markdown_files(self.folder)
        self.summary.files = len(files)

        issue_map = {}
        for path in files:
            ticket = self.process_file(path)
            if ticket is None:
                continue
            # Created, but nothing can depend on a ticket without a key
            if not ticket.key:
                continue
            if ticket.key in issue_map:
                self.summary.duplicates += 1
                print('WARNING: key "{}" in {} replaces an earlier ticket'.format(ticket.key, path))
            issue_map[ticket.key] = ticket

        if self.dry_run is False:
            self.create_links(issue_map)

        self.summary.report(self.dry_run)
        return issue_map

    def process_file(self, path):
        """Parse, convert and (unless dry run) submit one file"""
        if self.verbose:
            print('[parse] {}'.format(path))
        try:
            ticket = load_ticket(path)
        except ParseError as e:
            self.summary.parse_failed += 1
            print('ERROR: {}: {}'.format(path, e))
            return None
        self.summary.parsed += 1

        ticket.jira_markup = md2wiki(ticket.markdown)

        if self.dry_run:
            print('[dry-run] {}'.format(path))
            print(dump_ticket(ticket))
            return None

        try:
            ticket.issue = self.save_to_jira(ticket)
        except JiraError as e:
            self.summary.create_failed += 1
            print('ERROR: unable to save ticket {}: {}'.format(ticket.key or path, e))
            report_errors(e.body)
            return None
        self.summary.created += 1
        print('{} created for {}'.format(ticket.issue_key, ticket.key or path))

        self.upload_attachments(ticket)
        return ticket

    def prepare_issue(self, ticket):
        """Prepare fields to send to JIRA API"""
        metadata = ticket.metadata
        fields   = {
            'assignee': {'name': self.recipient},
            'reporter': {'name': self.username},
            'description': ticket.jira_markup,
            'issuetype': {'name': metadata.issuetype},
            'project': {'key': metadata.project},
            'summary': metadata.summary,
            'labels': list(metadata.labels)
        }

        if metadata.time_tracking.remaining_estimate:
            fields['timetracking'] = metadata.time_tracking.to_dict()

        if metadata.epic_label_field:
            fields[metadata.epic_label_field] = metadata.epic_label

        return fields

    def save_to_jira(self, ticket):
        if self.verbose:
            print('[create] {} ({} in {})'.format(
                ticket.key, ticket.metadata.issuetype, ticket.metadata.project))
        return self.client.create_issue(self.prepare_issue(ticket))

    def upload_attachments(self, ticket):
        """Upload attachments listed in the ticket; failures never undo the issue"""
        for attachment in ticket.metadata.attachments:
            file_path = os.path.join(self.folder, attachment)
            try:
                with open(file_path, 'rb') as fh:
                    data = fh.read()
            except OSError:
                self.summary.attachments_failed += 1
                print('Error opening file: {}'.format(file_path))
                continue

            if self.verbose:
                print('[attach] {} -> {}'.format(attachment, ticket.issue_key))
            try:
                self.client.add_attachment(ticket.issue_key, os.path.basename(attachment), data)
            except JiraError as e:
                self.summary.attachments_failed += 1
                print('Error uploading attachment: {}'.format(attachment))
                report_errors(e.body)
                continue
            self.summary.attachments += 1

    def create_links(self, issue_map):
        """Resolve dependencies between created tickets into links / epic fields"""
        for key in issue_map:
            ticket = issue_map[key]
            for dependency in ticket.metadata.dependencies:
                linked = issue_map.get(dependency.ticket)
                if linked is None:
                    continue

                if self.verbose:
                    print('[link] {} -[{}]-> {}'.format(key, dependency.type, dependency.ticket))
                try:
                    if dependency.is_epic:
                        self.client.update_issue(
                            ticket.issue_key, {dependency.epic_link_field: linked.issue_key})
                    else:
                        self.client.add_link(dependency.type, ticket.issue_key, linked.issue_key)
                except JiraError as e:
                    self.summary.links_failed += 1
                    if dependency.is_epic:
                        print('Error linking {} to Epic {}: {}'.format(key, dependency.ticket, e))
                    else:
                        print('Error linking {} to {} ({}): {}'.format(
                            key, dependency.ticket, dependency.type, e))
                    report_errors(e.body)
                    continue
                self.summary.links += 1


class BatchSummary:
    def __init__(self):
        self.files              = 0
        self.parsed             = 0
        self.parse_failed       = 0
        self.created            = 0
        self.create_failed      = 0
        self.duplicates         = 0
        self.attachments        = 0
        self.attachments_failed = 0
        self.links              = 0
        self.links_failed       = 0

    def report(self, dry_run=False):
        if dry_run:
            print('{} file(s), {} parsed, {} failed to parse'.format(
                self.files, self.parsed, self.parse_failed))
            return
        print('{} file(s), {} parsed, {} failed to parse, {} created, {} failed to create, '
              '{} duplicate key(s), {} attachment(s) uploaded, {} failed, '
              '{} link(s) created, {} failed'.format(
                  self.files, self.parsed, self.parse_failed, self.created, self.create_failed,
                  self.duplicates, self.attachments, self.attachments_failed,
                  self.links, self.links_failed))
