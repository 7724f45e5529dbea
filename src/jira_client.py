#!/usr/bin/env python

import base64
import json
from urllib.parse import quote

import certifi
import urllib3

from src.exceptions import ConfigError, JiraError

AUTH_TYPES = ('basic', 'token')


def jira_connect(auth_type, username, password, server, http=None):
    """Build an authenticated client for `server`"""
    if auth_type == 'basic':
        credentials   = '{}:{}'.format(username, password).encode('utf-8')
        authorization = 'Basic {}'.format(base64.b64encode(credentials).decode('ascii'))
    elif auth_type == 'token':
        authorization = 'Bearer {}'.format(password)
    else:
        raise ConfigError('Invalid auth type: {}'.format(auth_type))

    return JiraClient(server, authorization, http)


class JiraClient:
    def __init__(self, server, authorization, http=None):
        self.baseurl       = '{}/rest/api/2'.format(server.rstrip('/'))
        self.authorization = authorization
        self.http          = http or urllib3.PoolManager(ca_certs=certifi.where())

    def jira_http_call(self, url, verb='GET', body=None, fields=None):
        req_headers = {
            'Accept': 'application/json',
            'Authorization': self.authorization
        }

        try:
            if fields is not None:
                # Multipart upload, urllib3 sets the Content-Type with its boundary
                req_headers['X-Atlassian-Token'] = 'no-check'
                resp = self.http.request(verb, url, headers=req_headers, fields=fields)
            elif body is not None:
                req_headers['Content-Type'] = 'application/json'
                encoded_data = json.dumps(body).encode('utf-8')
                resp         = self.http.request(verb, url, headers=req_headers, body=encoded_data)
            else:
                resp = self.http.request(verb, url, headers=req_headers)
        except urllib3.exceptions.HTTPError as e:
            raise JiraError('{} {} failed: {}'.format(verb, url, e)) from e

        if resp.status >= 400:
            raise JiraError(
                '{} {} returned HTTP {}'.format(verb, url, resp.status),
                resp.status,
                resp.data.decode('utf-8', errors='replace')
            )
        return resp

    def _json(self, resp):
        if not resp.data:
            return {}
        body = resp.data.decode('utf-8', errors='replace')
        try:
            return json.loads(body)
        except ValueError as e:
            # Proxies and SSO pages answer with HTML and a 2xx status
            raise JiraError('JIRA returned a non-JSON body', resp.status, body) from e

    def get_user(self, username):
        """Look up a user via JIRA 'user' API"""
        url  = '{}/user?username={}'.format(self.baseurl, quote(username))
        resp = self.jira_http_call(url)
        return self._json(resp)

    def create_issue(self, fields):
        """Create new issue directly via JIRA 'issue' API"""
        url  = '{}/issue'.format(self.baseurl)
        resp = self.jira_http_call(url, 'POST', {'fields': fields})
        data = self._json(resp)
        if not isinstance(data, dict) or 'key' not in data:
            raise JiraError('JIRA did not return an issue key', resp.status,
                            resp.data.decode('utf-8', errors='replace'))
        return data

    def add_attachment(self, issue_key, filename, data):
        """Attach a file to an existing issue"""
        url = '{}/issue/{}/attachments'.format(self.baseurl, issue_key)
        return self._json(self.jira_http_call(url, 'POST', fields={'file': (filename, data)}))

    def update_issue(self, issue_key, fields):
        """Update fields of an existing issue"""
        url = '{}/issue/{}'.format(self.baseurl, issue_key)
        self.jira_http_call(url, 'PUT', {'fields': fields})

    def add_link(self, link_type, inward_key, outward_key):
        """Link two issues via JIRA 'issueLink' API"""
        url  = '{}/issueLink'.format(self.baseurl)
        body = {
            'type':         {'name': link_type},
            'inwardIssue':  {'key': inward_key},
            'outwardIssue': {'key': outward_key}
        }
        self.jira_http_call(url, 'POST', body)


def report_errors(body):
    """Print the error entries of a JIRA error response"""
    try:
        json_loads = json.loads(body)
    except ValueError:
        json_loads = None

    if not isinstance(json_loads, dict):
        if body:
            print(body)
        return

    for message in json_loads.get('errorMessages') or []:
        print(message)
    errors = json_loads.get('errors') or {}
    for error in errors:
        print('{}: {}'.format(error, errors[error]))
