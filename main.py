import sys
import argparse
from src.exceptions import ConfigError
from src.jira_client import AUTH_TYPES
from src.md_to_jira import MDToJira



def main(argv=None):
    """MDToJira: Create JIRA issues from a folder of markdown files"""
    args = parser.parse_args(argv)
    try:
        md2j = MDToJira(args)
        md2j.run()
    except ConfigError as e:
        print('ERROR: {}'.format(e))
        return 1
    except OSError as e:
        print('ERROR: unable to read folder: {}'.format(e))
        return 1
    return 0

def cli():
    sys.exit(main())

parser = argparse.ArgumentParser(description=main.__doc__)

parser.add_argument('-u', '--user', dest='JIRA_USER', type=str, help='Username to create tickets with')
parser.add_argument('-r', '--recipient', dest='JIRA_RECIPIENT', type=str, help='Recipient (assignee) of the tickets')
parser.add_argument('-p', '--password', dest='JIRA_PASSWORD', type=str,
    help='Password or API token for user, prompted for when omitted'
)
parser.add_argument('-a', '--auth-type',
    dest='JIRA_AUTH_TYPE',
    choices=AUTH_TYPES,
    help='Authentication type: basic or token (default: basic)',
    type=str
)
parser.add_argument('-j', '--jira-server', dest='JIRA_SERVER', type=str, help='Jira server to create tickets on')
parser.add_argument('-f', '--folder', dest='FOLDER', type=str, help='Folder to read markdown files from')
parser.add_argument('-d', '--dry-run', dest='dry_run', action='store_true',
    help="Dry run - parse files but don't create any tickets"
)
parser.add_argument('-v', '--verbose', dest='verbose', action='store_true', help='Print progress for every file and request')

if __name__=="__main__":
    cli()
