#!/usr/bin/env python
"""Convert markdown into JIRA wiki markup.

Block elements are handled line by line (headings, lists, quotes, rules,
fenced code and pipe tables), inline elements with regular expressions.
Code spans, links and images are swapped for placeholders before emphasis
is rewritten, so URLs and code keep their underscores and asterisks.
"""

import re

FENCE_RE      = re.compile(r'^\s*(```|~~~)\s*([\w+#.-]*)\s*$')
HEADER_RE     = re.compile(r'^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$')
RULE_RE       = re.compile(r'^\s*([-*_])(\s*\1){2,}\s*$')
ULIST_RE      = re.compile(r'^(\s*)[-*+]\s+(.*)$')
OLIST_RE      = re.compile(r'^(\s*)\d+[.)]\s+(.*)$')
QUOTE_RE      = re.compile(r'^\s*>\s?(.*)$')
TABLE_RE      = re.compile(r'^\s*\|.*\|\s*$')
TABLE_SEP_RE  = re.compile(r'^\s*\|?(\s*:?-+:?\s*\|)+\s*(:?-+:?\s*)?$')

CODE_SPAN_RE  = re.compile(r'(`+)(.+?)\1')
IMAGE_RE      = re.compile(r'!\[([^\]]*)\]\(([^)\s]+)(?:\s+"[^"]*")?\)')
LINK_RE       = re.compile(r'\[([^\]]+)\]\(([^)\s]+)(?:\s+"[^"]*")?\)')
BOLD_RE       = re.compile(r'(\*\*|__)(?=\S)(.+?)(?<=\S)\1')
ITALIC_RE     = re.compile(r'(?<![\w*])\*(?=\S)(.+?)(?<=\S)\*(?![\w*])')
STRIKE_RE     = re.compile(r'~~(?=\S)(.+?)(?<=\S)~~')
PLACEHOLDER_RE = re.compile('\x00(\\d+)\x00')

BOLD_MARK = '\x01'


def md2wiki(markdown):
    """Convert markdown to JIRA wiki format"""
    if not markdown:
        return ''

    lines      = markdown.replace('\r', '').split('\n')
    output     = []
    list_stack = []
    fence      = None
    i          = 0

    while i < len(lines):
        line = lines[i]
        i   += 1

        if fence is not None:
            if line.strip().startswith(fence):
                output.append('{code}')
                fence = None
            else:
                output.append(line)
            continue

        matches = FENCE_RE.match(line)
        if matches is not None:
            fence    = matches.group(1)
            language = matches.group(2)
            output.append('{{code:{}}}'.format(language) if language else '{code}')
            list_stack = []
            continue

        if not line.strip():
            output.append('')
            continue

        if RULE_RE.match(line):
            output.append('----')
            list_stack = []
            continue

        matches = HEADER_RE.match(line)
        if matches is not None:
            level, text = matches.group(1, 2)
            output.append('h{}. {}'.format(len(level), inline(text)))
            list_stack = []
            continue

        matches = ULIST_RE.match(line) or OLIST_RE.match(line)
        if matches is not None:
            indent, text = matches.group(1, 2)
            marker       = '*' if ULIST_RE.match(line) else '#'
            width        = len(indent.expandtabs(4))
            # list_stack holds (indent width, marker) per nesting level
            while list_stack and list_stack[-1][0] > width:
                list_stack.pop()
            if list_stack and list_stack[-1][0] == width:
                list_stack[-1] = (width, marker)
            else:
                list_stack.append((width, marker))
            prefix = ''.join(m for _, m in list_stack)
            output.append('{} {}'.format(prefix, inline(text)))
            continue

        list_stack = []

        matches = QUOTE_RE.match(line)
        if matches is not None:
            output.append('bq. {}'.format(inline(matches.group(1))).rstrip())
            continue

        if TABLE_RE.match(line):
            is_header = i < len(lines) and TABLE_SEP_RE.match(lines[i]) is not None
            output.append(table_row(line, is_header))
            if is_header:
                i += 1
            continue

        output.append(inline(line))

    if fence is not None:
        output.append('{code}')

    return '\n'.join(output).strip('\n')


def table_row(line, is_header=False):
    cells = [inline(cell.strip()) for cell in line.strip().strip('|').split('|')]
    sep   = '||' if is_header else '|'
    return '{}{}{}'.format(sep, sep.join(cells), sep)


def inline(text):
    """Convert inline markdown (emphasis, code, links, images)"""
    kept = []

    def keep(value):
        kept.append(value)
        return '\x00{}\x00'.format(len(kept) - 1)

    text = CODE_SPAN_RE.sub(lambda m: keep('{{' + m.group(2).strip() + '}}'), text)
    text = IMAGE_RE.sub(lambda m: keep('!{}!'.format(m.group(2))), text)
    text = LINK_RE.sub(lambda m: keep('[{}|{}]'.format(m.group(1), m.group(2))), text)
    text = BOLD_RE.sub(lambda m: '{0}{1}{0}'.format(BOLD_MARK, m.group(2)), text)
    text = ITALIC_RE.sub(r'_\1_', text)
    text = STRIKE_RE.sub(r'-\1-', text)
    text = text.replace(BOLD_MARK, '*')
    # Link text may itself hold a code span placeholder
    while PLACEHOLDER_RE.search(text):
        text = PLACEHOLDER_RE.sub(lambda m: kept[int(m.group(1))], text)
    return text
