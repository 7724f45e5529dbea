import pytest

from src.markup import md2wiki


class TestMd2WikiBasics:
    @pytest.mark.parametrize('value', ['', None])
    def test_empty_input(self, value):
        assert md2wiki(value) == ''

    def test_deterministic(self):
        text = '# Title\n\n* a\n* b\n\n```\ncode\n```\n| A | B |\n|---|---|\n| 1 | 2 |'
        assert md2wiki(text) == md2wiki(text)

    def test_plain_paragraphs_unchanged(self):
        assert md2wiki('first line\n\nsecond line') == 'first line\n\nsecond line'

    def test_surrounding_blank_lines_dropped(self):
        assert md2wiki('\n\nText\n\n') == 'Text'


class TestBlocks:
    @pytest.mark.parametrize('markdown, wiki', [
        ('# Title', 'h1. Title'),
        ('### Sub section', 'h3. Sub section'),
        ('###### Deep', 'h6. Deep'),
        ('## Title ##', 'h2. Title'),
        ('# Use C#', 'h1. Use C#'),
    ])
    def test_headings(self, markdown, wiki):
        assert md2wiki(markdown) == wiki

    def test_heading_inline_markup(self):
        assert md2wiki('## The `api` **now**') == 'h2. The {{api}} *now*'

    @pytest.mark.parametrize('rule', ['---', '***', '___', '* * *'])
    def test_horizontal_rule(self, rule):
        assert md2wiki('above\n\n{}\n\nbelow'.format(rule)) == 'above\n\n----\n\nbelow'

    def test_unordered_list(self):
        assert md2wiki('- one\n* two\n+ three') == '* one\n* two\n* three'

    def test_nested_lists(self):
        markdown = '- one\n  - nested\n    - deeper\n- two'
        assert md2wiki(markdown) == '* one\n** nested\n*** deeper\n* two'

    def test_ordered_list(self):
        assert md2wiki('1. first\n2. second') == '# first\n# second'

    def test_mixed_nested_list(self):
        assert md2wiki('1. step\n   - detail\n2. next') == '# step\n#* detail\n# next'

    def test_blockquote(self):
        assert md2wiki('> quoted **text**') == 'bq. quoted *text*'

    def test_fenced_code_with_language(self):
        markdown = '```python\nx = a_b * 2\n**not bold**\n```'
        assert md2wiki(markdown) == '{code:python}\nx = a_b * 2\n**not bold**\n{code}'

    def test_fenced_code_without_language(self):
        assert md2wiki('```\nplain\n```') == '{code}\nplain\n{code}'

    def test_unterminated_fence_is_closed(self):
        assert md2wiki('```\ncode') == '{code}\ncode\n{code}'

    def test_table(self):
        markdown = '| A | B |\n|---|:---:|\n| 1 | **2** |'
        assert md2wiki(markdown) == '||A||B||\n|1|*2*|'


class TestInline:
    def test_bold_and_italic(self):
        assert md2wiki('**bold** and *italic*') == '*bold* and _italic_'

    def test_underscore_bold(self):
        assert md2wiki('__bold__') == '*bold*'

    def test_underscore_italic_kept(self):
        assert md2wiki('_italic_') == '_italic_'

    def test_strikethrough(self):
        assert md2wiki('~~gone~~') == '-gone-'

    def test_inline_code_keeps_content(self):
        assert md2wiki('Use `a_b*c` here') == 'Use {{a_b*c}} here'

    def test_link(self):
        assert md2wiki('See [docs](https://x.io/a_b_c)') == 'See [docs|https://x.io/a_b_c]'

    def test_link_with_code_text(self):
        assert md2wiki('[`run`](http://x.io)') == '[{{run}}|http://x.io]'

    def test_image(self):
        assert md2wiki('![logo](img/logo.png)') == '!img/logo.png!'

    def test_arithmetic_asterisks_untouched(self):
        assert md2wiki('2 * 3 * 4') == '2 * 3 * 4'

    def test_snake_case_untouched(self):
        assert md2wiki('call my_var_name now') == 'call my_var_name now'
