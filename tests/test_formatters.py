# tests/test_formatters.py
"""Tests for the built-in formatter catalog and the shared formatting helpers."""

import pytest

from promptdoc import create_node, render_document
from promptdoc.config.settings import Syntax, TruncateDirection, WhiteSpace
from promptdoc.exceptions import PropValidationError
from promptdoc.formatting import WriterOptions, builtin_formatters
from promptdoc.formatting.text_utils import (
    apply_limits,
    apply_whitespace,
    escape_html,
    escape_xml_attr,
    escape_xml_text,
    truncate_chars,
    truncate_tokens,
)

FORMATTERS = builtin_formatters()


def fmt(tag, text="", syntax=Syntax.MARKDOWN, **props):
    return FORMATTERS[tag].format(props, text, syntax)


class TestTextUtils:
    def test_whitespace_modes(self):
        text = "  a \n\n  b\t c  "
        assert apply_whitespace(text, WhiteSpace.PRE) == text
        assert apply_whitespace(text, WhiteSpace.TRIM) == "a \n\n  b\t c"
        assert apply_whitespace(text, WhiteSpace.FILTER) == "a b c"

    @pytest.mark.parametrize(
        "direction,expected",
        [
            (TruncateDirection.END, "abcd(...)"),
            (TruncateDirection.START, "(...)wxyz"),
            (TruncateDirection.MIDDLE, "ab(...)yz"),
        ],
    )
    def test_truncate_chars_directions(self, direction, expected):
        text = "abcdefghijklmnopqrstuvwxyz"
        result = truncate_chars(text, 9, "(...)", direction)
        assert result == expected
        assert len(result) == 9

    def test_truncate_chars_short_text_and_tiny_limit(self):
        assert truncate_chars("short", 10, "...") == "short"
        assert truncate_chars("abcdefgh", 2, "...") == ".."

    def test_entity_aware_truncation_keeps_references_whole(self):
        text = "&amp;&lt;abc"
        assert truncate_chars(text, 5, "...", entity_aware=True) == text
        assert truncate_chars(text, 4, "...", entity_aware=True) == "&amp;..."
        assert truncate_chars("&amp;" * 6, 5, "~", TruncateDirection.MIDDLE, entity_aware=True) == "&amp;&amp;~&amp;&amp;"
        assert truncate_chars("&#x27;&#39;xyz", 3, "&gt;", TruncateDirection.START, entity_aware=True) == "&gt;yz"
        # without the flag references are plain characters
        assert truncate_chars(text, 8, "...") == "&amp;..."

    def test_truncate_tokens(self):
        assert truncate_tokens("one two three four", 2, "…") == "one two…"
        assert truncate_tokens("one two", 2, "…") == "one two"

    def test_limits_apply_chars_then_tokens(self):
        text = "alpha beta gamma delta epsilon"
        assert apply_limits(text, char_limit=20, token_limit=2, marker="!") == "alpha beta!"

    def test_escapers(self):
        raw = "<a href=\"x\">Tom & Jerry's</a>"
        assert escape_html(raw) == "&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&#39;s&lt;/a&gt;"
        assert escape_xml_text("'&'") == "&#39;&amp;&#39;"
        assert escape_xml_attr("'&'") == "&apos;&amp;&apos;"

    def test_writer_options_merge(self):
        base = WriterOptions(truncate_marker="[cut]", truncate_direction=TruncateDirection.END)
        assert base.merged_with({}) is base
        merged = base.merged_with({"writerOptions": {"truncateDirection": "middle"}})
        assert merged.truncate_marker == "[cut]"
        assert merged.truncate_direction == TruncateDirection.MIDDLE


class TestInline:
    def test_aliases_share_instances(self):
        assert FORMATTERS["b"] is FORMATTERS["bold"]
        assert FORMATTERS["s"] is FORMATTERS["strike"] is FORMATTERS["strikethrough"]

    @pytest.mark.parametrize(
        "tag,markdown,html",
        [
            ("b", "**x**", "<b>x</b>"),
            ("i", "*x*", "<em>x</em>"),
            ("u", "<u>x</u>", "<u>x</u>"),
            ("s", "~~x~~", "<del>x</del>"),
            ("text", "x", "x"),
        ],
    )
    def test_styles(self, tag, markdown, html):
        assert fmt(tag, "x") == markdown
        assert fmt(tag, "x", Syntax.HTML) == html

    def test_bold_in_plain_text_uses_capitals(self):
        assert fmt("b", "loud", Syntax.TEXT) == "LOUD"

    def test_inline_collapses_whitespace(self):
        assert fmt("inline", "  a \n b ") == "a b"
        assert fmt("inline", "a  b", Syntax.HTML) == "<span>a b</span>"
        assert fmt("inline", "a", Syntax.XML) == "<inline>a</inline>"

    def test_text_preserves_whitespace(self):
        assert fmt("span", "  spaced  ") == "  spaced  "

    def test_newline_count(self):
        assert fmt("br", count=3) == "\n\n\n"
        assert fmt("br", syntax=Syntax.HTML, count=2) == "<br /><br />"
        assert fmt("br", syntax=Syntax.XML) == '<newline count="1" />'

    def test_invalid_integer_prop_raises(self):
        with pytest.raises(PropValidationError) as exc_info:
            fmt("br", count="many")
        assert exc_info.value.prop == "count"


class TestBlocks:
    def test_paragraph(self):
        assert fmt("p", "hello   world") == "hello world\n\n"
        assert fmt("p", "hi", blankLine=True) == "\nhi\n\n"
        assert fmt("p", "") == ""
        assert fmt("p", "hi", Syntax.HTML, className="lead") == '<p class="lead">hi</p>\n'
        assert fmt("p", "hi", Syntax.YAML) == "type: paragraph\ncontent: hi"

    @pytest.mark.parametrize("level,prefix", [(1, "#"), (3, "###"), (0, "#"), (9, "######")])
    def test_header_levels_are_clamped(self, level, prefix):
        assert fmt("h", "Title", level=level) == f"{prefix} Title\n\n"

    def test_header_text_underline(self):
        assert fmt("h", "Intro", Syntax.TEXT) == "Intro\n=====\n\n"
        assert fmt("h", "Intro", Syntax.HTML, level=2) == "<h2>Intro</h2>\n"

    def test_list_and_items(self):
        items = fmt("item", "one") + fmt("li", "two")
        assert items == "- one\n- two\n"
        assert fmt("list", items) == "- one\n- two\n\n"
        assert fmt("list", items, ordered=True, start=3) == "3. one\n4. two\n\n"
        assert fmt("list", "<li>a</li>", Syntax.HTML, ordered=True) == "<ol><li>a</li></ol>\n"

    def test_nested_list_is_indented_under_parent_item(self):
        inner = fmt("list", fmt("item", "child"))
        outer = fmt("list", fmt("item", "parent\n" + inner), ordered=True)
        assert outer == "1. parent\n  - child\n\n"

    def test_code_inline_and_block(self):
        assert fmt("code", "x = 1") == "`x = 1`"
        assert fmt("code", "a\nb", lang="py") == "```python\na\nb\n```\n\n"
        assert fmt("code", "a", inline=False, lang="js") == "```javascript\na\n```\n\n"
        assert fmt("code", "a\nb", Syntax.HTML, lang="rs") == '<pre><code class="language-rust">a\nb</code></pre>\n'

    def test_captioned_paragraph_styles(self):
        assert fmt("cp", "Body", caption="Notes") == "# Notes\n\nBody\n\n"
        assert fmt("cp", "Body", caption="Notes", captionStyle="bold") == "**Notes**: Body\n\n"
        assert fmt("cp", "Body", caption="Notes", captionStyle="plain", captionEnding="newline") == "Notes\nBody\n\n"
        assert fmt("cp", "Body", caption="notes", captionStyle="plain", captionTextTransform="upper") == "NOTES: Body\n\n"
        assert fmt("cp", "Body", caption="Notes", captionStyle="hidden") == "Body\n\n"

    def test_captioned_paragraph_requires_caption(self):
        with pytest.raises(PropValidationError):
            fmt("cp", "Body")
        with pytest.raises(PropValidationError):
            fmt("cp", "Body", caption="x", captionStyle="fancy")

    def test_captioned_paragraph_escapes_caption_in_html(self):
        result = fmt("cp", "Body", Syntax.HTML, caption="A<B")
        assert result == '<div class="captioned-paragraph"><h3>A&lt;B</h3><p>Body</p></div>\n'

    def test_captioned_paragraph_serializers(self):
        assert fmt("cp", "Body", Syntax.JSON, caption="Notes") == '{\n  "Notes": "Body"\n}'
        assert fmt("output-format", "JSON only", Syntax.XML) == "<output-format>JSON only</output-format>"
        assert fmt("task", "Do it", Syntax.YAML, captionSerialized="instruction") == "instruction: Do it"

    @pytest.mark.parametrize(
        "tag,expected",
        [
            ("role", "# Role\n\nBody\n\n"),
            ("task", "# Task\n\nBody\n\n"),
            ("hint", "**Hint**: Body\n\n"),
            ("example", "# Example\n\nBody\n\n"),
            ("stepwise-instructions", "# Stepwise Instructions\n\nBody\n\n"),
            ("introducer", "Body\n\n"),
            ("question", "Question: Body\n\nAnswer:"),
        ],
    )
    def test_intention_blocks(self, tag, expected):
        assert fmt(tag, "Body") == expected

    def test_sub_content(self):
        assert fmt("sub-content", " Body ", title="Details") == "### Details\n\nBody\n\n"
        assert fmt("subcontent", "Body", Syntax.TEXT, title="Notes") == "Notes\n=====\n\nBody\n\n"
        assert fmt("sub-content", "Body", Syntax.HTML, title="A") == '<section class="sub-content"><h3>A</h3><div>Body</div></section>\n'
        assert fmt("sub-content", "Body", Syntax.XML, title="A") == '<subcontent title="A">Body</subcontent>'
        assert fmt("sub-content", "Body", Syntax.JSON) == '{\n  "type": "subcontent",\n  "content": "Body"\n}'

    def test_document_and_fragment(self):
        assert fmt("document", "body\n", title="Guide") == "# Guide\n\nbody\n"
        assert fmt("poml", "  raw  ") == "  raw  "
        assert fmt("fragment", "<x/>", Syntax.XML) == "<x/>"
        assert fmt("loop", '{"a": 1}', Syntax.JSON) == '{"a": 1}'


class TestMessages:
    @pytest.mark.parametrize(
        "tag,markdown,speaker",
        [
            ("system-msg", "**System**: Be brief.\n\n", "system"),
            ("human-msg", "**Human**: Be brief.\n\n", "human"),
            ("ai-msg", "**AI**: Be brief.\n\n", "ai"),
        ],
    )
    def test_messages(self, tag, markdown, speaker):
        assert fmt(tag, "  Be brief.  ") == markdown
        assert fmt(tag, "Be brief.", Syntax.JSON) == f'{{\n  "speaker": "{speaker}",\n  "content": "Be brief."\n}}'

    def test_conversation_markdown_and_text(self):
        turns = "**Human**: hi\n\n**AI**: hello\n\n"
        expected = "### Support\n\n**Participants:** Ada, Bot\n\n---\n**Human**: hi\n\n**AI**: hello\n---\n\n"
        assert fmt("conversation", turns, title="Support", participants=["Ada", "Bot"]) == expected
        assert fmt("chat", turns, title="Support", participants="Ada, Bot") == expected
        assert fmt("conversation", "Human: hi\n\n", Syntax.TEXT, title="Support") == "Support\n\nHuman: hi\n\n"

    def test_conversation_markup_and_serializers(self):
        html = fmt("conversation", "<div>x</div>", Syntax.HTML, title="A&B", participants=["Ada"])
        assert html == (
            '<div class="conversation"><h3>A&amp;B</h3><p><strong>Participants:</strong> Ada</p>'
            '<div class="conversation-content"><div>x</div></div></div>\n'
        )
        xml = fmt("conversation", "<m>hi</m>", Syntax.XML, title="T", participants="a,b")
        assert xml == (
            '<conversation title="T"><participants><participant>a</participant><participant>b</participant>'
            "</participants><content><m>hi</m></content></conversation>"
        )
        assert fmt("conversation", "x", Syntax.JSON, participants=["a"]) == (
            '{\n  "type": "conversation",\n  "content": "x",\n  "participants": [\n    "a"\n  ]\n}'
        )

    def test_conversation_rejects_bad_participants(self):
        with pytest.raises(PropValidationError) as exc_info:
            fmt("conversation", "x", participants=5)
        assert exc_info.value.prop == "participants"

    def test_message_context_prose(self):
        props = {"description": "Customer ticket", "metadata": {"priority": "high", "id": 7}}
        assert fmt("message-context", " Ticket body ", **props) == (
            '**Context**: Customer ticket\n\n- priority: "high"\n- id: 7\n\n**Content**: Ticket body\n\n'
        )
        assert fmt("msg-context", "x", Syntax.TEXT, metadata={"priority": "high"}) == (
            'priority: "high"\n\nContent: x\n\n'
        )
        assert fmt("message-context", "") == ""

    def test_message_context_markup_and_serializers(self):
        html = fmt("message-context", "body", Syntax.HTML, description="<d>", metadata={"k": "v"})
        assert html == (
            '<div class="message-context"><h4>Context: &lt;d&gt;</h4>'
            "<ul><li><strong>k:</strong> &quot;v&quot;</li></ul>"
            "<p><strong>Content:</strong> body</p></div>\n"
        )
        xml = fmt("message-context", "body", Syntax.XML, description="d", metadata={"k": 1})
        assert xml == (
            '<message-context description="d"><metadata><entry key="k">1</entry></metadata>'
            "<content>body</content></message-context>"
        )
        assert fmt("message-context", "body", Syntax.YAML, metadata={"k": [1]}) == (
            "type: message-context\nmetadata:\n  k:\n  - 1\ncontent: body"
        )

    def test_message_context_metadata_must_be_a_mapping(self):
        with pytest.raises(PropValidationError) as exc_info:
            fmt("message-context", "x", metadata="k=v")
        assert exc_info.value.prop == "metadata"


class TestData:
    RECORDS = [{"name": "Ada", "age": 36}, {"name": "Linus", "lang": "C"}]

    def test_table_markdown_from_dict_records(self):
        result = fmt("table", records=self.RECORDS)
        assert result == (
            "| name | age | lang |\n"
            "| --- | --- | --- |\n"
            "| Ada | 36 |  |\n"
            "| Linus |  | C |\n\n"
        )

    def test_table_with_columns_and_list_records(self):
        result = fmt("table", records=[["a|b", 1]], columns=["Col", "N"], caption="T")
        assert result == "Table: T\n\n| Col | N |\n| --- | --- |\n| a\\|b | 1 |\n\n"

    def test_table_text_and_json(self):
        assert fmt("table", syntax=Syntax.TEXT, records=[{"a": 1, "b": True}]) == "a\tb\n1\ttrue\n\n"
        assert fmt("table", syntax=Syntax.JSON, records=[{"a": 1}]) == '[\n  {\n    "a": "1"\n  }\n]'

    def test_table_html_escapes_cells(self):
        result = fmt("table", syntax=Syntax.HTML, records=[{"h": "<b>"}])
        assert "<th>h</th>" in result
        assert "<td>&lt;b&gt;</td>" in result

    def test_table_records_must_be_a_list(self):
        with pytest.raises(PropValidationError) as exc_info:
            fmt("table", records={"a": 1})
        assert exc_info.value.prop == "records"

    def test_table_without_records_passes_children_through(self):
        assert fmt("table", "| x |") == "| x |"

    def test_object(self):
        data = {"k": [1, 2], "t": (3,)}
        assert fmt("obj", data=data, syntax=Syntax.YAML) == "k:\n- 1\n- 2\nt:\n- 3"
        assert fmt("object", data=data) == '```json\n{\n  "k": [\n    1,\n    2\n  ],\n  "t": [\n    3\n  ]\n}\n```\n\n'
        assert fmt("obj", data={"a": "<"}, syntax=Syntax.XML) == "<object><a>&lt;</a></object>"

    def test_object_requires_data(self):
        with pytest.raises(PropValidationError):
            fmt("obj")


class TestExamples:
    def test_example_set_prose(self):
        body = "# Example\n\nA\n\n"
        assert fmt("example-set", body, title="Samples", description="Two cases") == (
            "## Samples\n\nTwo cases\n\n# Example\n\nA\n\n"
        )
        assert fmt("examples", "Example\n\nA\n\n", Syntax.TEXT, title="S") == "EXAMPLE SET: S\n\nExample\n\nA\n\n"
        assert fmt("example-set", "") == ""

    def test_example_set_markup_and_serializers(self):
        html = fmt("example-set", "<p>x</p>\n", Syntax.HTML, title="S", description="d")
        assert html == '<div class="example-set"><h3>S</h3><p>d</p><p>x</p>\n</div>\n'
        xml = fmt("example-set", "<example>x</example>", Syntax.XML, title="S", description="a<b")
        assert xml == '<example-set title="S"><description>a&lt;b</description><example>x</example></example-set>'
        assert fmt("example-set", "x", Syntax.JSON, title="S") == (
            '{\n  "type": "example-set",\n  "title": "S",\n  "content": "x"\n}'
        )

    def test_example_set_limit_counts_rendered_examples(self):
        node = create_node(
            "example-set",
            {"limit": 2},
            create_node("example", {"if": "false"}, "hidden"),
            "  ",
            create_node("example", {"for": "e in examples"}, "{{e}}"),
        )
        result = render_document(node, {"examples": ["a", "b", "c"]})
        assert result == "# Example\n\na\n\n# Example\n\nb\n"

    def test_example_set_rejects_negative_limit(self):
        node = create_node("example-set", {"limit": -1}, create_node("example", None, "a"))
        with pytest.raises(PropValidationError) as exc_info:
            render_document(node, {})
        assert exc_info.value.prop == "limit"

    def test_example_input_and_output_prose(self):
        assert fmt("example-input", ' {"q": 1} ', format="json") == '**Input:**\n\n```json\n{"q": 1}\n```\n\n'
        assert fmt("example-output", "42", inline=True) == "**Output:** `42`\n\n"
        assert fmt("input", "hi", label="Question", inline=True) == "**Question:** `hi`\n\n"
        assert fmt("example-input", "hi", Syntax.TEXT) == "INPUT:\n------\nhi\n\n"
        assert fmt("output", "42", Syntax.TEXT, inline=True) == "OUTPUT: 42\n\n"

    def test_example_input_and_output_markup(self):
        assert fmt("example-input", "a &lt; b", Syntax.HTML, format="py") == (
            '<div class="example-input"><h4>Input</h4><pre><code class="language-python">a &lt; b</code></pre></div>\n'
        )
        assert fmt("example-output", "42", Syntax.HTML, inline=True) == (
            '<div class="example-output"><strong>Output:</strong> <code>42</code></div>\n'
        )
        assert fmt("example-input", "hi", Syntax.XML, label="Q", format="yml") == (
            '<example-input label="Q" format="yaml">hi</example-input>'
        )
        assert fmt("example-output", "42", Syntax.JSON) == (
            '{\n  "type": "example-output",\n  "label": "Output",\n  "content": "42"\n}'
        )


class TestTools:
    def test_tool_request_markdown(self):
        result = fmt(
            "tool-request",
            "Looking up weather",
            tool="get_weather",
            requestId="r1",
            parameters={"city": "Paris", "days": 2},
        )
        assert result == (
            "**Tool Request**\n\n"
            "- **Tool**: get_weather\n"
            "- **Request ID**: r1\n"
            "- **Parameters**:\n"
            '  - city: "Paris"\n'
            "  - days: 2\n\n"
            "**Details**: Looking up weather\n\n"
        )

    def test_tool_response_prose(self):
        assert fmt("tool-response", syntax=Syntax.TEXT, tool="get_weather", data={"temp": 21}) == (
            "[Tool Response]\nTool: get_weather\nStatus: success\nData:\n  temp: 21\n\n"
        )
        assert fmt("tool-response", tool="t", status="error", error="timeout") == (
            "**Tool Response**\n\n- **Tool**: t\n- **Status**: error\n- **Error**: timeout\n\n"
        )

    def test_tool_request_html_escapes_prop_values(self):
        result = fmt("tool-request", "", Syntax.HTML, tool="a<b", parameters={"q": "x&y"})
        assert result == (
            '<div class="tool-request"><h4>Tool Request</h4><ul><li><strong>Tool:</strong> a&lt;b</li>'
            "<li><strong>Parameters:</strong><ul><li>q: &quot;x&amp;y&quot;</li></ul></li></ul></div>\n"
        )

    def test_tool_serializers(self):
        xml = fmt("tool-request", "why", Syntax.XML, tool="search", requestId="r1", parameters={"q": "cats", "n": 3})
        assert xml == (
            '<tool-request tool="search" request-id="r1"><parameters><q>cats</q><n>3</n></parameters>'
            "<details>why</details></tool-request>"
        )
        assert fmt("tool-response", "", Syntax.XML, tool="search", status="pending") == (
            '<tool-response tool="search" status="pending"></tool-response>'
        )
        assert fmt("tool-result", "done", Syntax.JSON, tool="s", data=[1, 2]) == (
            '{\n  "type": "tool-response",\n  "tool": "s",\n  "status": "success",\n'
            '  "data": [\n    1,\n    2\n  ],\n  "content": "done"\n}'
        )

    @pytest.mark.parametrize(
        "tag,props,prop",
        [
            ("tool-request", {}, "tool"),
            ("tool-request", {"tool": "t", "parameters": [1]}, "parameters"),
            ("tool-response", {"tool": "t", "status": "weird"}, "status"),
        ],
    )
    def test_tool_prop_validation(self, tag, props, prop):
        with pytest.raises(PropValidationError) as exc_info:
            fmt(tag, "", **props)
        assert exc_info.value.prop == prop


class TestWebpage:
    def test_markdown_and_text(self):
        assert fmt("webpage", " Excerpt ", url="https://ex.com", title="Ex", selector="main", extractText=True) == (
            "[Ex](https://ex.com) (Selector: `main`, Text Only)\n\nExcerpt\n\n"
        )
        assert fmt("webpage", url="https://ex.com") == "[https://ex.com](https://ex.com)\n\n"
        assert fmt("webpage", "x", Syntax.TEXT, url="u", title="T", selector="main") == "T <u> (Selector: main)\n\nx\n\n"

    def test_markup_and_serializers(self):
        assert fmt("webpage", "x", Syntax.HTML, url="https://e.com/?a=1&b=2", title="T") == (
            '<div class="webpage"><h3><a href="https://e.com/?a=1&amp;b=2">T</a></h3>'
            '<div class="webpage-content">x</div></div>\n'
        )
        assert fmt("webpage", "", Syntax.XML, url="u", extractText=True) == '<webpage url="u" extract-text="true" />'
        assert fmt("web", "x", Syntax.JSON, url="u", title="T") == (
            '{\n  "type": "webpage",\n  "url": "u",\n  "title": "T",\n  "content": "x"\n}'
        )

    def test_url_is_required(self):
        with pytest.raises(PropValidationError) as exc_info:
            fmt("webpage", "x")
        assert exc_info.value.prop == "url"
