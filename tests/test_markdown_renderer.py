from helpers import make_single_question
from quiz_engine.core.markdown_renderer import MarkdownRenderer


def test_markdown_outside_math_is_rendered():
    html = MarkdownRenderer().render_fragment("Simplify $a*b*c$ for *x*.")
    assert "$a*b*c$" in html
    assert "<em>x</em>" in html


def test_math_is_escaped_but_not_rewritten():
    renderer = MarkdownRenderer()
    assert "$x &lt; y$" in renderer.render_fragment("Is $x < y$?")
    assert "$$a \\, b$$" in renderer.render_fragment("$$a \\, b$$")


def test_escaped_dollars_are_plain_text():
    assert "costs $5 and $6" in MarkdownRenderer().render_fragment("costs \\$5 and \\$6")


def test_empty_text_gets_placeholder():
    assert MarkdownRenderer().render_fragment("   ") == "<p><em>No content provided.</em></p>"


def test_options_render_inline_in_key_order():
    rendered = MarkdownRenderer().render_options({"B": "*bold*", "A": "$x_1$"})
    assert list(rendered) == ["B", "A"]
    assert rendered == {"B": "<em>bold</em>", "A": "$x_1$"}


def test_render_question():
    renderer = MarkdownRenderer()
    rendered = renderer.render_question(make_single_question())
    assert rendered["question_html"].startswith("<p>")
    assert rendered["explanation_html"].startswith("<p>")
    assert renderer.render_question(make_single_question(explanation=None))["explanation_html"] is None
