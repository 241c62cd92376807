from __future__ import annotations

from htmlpress.normalizer import close_void_elements, normalize_attributes


def test_normalize_attributes_collapses_whitespace() -> None:
    assert normalize_attributes('<a\nhref="x"   class="y"  >') == '<a href="x" class="y">'


def test_normalize_attributes_keeps_self_closing_slash() -> None:
    assert normalize_attributes('<img  src="a"  />') == '<img src="a"/>'


def test_normalize_attributes_leaves_text_and_scripts_alone() -> None:
    text = '<p>a   b</p><script>if (a  <b) { x  = 1 }</script>'
    assert normalize_attributes(text) == text


def test_close_void_elements() -> None:
    source = '<br><hr class="x"><colgroup><img src="a"/><INPUT type="text">'
    expected = '<br/><hr class="x"/><colgroup><img src="a"/><INPUT type="text"/>'
    assert close_void_elements(source) == expected


def test_close_void_elements_covers_inline_svg_shapes() -> None:
    assert close_void_elements('<path d="M0 0"></path>') == '<path d="M0 0"/></path>'
