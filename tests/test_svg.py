from trakt_graph.services.svg import Group
from trakt_graph.services.svg import Rect
from trakt_graph.services.svg import Style
from trakt_graph.services.svg import Text
from trakt_graph.services.svg import TSpan
from trakt_graph.services.svg import escape_markup
from trakt_graph.services.svg import format_value
from trakt_graph.services.svg import to_svg


def test_escape_markup_replaces_reserved_characters() -> None:
    assert escape_markup("<script>&\"'") == "&lt;script&gt;&amp;&quot;&apos;"
    assert escape_markup(None) == ""
    assert escape_markup(2024) == "2024"


def test_format_value_drops_trailing_zeros() -> None:
    assert format_value(2.0) == "2"
    assert format_value(1.234) == "1.23"
    assert format_value(0.1) == "0.1"
    assert format_value(14) == "14"


def test_element_serializes_attribute_names_in_order() -> None:
    rect = Rect(class_="cell", x=1, y=None, stroke_width=1.5, data_date="2024-01-01")

    assert rect.serialize() == '<rect class="cell" x="1" stroke-width="1.5" data-date="2024-01-01"/>'


def test_element_escapes_text_and_attributes() -> None:
    text = Text(TSpan(text="b & c"), text="a<", fill='"red"')

    assert to_svg(text) == '<text fill="&quot;red&quot;">a&lt;<tspan>b &amp; c</tspan></text>'


def test_style_keeps_css_unescaped() -> None:
    assert Style(".a > .b { x: 1; }").serialize() == (
        '<style type="text/css"><![CDATA[.a > .b { x: 1; }]]></style>'
    )


def test_find_all_filters_by_tag_and_class() -> None:
    tree = Group(
        Rect(class_="cell streak-cell"),
        Group(Rect(class_="cell"), Text(text="label")),
        class_="grid",
    )

    assert len(tree.find_all("rect")) == 2
    assert len(tree.find_all("rect", "streak-cell")) == 1
    assert len(tree.find_all(class_name="grid")) == 1
    assert tree.all_text() == "label"
