"""Small typed SVG document model.

Drawing primitives are collected into a tree and serialized once with
`to_svg`, so renderers can be tested on the tree instead of the markup.
"""

from collections.abc import Iterator
from xml.sax.saxutils import escape


SVG_NAMESPACE = "http://www.w3.org/2000/svg"
_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_markup(value: object) -> str:
    """Escape `< > & ' "` for use in SVG text and attribute values."""

    if value is None:
        return ""
    return escape(str(value), _ENTITIES)


def format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{round(value, 2):g}"
    return str(value)


def _attribute_name(key: str) -> str:
    return key.rstrip("_").replace("_", "-")


class Element:
    """SVG node with ordered attributes, optional text and child nodes.

    Keyword arguments become attributes: a trailing underscore is dropped
    (`class_`) and other underscores turn into dashes (`font_size`).
    Attributes set to None are left out.
    """

    tag = "g"

    def __init__(self, *children: "Element", text: str | None = None, **attrs: object) -> None:
        self.children: list[Element] = list(children)
        self.text = text
        self.attrs: dict[str, object] = {
            _attribute_name(key): value for key, value in attrs.items() if value is not None
        }

    def add(self, child: "Element") -> "Element":
        self.children.append(child)
        return child

    def extend(self, children: "list[Element]") -> None:
        self.children.extend(children)

    @property
    def classes(self) -> list[str]:
        return str(self.attrs.get("class", "")).split()

    def iter(self, tag: str | None = None) -> Iterator["Element"]:
        """Depth-first walk over this node and its descendants."""

        if tag is None or self.tag == tag:
            yield self
        for child in self.children:
            yield from child.iter(tag)

    def find_all(self, tag: str | None = None, class_name: str | None = None) -> list["Element"]:
        return [
            node
            for node in self.iter(tag)
            if class_name is None or class_name in node.classes
        ]

    def all_text(self) -> str:
        parts = [self.text or ""]
        parts.extend(child.all_text() for child in self.children)
        return "".join(parts)

    def serialize_body(self) -> str:
        return escape_markup(self.text) + "".join(child.serialize() for child in self.children)

    def serialize(self) -> str:
        attributes = "".join(
            f' {name}="{escape_markup(format_value(value))}"'
            for name, value in self.attrs.items()
        )
        body = self.serialize_body()
        if not body:
            return f"<{self.tag}{attributes}/>"
        return f"<{self.tag}{attributes}>{body}</{self.tag}>"


class Svg(Element):
    tag = "svg"


class Defs(Element):
    tag = "defs"


class Group(Element):
    tag = "g"


class Anchor(Element):
    tag = "a"


class Rect(Element):
    tag = "rect"


class Circle(Element):
    tag = "circle"


class Path(Element):
    tag = "path"


class Image(Element):
    tag = "image"


class Text(Element):
    tag = "text"


class TSpan(Element):
    tag = "tspan"


class ClipPath(Element):
    tag = "clipPath"


class Filter(Element):
    tag = "filter"


class DropShadow(Element):
    tag = "feDropShadow"


class LinearGradient(Element):
    tag = "linearGradient"


class Stop(Element):
    tag = "stop"


class Style(Element):
    """Stylesheet written as CDATA, its content is not escaped."""

    tag = "style"

    def __init__(self, css: str) -> None:
        super().__init__(type="text/css")
        self.css = css

    def serialize_body(self) -> str:
        return f"<![CDATA[{self.css}]]>"


def to_svg(root: Element) -> str:
    return root.serialize()
