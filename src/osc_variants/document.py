"""Generic scenario document tree.

The typed, schema-mapped records of a scenario live outside this package.
Resolution only needs a tree of elements with textual attributes, plus
walkers over it:

- iter_value_sites: every attribute leaf, parsed as a typed value, with an
  in-place replace-with-literal operation;
- iter_reference_sites: every CatalogReference, with an in-place
  replace-with-element operation;
- iter_declaring_elements: inline elements that open their own parameter
  scope.
"""

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Union

from lxml import etree

from .errors import DocumentError
from .values import BOOLEAN, DOUBLE, OS_TYPES, STRING, UNSIGNED_INT, OSType, ValueExpr, parse_value

# Elements whose subtrees are never walked for values or references
OPAQUE_TAGS = {"ParameterValueDistribution", "ParameterDeclarations"}

# Attribute types by attribute name; anything not listed is a string
ATTRIBUTE_TYPES: dict[str, OSType] = {
    **dict.fromkeys(
        [
            "maxSpeed", "maxAcceleration", "maxDeceleration", "maxAccelerationRate",
            "maxDecelerationRate", "mass", "maxSteering", "wheelDiameter", "trackWidth",
            "positionX", "positionZ", "width", "length", "height",
            "x", "y", "z", "h", "p", "r", "s", "t", "ds", "dt", "dx", "dy", "dz",
            "offset", "distance", "duration", "delay", "freespaceThreshold",
            "targetTolerance", "targetToleranceMaster", "animationDuration",
            "temperature", "atmosphericPressure", "visualRange", "intensity",
            "azimuth", "elevation", "frictionScaleFactor", "precipitationIntensity",
        ],
        DOUBLE,
    ),
    **dict.fromkeys(["numberOfTestRuns", "numberOfLanes"], UNSIGNED_INT),
    **dict.fromkeys(["closed", "alongRoute", "continuous", "freespace"], BOOLEAN),
}


@dataclass(eq=False)
class Element:
    """An XML element with string attributes."""

    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: list["Element"] = field(default_factory=list)
    text: str | None = None
    # Set on subtrees spliced in from a resolved catalog entry
    resolved: bool = False

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.attributes.get(name, default)

    def find(self, tag: str) -> "Element | None":
        for child in self.children:
            if child.tag == tag:
                return child
        return None

    def findall(self, tag: str) -> list["Element"]:
        return [child for child in self.children if child.tag == tag]

    def iter(self, tag: str | None = None) -> Iterator["Element"]:
        """Depth-first over this element and its descendants."""
        if tag is None or self.tag == tag:
            yield self
        for child in self.children:
            yield from child.iter(tag)

    def copy(self) -> "Element":
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        name = self.attributes.get("name")
        return f"<{self.tag} name={name!r}>" if name else f"<{self.tag}>"


def _from_lxml(node: etree._Element) -> Element:
    element = Element(
        tag=etree.QName(node).localname,
        attributes={str(k): str(v) for k, v in node.attrib.items()},
        text=node.text.strip() if node.text and node.text.strip() else None,
    )
    for child in node:
        if isinstance(child.tag, str):
            element.children.append(_from_lxml(child))
    return element


def _to_lxml(element: Element) -> etree._Element:
    node = etree.Element(element.tag, element.attributes)
    if element.text:
        node.text = element.text
    for child in element.children:
        node.append(_to_lxml(child))
    return node


def parse_xml(source: Union[str, bytes]) -> Element:
    """Parse XML text into an Element tree.

    Raises:
        etree.XMLSyntaxError: If the text is not well-formed
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    parser = etree.XMLParser(remove_comments=True, remove_blank_text=True)
    return _from_lxml(etree.fromstring(source, parser))


def parse_file(path: Union[str, Path]) -> Element:
    """Parse an .xosc file.

    Raises:
        DocumentError: If the file is missing or not well-formed
    """
    path = Path(path)
    if not path.is_file():
        raise DocumentError(f"Scenario file not found: {path}")
    try:
        return parse_xml(path.read_bytes())
    except etree.XMLSyntaxError as e:
        raise DocumentError(f"Failed to parse {path}: {e}") from e


def to_xml(element: Element, pretty: bool = True) -> str:
    return etree.tostring(
        _to_lxml(element), encoding="unicode", pretty_print=pretty
    )


def attribute_type(element: Element, attribute: str) -> OSType:
    """Type of an attribute leaf."""
    if element.tag == "ParameterDeclaration" and attribute == "value":
        return OS_TYPES.get(element.get("parameterType", "string"), STRING)
    return ATTRIBUTE_TYPES.get(attribute, STRING)


@dataclass
class ValueSite:
    """An attribute leaf with its parsed value."""

    element: Element
    attribute: str
    value: ValueExpr

    def replace(self, text: str) -> None:
        self.element.attributes[self.attribute] = text


@dataclass
class ReferenceSite:
    """A CatalogReference element and where it sits in the tree."""

    parent: Element
    index: int

    @property
    def element(self) -> Element:
        return self.parent.children[self.index]

    def replace(self, element: Element) -> None:
        self.parent.children[self.index] = element


def _walk(element: Element) -> Iterator[Element]:
    if element.resolved or element.tag in OPAQUE_TAGS:
        return
    yield element
    for child in element.children:
        yield from _walk(child)


def iter_value_sites(root: Element) -> Iterator[ValueSite]:
    """Every attribute leaf below root, skipping resolved and opaque subtrees."""
    for element in _walk(root):
        for attribute, raw in list(element.attributes.items()):
            yield ValueSite(element, attribute, parse_value(raw, attribute_type(element, attribute)))


def iter_reference_sites(root: Element) -> Iterator[ReferenceSite]:
    """Every CatalogReference below root (the root itself excluded)."""
    for element in _walk(root):
        for index, child in enumerate(element.children):
            if child.tag == "CatalogReference" and not child.resolved:
                yield ReferenceSite(element, index)


def iter_declaring_elements(root: Element) -> Iterator[Element]:
    """Outermost elements below root that carry their own ParameterDeclarations.

    An inline Story or Maneuver may declare parameters visible only inside
    it; the elements found here open a new scope. Their descendants are not
    searched.
    """
    for child in root.children:
        if child.resolved or child.tag in OPAQUE_TAGS:
            continue
        if child.find("ParameterDeclarations") is not None:
            yield child
        else:
            yield from iter_declaring_elements(child)
