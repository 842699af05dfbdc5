from copy import deepcopy

import pytest

from xpathlet import Element, InvalidOperation, parse_tree


def test_append():
    root = Element("root")
    child = Element("child", tail="tail")
    root.append(child)

    assert len(root) == 1
    assert root[0] is child
    assert child in root
    assert Element("child") not in root
    assert child.parent is root
    assert root.parent is None


def test_append_invalid():
    root = Element("root", children=[Element("child")])

    with pytest.raises(InvalidOperation):
        Element("other").append(root[0])

    with pytest.raises(InvalidOperation):
        root.append(root)

    grandchild = Element("grandchild")
    root[0].append(grandchild)
    with pytest.raises(InvalidOperation):
        grandchild.append(root)


def test_append_ancestor():
    root = Element("root")
    child = Element("child")
    root.append(child)

    with pytest.raises(InvalidOperation):
        child.append(root)


def test_attributes():
    element = Element("neighbor", {"name": "Austria", "direction": "E"})

    assert element.get("name") == "Austria"
    assert element.get("rank") is None
    assert element.get("rank", "0") == "0"
    assert sorted(element.keys()) == ["direction", "name"]
    assert sorted(element.items()) == [("direction", "E"), ("name", "Austria")]


def test_attributes_are_copied():
    attributes = {"name": "Austria"}
    element = Element("neighbor", attributes)
    attributes["name"] = "Hungary"
    assert element.get("name") == "Austria"


def test_deepcopy():
    root = parse_tree("<root><a x='1'>text<b/>tail</a></root>")
    clone = deepcopy(root[0])

    assert clone is not root[0]
    assert clone.parent is None
    assert clone.tag == "a"
    assert clone.attributes == {"x": "1"}
    assert clone.attributes is not root[0].attributes
    assert clone.full_text == "texttail"
    assert clone[0] is not root[0][0]
    assert clone[0].parent is clone


def test_empty_tag():
    with pytest.raises(ValueError):  # noqa: PT011
        Element("")


def test_iter():
    root = parse_tree("<a><b><c/><d/></b><e><d/></e></a>")

    assert "".join(x.tag for x in root.iter()) == "abcded"
    assert "".join(x.tag for x in root.iter("*")) == "abcded"
    assert [x.parent.tag for x in root.iter("d")] == ["b", "e"]
    assert list(root.iter("a")) == [root]
    assert list(root.iter("f")) == []
    assert "".join(x.tag for x in root[0].iter()) == "bcd"

    # each call starts anew
    assert list(root.iter()) == list(root.iter())


def test_iter_with_namespaces():
    root = parse_tree("<a xmlns:x='urn:x'><x:b/><b/><x:c/></a>")

    assert [x.tag for x in root.iter("{urn:x}*")] == ["{urn:x}b", "{urn:x}c"]
    assert [x.tag for x in root.iter("{*}b")] == ["{urn:x}b", "b"]
    assert [x.tag for x in root.iter("{}*")] == ["a", "b"]


def test_iterate_ancestors():
    root = parse_tree("<a><b><c/></b></a>")
    assert [x.tag for x in root[0][0].iterate_ancestors()] == ["b", "a"]
    assert list(root.iterate_ancestors()) == []


def test_itertext():
    root = parse_tree("<p>a<b>b<c>c</c>d</b>e</p>")

    assert list(root.itertext()) == ["a", "b", "c", "d", "e"]
    assert root.full_text == "abcde"
    # an element's own tail is not part of its text
    assert root[0].full_text == "bcd"
    assert root[0][0].full_text == "c"


def test_itertext_without_text():
    root = Element("root", children=[Element("a"), Element("b", tail="tail")])
    assert root.full_text == "tail"
    assert root.findtext("a") == ""
    assert root[1].full_text == ""


def test_names():
    element = Element("{http://www.loc.gov/METS/}agent")
    assert element.local_name == "agent"
    assert element.namespace == "http://www.loc.gov/METS/"

    element = Element("country")
    assert element.local_name == "country"
    assert element.namespace is None


def test_repr():
    assert repr(Element("country")).startswith("<Element('country') [0x")


def test_sequence_protocol():
    root = parse_tree("<a><b/><c/><d/></a>")
    assert [x.tag for x in root] == ["b", "c", "d"]
    assert [x.tag for x in root[1:]] == ["c", "d"]
    assert root[-1].tag == "d"
    with pytest.raises(IndexError):
        root[3]
