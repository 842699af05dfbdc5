import pytest

from _xpathlet.exceptions import NamespaceError, XPathParsingError
from _xpathlet.xpath import parse
from _xpathlet.xpath.ast import (
    AttributePredicate,
    ChildByTag,
    ChildPredicate,
    DescendantOrSelfAxis,
    ParentAxis,
    PathExpression,
    PositionPredicate,
    Self,
    TextPredicate,
    Wildcard,
)


METS_NAMESPACE = "http://www.loc.gov/METS/"
PEOPLE_NAMESPACE = "http://people.example.com"
XLINK_NAMESPACE = "http://www.w3.org/1999/xlink"


@pytest.mark.parametrize(
    ("expression", "steps"),
    (
        (".", [Self()]),
        ("..", [ParentAxis()]),
        ("country", [ChildByTag("country")]),
        ("*", [Wildcard()]),
        (
            "./country/neighbor",
            [Self(), ChildByTag("country"), ChildByTag("neighbor")],
        ),
        (".//neighbor", [Self(), DescendantOrSelfAxis(), ChildByTag("neighbor")]),
        ("//neighbor", [DescendantOrSelfAxis(), ChildByTag("neighbor")]),
        ("country//*", [ChildByTag("country"), DescendantOrSelfAxis(), Wildcard()]),
        ("country/..", [ChildByTag("country"), ParentAxis()]),
        ("neighbor[@name]", [ChildByTag("neighbor"), AttributePredicate("name")]),
        (
            "neighbor[@name='Austria']",
            [ChildByTag("neighbor"), AttributePredicate("name", "Austria")],
        ),
        (
            'neighbor[@name="Costa Rica"]',
            [ChildByTag("neighbor"), AttributePredicate("name", "Costa Rica")],
        ),
        (
            "neighbor[ @name = 'Austria' ]",
            [ChildByTag("neighbor"), AttributePredicate("name", "Austria")],
        ),
        ("country[rank]", [ChildByTag("country"), ChildPredicate("rank")]),
        (
            "country[rank='68']",
            [ChildByTag("country"), ChildPredicate("rank", "68")],
        ),
        ("year[.='2011']", [ChildByTag("year"), TextPredicate("2011")]),
        ("year[.='']", [ChildByTag("year"), TextPredicate("")]),
        ("neighbor[1]", [ChildByTag("neighbor"), PositionPredicate(1)]),
        ("neighbor[last()]", [ChildByTag("neighbor"), PositionPredicate(-1)]),
        ("neighbor[last()-1]", [ChildByTag("neighbor"), PositionPredicate(-2)]),
        ("neighbor[last()-0]", [ChildByTag("neighbor"), PositionPredicate(-1)]),
        (
            "country[@name][rank][2]",
            [
                ChildByTag("country"),
                AttributePredicate("name"),
                ChildPredicate("rank"),
                PositionPredicate(2),
            ],
        ),
        (
            "{http://www.loc.gov/METS/}agent",
            [ChildByTag("{http://www.loc.gov/METS/}agent")],
        ),
        ("{*}agent", [ChildByTag("{*}agent")]),
        ("{}agent", [ChildByTag("{}agent")]),
        ("..[@ROLE]", [ParentAxis(), AttributePredicate("ROLE")]),
        (
            "*[@{http://www.w3.org/1999/xlink}href]",
            [Wildcard(), AttributePredicate("{http://www.w3.org/1999/xlink}href")],
        ),
    ),
)
def test_parse(expression, steps):
    assert parse(expression).steps == tuple(steps)


def test_parse_is_cached():
    assert parse("./country/neighbor") is parse("./country/neighbor")


@pytest.mark.parametrize(
    ("expression", "string"),
    (
        ("", " 0: Missing location path."),
        ("/data", r" 0 \(`/data`\): Absolute location paths aren't supported"),
        ("/", r" 1: Missing location step\."),
        ("country/", r" 8: Missing location step\."),
        ("country//", r" 9: Missing location step\."),
        (".//.", r" 1 \(`//\.`\): `//` must be followed by a name test\."),
        (".//..", r" 1 \(`//\.\.`\): `//` must be followed by a name test\."),
        ("@name", r" 0 \(`@name`\): Attributes can only be tested in predicates\."),
        ("[@name]", r" 0 \(`\[@name\]`\): Unrecognized node test\."),
        (":country", r" 0 \(`:country`\): Unrecognized node test\."),
        ("country neighbor", r" 8 \(`neighbor`\): Unrecognized expression\."),
        ("*.", r" 1 \(`\.`\): Unrecognized expression\."),
        ("neighbor[]", r" 8 \(`\[\]`\): Empty predicate\."),
        ("neighbor[@name", r" 8 \(`\[@name`\): `\[` is never closed\."),
        ("neighbor]", r" 8 \(`\]`\): Closing `\]` has no opening counterpart\."),
        (
            "neighbor[last())",
            r" 15 \(`\)`\): Closing `\)` doesn't match opening `\[` at position 8\.",
        ),
        ("neighbor[0]", r" 9 \(`0\]`\): Positions start at 1\."),
        ("neighbor[last()-]", r" 9 .*: Unrecognized predicate expression\."),
        ("neighbor[position()=1]", r" 9 .*: Unsupported function: `position`"),
        ("country[rank=68]", r" 8 .*: Unrecognized predicate expression\."),
        ("country[rank/year]", r" 8 .*: Unrecognized predicate expression\."),
        ("country[(1)]", r" 8 .*: Unrecognized predicate expression\."),
        ("country[*]", r" 8 .*: Unrecognized predicate expression\."),
        ("country[@*]", r" 8 .*: Unrecognized predicate expression\."),
        ("a[b[c]]", r" 2 .*: Unrecognized predicate expression\."),
        ("neighbor[last()+1]", r" 15 \(`\+1\]`\): Unrecognized token\."),
    ),
)
def test_invalid_expressions(expression, string):
    with pytest.raises(XPathParsingError, match=string):
        parse(expression)


def test_unknown_prefix():
    with pytest.raises(
        NamespaceError,
        match=r" 0 \(`foo:bar`\): The namespace prefix `foo` is unknown\.",
    ) as excinfo:
        parse("foo:bar")
    assert excinfo.value.prefix == "foo"

    with pytest.raises(NamespaceError, match=r" 8 .*: The namespace prefix `mods`"):
        parse("country[mods:name]")


def test_prefixes_are_resolved():
    namespaces = {"mets": METS_NAMESPACE}

    assert parse("mets:agent", namespaces) == parse(f"{{{METS_NAMESPACE}}}agent")
    assert parse("mets:*", namespaces).steps == (ChildByTag(f"{{{METS_NAMESPACE}}}*"),)
    assert parse("mets:div[mets:fptr]", namespaces).steps == (
        ChildByTag(f"{{{METS_NAMESPACE}}}div"),
        ChildPredicate(f"{{{METS_NAMESPACE}}}fptr"),
    )
    assert parse("xml:space").steps == (
        ChildByTag("{http://www.w3.org/XML/1998/namespace}space"),
    )


@pytest.mark.parametrize("prefix", ("", None))
def test_default_namespace(prefix):
    assert parse("actor/name", {prefix: PEOPLE_NAMESPACE}).steps == (
        ChildByTag(f"{{{PEOPLE_NAMESPACE}}}actor"),
        ChildByTag(f"{{{PEOPLE_NAMESPACE}}}name"),
    )
    # names in Clark notation and wildcards are not affected
    assert parse("{}actor/*", {prefix: PEOPLE_NAMESPACE}).steps == (
        ChildByTag("{}actor"),
        Wildcard(),
    )


def test_aliased_namespaces():
    namespaces = {
        "m": METS_NAMESPACE,
        "mets": METS_NAMESPACE,
        "xml": "http://www.w3.org/XML/1998/namespace",
    }
    assert parse("m:agent/mets:name", namespaces) == parse(
        f"{{{METS_NAMESPACE}}}agent/{{{METS_NAMESPACE}}}name"
    )


@pytest.mark.parametrize(
    "namespaces",
    (
        {"xml": METS_NAMESPACE},
        {"": METS_NAMESPACE, None: PEOPLE_NAMESPACE},
    ),
)
def test_invalid_namespace_declarations(namespaces):
    with pytest.raises(XPathParsingError, match=r" 0 \(`mets:agent`\): ") as excinfo:
        parse("mets:agent", namespaces)
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_attribute_names_are_taken_literally():
    assert parse("*[@xlink:href]", {"xlink": XLINK_NAMESPACE}).steps == (
        Wildcard(),
        AttributePredicate("xlink:href"),
    )
    assert parse("*[@xlink:href='#']").steps == (
        Wildcard(),
        AttributePredicate("xlink:href", "#"),
    )


@pytest.mark.parametrize(
    "expression",
    (
        ".",
        "..",
        "./country/neighbor",
        ".//neighbor[2]",
        "//neighbor",
        "country//*",
        "country[@name='Panama']/neighbor[last()]",
        "neighbor[last()-1]",
        "*[.='2011']",
        "country[rank='68']/..",
        "{http://www.loc.gov/METS/}agent[@ROLE]",
        "a[@b=\"it's\"]",
        "country[@name][rank][1]",
    ),
)
def test_rendering(expression):
    assert str(parse(expression)) == expression


@pytest.mark.parametrize(
    ("expression", "namespaces"),
    (
        ("neighbor[ @name = \"Austria\" ]", None),
        ("mets:div[@TYPE='page']/mets:fptr", {"mets": METS_NAMESPACE}),
        ("actor[name='Eric Idle']", {"": PEOPLE_NAMESPACE}),
        ("./country//neighbor[last()-2]", None),
    ),
)
def test_rendering_is_reparseable(expression, namespaces):
    path = parse(expression, namespaces)
    rendered = str(path)
    assert parse(rendered) == path
    assert str(parse(rendered)) == rendered


def test_rendering_of_resolved_names():
    assert (
        str(parse("mets:agent[@ROLE]", {"mets": METS_NAMESPACE}))
        == "{http://www.loc.gov/METS/}agent[@ROLE]"
    )


def test_ast_nodes():
    assert PathExpression([Self(), ChildByTag("rank")]) == parse("./rank")
    assert ChildByTag("rank") != ChildPredicate("rank")
    assert hash(PositionPredicate(1)) == hash(PositionPredicate(1))
    assert str(PositionPredicate(-3)) == "[last()-2]"

    with pytest.raises(ValueError):  # noqa: PT011
        PositionPredicate(0)

    with pytest.raises(ValueError):  # noqa: PT011
        str(TextPredicate("'\""))
