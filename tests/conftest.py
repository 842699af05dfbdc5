from pathlib import Path

import pytest

from _xpathlet.parser import configured_loaders
from xpathlet import parse_tree


FILES_PATH = Path(__file__).parent / "files"

configured_loaders_default = tuple(configured_loaders)


@pytest.fixture(autouse=True)
def _configured_loaders():
    yield
    configured_loaders.clear()
    configured_loaders.extend(configured_loaders_default)


@pytest.fixture
def files_path():
    return FILES_PATH


@pytest.fixture
def actors():
    return parse_tree(
        """\
<actors xmlns:fictional="http://characters.example.com"
        xmlns="http://people.example.com">
    <actor>
        <name>John Cleese</name>
        <fictional:character>Lancelot</fictional:character>
        <fictional:character>Archie Leach</fictional:character>
    </actor>
    <actor>
        <name>Eric Idle</name>
        <fictional:character>Sir Robin</fictional:character>
        <fictional:character>Gunther</fictional:character>
        <fictional:character>Commander Clement</fictional:character>
    </actor>
</actors>
"""
    )


@pytest.fixture
def country_data():
    return parse_tree(FILES_PATH / "country_data.xml")


@pytest.fixture
def mets():
    return parse_tree(FILES_PATH / "mets.xml")


@pytest.fixture
def queries_sample():
    return parse_tree(
        """\
            <root>
                <node n="1"/>
                <node n="2"/>
                <node/>
                <node n="3"/>
            </root>
        """
    )
