import dataclasses

import pytest

from graph_repository.cli import main as cli
from graph_repository.errors import InvalidQueryParameter
from graph_repository.models import Direction, Order


def test_parse_sort():
    sort = cli.parse_sort(["name", "age:desc"])
    assert list(sort) == [Order("name"), Order("age", Direction.DESC)]
    assert not cli.parse_sort(None).is_sorted


def test_parse_params_decodes_json_values():
    assert cli.parse_params(["n=3", "name=bob", "tags=[\"a\"]"]) == {"n": 3, "name": "bob", "tags": ["a"]}
    with pytest.raises(ValueError):
        cli.parse_params(["novalue"])


def test_node_type_is_a_dataclass_named_after_label():
    Person = cli.node_type("Person")
    assert Person.__name__ == "Person"
    assert [f.name for f in dataclasses.fields(Person)] == ["id", "properties"]
    assert Person().properties == {}
    with pytest.raises(InvalidQueryParameter):
        cli.node_type("Bad Label")


def test_build_parser_page_command():
    args = cli.build_parser().parse_args(["page", "Person", "--page", "2", "--sort", "name"])
    assert args.func is cli.cmd_page
    assert args.page == 2
    assert args.size is None
    assert args.sort == ["name"]


def test_version(capsys):
    from graph_repository import __version__

    assert cli.cmd_version() == 0
    assert capsys.readouterr().out.strip() == __version__


def test_store_requires_password(monkeypatch):
    monkeypatch.setattr(cli.settings, "neo4j_password", None)
    with pytest.raises(RuntimeError):
        cli._store()
