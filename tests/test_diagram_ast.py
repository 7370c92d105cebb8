"""Tests for the class-diagram AST model and its nested-tree export."""

import json

import pytest

from classdiagram.diagram_ast import (
    AST_SCHEMA_VERSION,
    ClassKind,
    ClassLike,
    Nodes,
    ast_to_markdown_tables,
    from_json,
    from_tree,
    load_ast,
    save_ast,
    to_json,
    to_tree,
)
from classdiagram.errors import RelationCycleError, TreeFormatError
from classdiagram.parser import parse


def _registry() -> Nodes:
    nodes = Nodes.empty()
    shape = nodes.add(ClassLike("Shape", "geo", ClassKind.INTERFACE))
    base = nodes.add(ClassLike("Base", "geo", ClassKind.ABSTRACT_CLASS)).implements(shape)
    nodes.add(ClassLike("Circle", "geo/round")).extends(base)
    return nodes


class TestNodes:
    def test_add_returns_entity(self) -> None:
        nodes = Nodes.empty()
        entity = ClassLike("A")
        assert nodes.add(entity) is entity

    def test_search_and_last_on_empty(self) -> None:
        nodes = Nodes.empty()
        assert nodes.search_by_name("A") is None
        assert nodes.last() is None

    def test_search_returns_first_match(self) -> None:
        nodes = Nodes.empty()
        first = nodes.add(ClassLike("A", "one"))
        nodes.add(ClassLike("A", "two"))
        assert nodes.search_by_name("A") is first

    def test_last_is_most_recent(self) -> None:
        nodes = _registry()
        assert nodes.last().name == "Circle"

    def test_iteration_is_insertion_order(self) -> None:
        assert [e.name for e in _registry()] == ["Shape", "Base", "Circle"]
        assert len(_registry()) == 3

    def test_relation_methods_chain(self) -> None:
        a, b, i = ClassLike("A"), ClassLike("B"), ClassLike("I", kind=ClassKind.INTERFACE)
        assert a.extends(b).implements(i) is a
        assert a.parents == [b] and a.interfaces == [i]

    def test_repr_survives_cycles(self) -> None:
        a, b = ClassLike("A"), ClassLike("B")
        a.extends(b)
        b.extends(a)
        assert "parents=['B']" in repr(a)


class TestToTree:
    def test_records_are_tagged_by_kind(self) -> None:
        tree = to_tree(_registry())
        assert [next(iter(r)) for r in tree] == ["interface", "abstract class", "class"]

    def test_subtrees_are_expanded_inline(self) -> None:
        circle = to_tree(_registry())[2]["class"]
        base = circle["Parents"][0]["abstract class"]
        assert circle["Package"] == "geo/round"
        assert base["Name"] == "Base"
        assert base["Interfaces"][0]["interface"]["Name"] == "Shape"

    def test_shared_parent_is_expanded_each_time(self) -> None:
        nodes = parse("interface I\nclass A implements I\nclass B implements I\nclass C extends A\nC extends B")
        c = to_tree(nodes)[3]["class"]
        assert [p["class"]["Interfaces"][0]["interface"]["Name"] for p in c["Parents"]] == ["I", "I"]

    def test_cycle_is_reported(self) -> None:
        nodes = parse("class A\nclass B\nA <|-- B\nB <|-- A")
        with pytest.raises(RelationCycleError, match="Relation cycle"):
            to_tree(nodes)

    def test_self_reference_is_a_cycle(self) -> None:
        nodes = Nodes.empty()
        a = nodes.add(ClassLike("A"))
        a.extends(a)
        with pytest.raises(RelationCycleError):
            nodes.to_tree()


class TestFromTree:
    def test_round_trip(self) -> None:
        nodes = parse(
            "package P {\n"
            "  interface I\n"
            "  abstract class Base implements I\n"
            "}\n"
            "class A extends Base\n"
            "interface J\n"
            "A ..|> J"
        )
        tree = to_tree(nodes)
        rebuilt = from_tree(tree)
        assert to_tree(rebuilt) == tree
        assert [(e.name, e.package, e.kind) for e in rebuilt] == [
            (e.name, e.package, e.kind) for e in nodes
        ]

    def test_relations_bind_to_registry_entities(self) -> None:
        rebuilt = from_tree(to_tree(_registry()))
        shape, base, circle = rebuilt
        assert circle.parents[0] is base
        assert base.interfaces[0] is shape

    def test_unknown_relation_target_is_rebuilt_detached(self) -> None:
        record = {'class': {
            'Name': 'A', 'Package': '',
            'Parents': [{'class': {'Name': 'Ghost', 'Package': 'x', 'Parents': [], 'Interfaces': []}}],
            'Interfaces': [],
        }}
        rebuilt = from_tree([record])
        assert rebuilt.names() == ["A"]
        assert rebuilt[0].parents[0].name == "Ghost"
        assert rebuilt[0].parents[0].package == "x"

    @pytest.mark.parametrize(
        "records",
        [
            {"class": {}},
            [{"enum": {"Name": "A"}}],
            [{"class": {"Package": ""}}],
            [{"class": {"Name": "A"}, "interface": {"Name": "B"}}],
            [{"class": {"Name": "A", "Parents": "B"}}],
        ],
    )
    def test_malformed_tree(self, records) -> None:
        with pytest.raises(TreeFormatError):
            from_tree(records)


class TestJson:
    def test_to_json_has_schema_version(self) -> None:
        data = to_json(_registry())
        assert data["schema_version"] == AST_SCHEMA_VERSION
        assert len(data["entities"]) == 3

    def test_from_json_without_entities(self) -> None:
        assert len(from_json({})) == 0

    def test_save_and_load(self, tmp_path) -> None:
        path = tmp_path / "out" / "diagram.ast.json"
        save_ast(_registry(), str(path))
        assert json.loads(path.read_text(encoding="utf-8"))["schema_version"] == AST_SCHEMA_VERSION
        assert to_tree(load_ast(str(path))) == to_tree(_registry())


class TestMarkdown:
    def test_table_rows(self) -> None:
        md = ast_to_markdown_tables(_registry(), source_name="shapes")
        assert md.startswith("#### Class Diagram: shapes")
        assert "| Circle | class | geo/round | Base |  |" in md
        assert "| Base | abstract class | geo |  | Shape |" in md

    def test_empty_registry(self) -> None:
        assert "_No class-like entities._" in ast_to_markdown_tables(Nodes.empty())

    def test_pipes_are_escaped(self) -> None:
        nodes = Nodes.empty()
        nodes.add(ClassLike("A|B"))
        assert "A\\|B" in ast_to_markdown_tables(nodes)
