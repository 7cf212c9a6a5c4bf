from erd_gen.constants import ASSOCIATION, EMBED
from erd_gen.graph import Edge, Graph, Node
from erd_gen.sorter import sort_graph


def _graph() -> Graph:
    return Graph(
        nodes=[
            Node(key="k3", name="Comment"),
            Node(key="k2", name="Address"),
            Node(key="k1", name="Address"),
            Node(key="k4", name="Blog"),
        ],
        edges=[
            Edge(source="k3", target="k1", kind=ASSOCIATION),
            Edge(source="k1", target="k4", kind=EMBED),
            Edge(source="k1", target="k4", kind=ASSOCIATION, label="x"),
            Edge(source="k1", target="k4", kind=ASSOCIATION, label="a"),
            Edge(source="k1", target="missing", kind=ASSOCIATION),
            Edge(source="k2", target="k3", kind=ASSOCIATION),
        ],
    )


def test_nodes_sort_by_name_then_key():
    graph = sort_graph(_graph())
    assert [n.key for n in graph.nodes] == ["k1", "k2", "k4", "k3"]


def test_edges_sort_by_endpoint_position_kind_label():
    graph = sort_graph(_graph())
    assert [(e.source, e.target, e.kind, e.label) for e in graph.edges] == [
        ("k1", "k4", ASSOCIATION, "a"),
        ("k1", "k4", ASSOCIATION, "x"),
        ("k1", "k4", EMBED, None),
        ("k1", "missing", ASSOCIATION, None),
        ("k2", "k3", ASSOCIATION, None),
        ("k3", "k1", ASSOCIATION, None),
    ]


def test_sort_is_stable_and_keeps_content():
    original = _graph()
    once = sort_graph(original)
    twice = sort_graph(once)

    assert twice == once
    assert set(once.nodes) == set(original.nodes)
    assert set(once.edges) == set(original.edges)
    assert once.clusters() == original.clusters()
