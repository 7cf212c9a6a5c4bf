import pytest

from erd_gen.constants import ASSOCIATION, EMBED, MANY
from erd_gen.entities import EntityDescriptor, Field, Relationship
from erd_gen.formats.dbml import gen_dbml
from erd_gen.formats.dot import gen_dot
from erd_gen.formats.plantuml import gen_plantuml
from erd_gen.formats.quickdbd import gen_quickdbd
from erd_gen.formats.registry import get_format
from erd_gen.mapper import set_cluster
from erd_gen.pipeline import prepare_graph

USER = EntityDescriptor(
    id="User",
    source="users",
    fields=(Field("id", "integer", nullable=False), Field("name", "string")),
    relationships=(Relationship(kind=EMBED, target="Address", field="address"),),
)
POST = EntityDescriptor(
    id="Post",
    source="posts",
    fields=(Field("id", "integer"), Field("title", "string"), Field("user_id", "integer")),
    relationships=(Relationship(kind=ASSOCIATION, target="User", field="user"),),
)
ADDRESS = EntityDescriptor(id="Address", fields=(Field("street", "string"),))
GHOST_REF = EntityDescriptor(
    id="Comment",
    source="comments",
    fields=(Field("id", "integer"),),
    relationships=(Relationship(kind=ASSOCIATION, target="Ghost", field="ghost"),),
)


def _graph(format_id, entities, map_node=None):
    return prepare_graph(entities, get_format(format_id), map_node)


def _clustered(node):
    if node.key in ("User", "Address"):
        return set_cluster(node, "Accounts")
    if node.key == "Post":
        return set_cluster(node, "Content Team")
    return node


def test_dot_single_node_exact():
    user = EntityDescriptor(id="User", source="users", fields=USER.fields)
    assert gen_dot(_graph("dot", [user])) == (
        "digraph erd {\n"
        "  graph [rankdir=LR, ranksep=1.0]\n"
        '  node [shape=plaintext, fontname="Roboto Mono"]\n'
        '  edge [fontname="Roboto Mono"]\n'
        "\n"
        "  User [label=<\n"
        '    <TABLE BORDER="0" CELLBORDER="1" CELLSPACING="0" CELLPADDING="4">\n'
        '      <TR><TD COLSPAN="2" BGCOLOR="#dfe6ee"><B>User</B></TD></TR>\n'
        '      <TR><TD COLSPAN="2"><I>users</I></TD></TR>\n'
        '      <TR><TD ALIGN="LEFT">id</TD><TD ALIGN="LEFT">integer</TD></TR>\n'
        '      <TR><TD ALIGN="LEFT">name</TD><TD ALIGN="LEFT">string</TD></TR>\n'
        "    </TABLE>\n"
        "  >]\n"
        "}\n"
    )


def test_dot_edges_embeds_and_fonts():
    out = gen_dot(_graph("dot", [USER, POST, ADDRESS]), fontname="Fira Code")

    assert 'node [shape=plaintext, fontname="Fira Code"]' in out
    assert "  Post -> User [dir=both, arrowtail=crow, arrowhead=tee, label=user]" in out
    assert (
        "  User -> Address [dir=both, arrowtail=tee, arrowhead=tee, style=dashed, label=address]"
        in out
    )
    assert 'CELLPADDING="4" STYLE="dashed">' in out
    assert "<I>embedded</I>" in out


def test_dot_columns_option():
    graph = _graph("dot", [USER])

    no_fields = gen_dot(graph, columns=[])
    assert 'ALIGN="LEFT"' not in no_fields
    assert '<TD COLSPAN="1" BGCOLOR="#dfe6ee"><B>User</B></TD>' in no_fields

    types_only = gen_dot(graph, columns=["type"])
    assert '<TR><TD ALIGN="LEFT">integer</TD></TR>' in types_only
    assert ">id<" not in types_only

    with pytest.raises(ValueError):
        gen_dot(graph, columns=["name", "size"])


def test_dot_quotes_identifiers_and_escapes_labels():
    odd = EntityDescriptor(id="Blog.User<T>", source="users", fields=(Field("a&b", "map<string>"),))
    out = gen_dot(_graph("dot", [odd]))

    assert '  "Blog.User<T>" [label=<' in out
    assert "<B>Blog.User&lt;T&gt;</B>" in out
    assert '<TD ALIGN="LEFT">a&amp;b</TD><TD ALIGN="LEFT">map&lt;string&gt;</TD>' in out


def test_dot_clusters_become_subgraphs():
    out = gen_dot(_graph("dot", [USER, POST, ADDRESS], _clustered))

    assert out.count("subgraph ") == 2
    assert "  subgraph cluster_Accounts {\n    label=Accounts\n    Address [label=<" in out
    assert '  subgraph "cluster_Content Team" {\n    label="Content Team"\n' in out


def test_dot_omits_dangling_edges():
    out = gen_dot(_graph("dot", [GHOST_REF]))
    assert "Ghost" not in out
    assert "->" not in out


def test_plantuml_exact():
    out = gen_plantuml(_graph("puml", [USER, POST]))
    assert out == (
        "@startuml\n"
        "hide circle\n"
        "hide empty members\n"
        "skinparam linetype ortho\n"
        "skinparam shadowing false\n"
        'skinparam defaultFontName "Roboto Mono"\n'
        "\n"
        'entity "Post" as Post {\n'
        "  id : integer\n"
        "  title : string\n"
        "  user_id : integer\n"
        "}\n"
        "\n"
        'entity "User" as User {\n'
        "  * id : integer\n"
        "  name : string\n"
        "}\n"
        "\n"
        "Post }o--|| User : user\n"
        "@enduml\n"
    )


def test_plantuml_embeds_clusters_and_columns():
    graph = _graph("puml", [USER, POST, ADDRESS], _clustered)

    out = gen_plantuml(graph, columns=["name"])
    assert 'package "Accounts" {\n  entity "Address" as Address <<embedded>> {\n    street\n  }' in out
    assert 'package "Content Team" {' in out
    assert out.count("package ") == 2
    assert "User ||..|| Address : address" in out
    assert "  * id\n" in out

    header_only = gen_plantuml(graph, columns=[])
    assert 'entity "User" as User\n' in header_only
    assert "street" not in header_only


def test_plantuml_aliases_are_unique_bare_words():
    a = EntityDescriptor(id="Blog.User", source="a")
    b = EntityDescriptor(id="Blog-User", source="b")
    out = gen_plantuml(_graph("puml", [a, b]))

    assert 'entity "Blog-User" as Blog_User' in out
    assert 'entity "Blog.User" as Blog_User_2' in out


def test_dbml_exact():
    out = gen_dbml(_graph("dbml", [USER, POST, ADDRESS]))
    assert out == (
        "Table posts {\n"
        "  id integer\n"
        "  title string\n"
        "  user_id integer\n"
        "}\n"
        "\n"
        "Table users {\n"
        "  id integer\n"
        "  name string\n"
        "}\n"
        "\n"
        "Ref: posts.user_id > users.id\n"
    )


def test_dbml_table_groups_and_quoting():
    spaced = EntityDescriptor(
        id="Audit", source="audit log", fields=(Field("when", "timestamp with time zone"),)
    )
    out = gen_dbml(_graph("dbml", [USER, POST, ADDRESS, spaced], _clustered))

    assert 'Table "audit log" {\n  when "timestamp with time zone"\n}' in out
    assert out.endswith(
        "TableGroup Accounts {\n  users\n}\n\nTableGroup \"Content Team\" {\n  posts\n}\n"
    )
    assert out.count("TableGroup ") == 2


def test_dbml_cardinality_operators():
    owner_many = EntityDescriptor(
        id="Post",
        source="posts",
        relationships=(
            Relationship(kind=ASSOCIATION, target="Tag", cardinality=MANY, field="tags"),
        ),
    )
    has_many = EntityDescriptor(
        id="Tag",
        source="tags",
        relationships=(
            Relationship(kind=ASSOCIATION, target="Post", cardinality=MANY, owner=False, field="posts"),
        ),
    )
    out = gen_dbml(_graph("dbml", [owner_many, has_many]))

    assert "Ref: posts.tags_id <> tags.id" in out
    assert "Ref: tags.id < posts.tag_id" in out


def test_quickdbd_exact():
    out = gen_quickdbd(_graph("qdbd", [USER, POST, ADDRESS]))
    assert out == (
        "posts\n"
        "-\n"
        "id integer\n"
        "title string\n"
        "user_id integer FK >- users.id\n"
        "\n"
        "users\n"
        "-\n"
        "id integer\n"
        "name string\n"
    )


def test_quickdbd_ignores_clusters():
    out = gen_quickdbd(_graph("qdbd", [USER, POST, ADDRESS], _clustered))

    assert "Accounts" not in out
    assert "Content" not in out
    assert out == gen_quickdbd(_graph("qdbd", [USER, POST, ADDRESS]))


def test_quickdbd_adds_undeclared_reference_columns():
    post = EntityDescriptor(
        id="Post",
        source="posts",
        fields=(Field("id", "integer"),),
        relationships=(Relationship(kind=ASSOCIATION, target="User", field="author"),),
    )
    user = EntityDescriptor(id="User", source="users", fields=(Field("id", "bigint"),))
    out = gen_quickdbd(_graph("qdbd", [post, user]))

    assert "posts\n-\nid integer\nauthor_id bigint FK >- users.id\n" in out


def test_quickdbd_sanitizes_names():
    odd = EntityDescriptor(id="Odd", source="audit log", fields=(Field("when at", "{:array, :string}"),))
    assert gen_quickdbd(_graph("qdbd", [odd])) == "audit_log\n-\nwhen_at array,string\n"


def _has_many_user():
    user = EntityDescriptor(
        id="User",
        source="users",
        fields=(Field("id", "integer"),),
        relationships=(
            Relationship(kind=ASSOCIATION, target="Post", cardinality=MANY, owner=False, field="posts"),
            Relationship(kind=ASSOCIATION, target="Comment", cardinality=MANY, owner=False, field="comments"),
        ),
    )
    post = EntityDescriptor(
        id="Post", source="posts", fields=(Field("id", "integer"), Field("user_id", "integer"))
    )
    comment = EntityDescriptor(
        id="Comment", source="comments", fields=(Field("id", "integer"), Field("user_id", "integer"))
    )
    return user, post, comment


def test_quickdbd_has_many_keeps_one_row_per_column():
    out = gen_quickdbd(_graph("qdbd", list(_has_many_user())))

    assert out == (
        "comments\n"
        "-\n"
        "id integer\n"
        "user_id integer FK >- users.id\n"
        "\n"
        "posts\n"
        "-\n"
        "id integer\n"
        "user_id integer FK >- users.id\n"
        "\n"
        "users\n"
        "-\n"
        "id integer\n"
    )


def test_quickdbd_relationship_declared_on_both_sides_is_written_once():
    user, post, comment = _has_many_user()
    post = EntityDescriptor(
        id=post.id,
        source=post.source,
        fields=post.fields,
        relationships=(Relationship(kind=ASSOCIATION, target="User", field="user"),),
    )
    out = gen_quickdbd(_graph("qdbd", [user, post, comment]))

    posts_block = out.split("\n\n")[1]
    assert posts_block == "posts\n-\nid integer\nuser_id integer FK >- users.id"
