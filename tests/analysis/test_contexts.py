"""Tests for service context assembly and the dependency graph query."""

from __future__ import annotations

from contextmap.analysis.contexts import (
    GENERAL_SERVICE,
    assemble_contexts,
    build_service_context,
    index_relationships,
    relationships_touching,
)
from contextmap.analysis.graph import service_dependency_graph
from contextmap.models import ApiEndpoint, ClassInfo, CodeModule, GraphEdge, Relationship

CONTROLLER = "/repo/users/UserController.java"
SERVICE = "/repo/users/UserService.java"
MODEL = "/repo/users/UserModel.java"
ORDERS = "/repo/orders/OrderService.java"
HELPER = "/repo/shared/StringUtil.java"


def _modules():
    return {
        CONTROLLER: CodeModule(
            file_path=CONTROLLER,
            language="java",
            endpoints=[ApiEndpoint("GET", "/users", "List users", CONTROLLER, 10)],
            classes=[ClassInfo("UserController", "", 5)],
        ),
        SERVICE: CodeModule(
            file_path=SERVICE,
            language="java",
            endpoints=[ApiEndpoint("GET", "/ignored", "", SERVICE, 3)],
            classes=[ClassInfo("UserService", "", 3)],
        ),
        MODEL: CodeModule(file_path=MODEL, language="java", classes=[ClassInfo("UserModel", "", 1)]),
        ORDERS: CodeModule(file_path=ORDERS, language="java", classes=[ClassInfo("OrderService", "", 1)]),
        HELPER: CodeModule(file_path=HELPER, language="java"),
    }


RELATIONSHIPS = [
    Relationship(CONTROLLER, SERVICE, "import", "com.shop.users.UserService"),
    Relationship(ORDERS, SERVICE, "references", "@Autowired UserService userService"),
    Relationship(HELPER, HELPER, "extends", "StringUtil : StringUtil"),
    Relationship(SERVICE, MODEL, "import", "com.shop.users.UserModel"),
]


def test_build_service_context_buckets_and_facts() -> None:
    modules = _modules()
    context = build_service_context("User", "/repo", [CONTROLLER, SERVICE, MODEL], modules, RELATIONSHIPS)

    assert context.root_path == "/repo"
    assert [module.file_path for module in context.controllers] == [CONTROLLER]
    assert [module.file_path for module in context.services] == [SERVICE]
    assert [module.file_path for module in context.models] == [MODEL]
    # Only controller files contribute endpoints.
    assert [endpoint.path for endpoint in context.api_endpoints] == ["/users"]
    assert [cls.name for cls in context.business_logic] == ["UserService"]
    assert [cls.name for cls in context.data_models] == ["UserModel"]


def test_context_relationships_touch_member_files() -> None:
    modules = _modules()
    context = build_service_context("User", "/repo", [CONTROLLER, SERVICE, MODEL], modules, RELATIONSHIPS)

    assert context.relationships == [RELATIONSHIPS[0], RELATIONSHIPS[1], RELATIONSHIPS[3]]
    members = set(context.member_files)
    for relationship in context.relationships:
        assert relationship.source_file in members or relationship.target_file in members


def test_relationships_touching_with_index_matches_scan() -> None:
    index = index_relationships(RELATIONSHIPS)
    for files in ([CONTROLLER], [HELPER], [SERVICE, ORDERS], []):
        assert relationships_touching(files, RELATIONSHIPS, index) == relationships_touching(files, RELATIONSHIPS)
    # A self edge is reported once.
    assert relationships_touching([HELPER], RELATIONSHIPS, index) == [RELATIONSHIPS[2]]


def test_unknown_category_files_land_in_utilities() -> None:
    modules = {"/repo/misc/main.go": CodeModule(file_path="/repo/misc/main.go", language="go")}
    context = build_service_context("misc", "/repo", ["/repo/misc/main.go"], modules, [])
    assert [module.file_path for module in context.utilities] == ["/repo/misc/main.go"]


def test_assemble_contexts_keeps_group_order_and_adds_general_last() -> None:
    modules = _modules()
    groups = {"User": [CONTROLLER, SERVICE, MODEL], "Order": [ORDERS]}

    contexts = assemble_contexts(groups, modules, RELATIONSHIPS, "/repo")

    assert [context.service_name for context in contexts] == ["User", "Order", GENERAL_SERVICE]
    assert [module.file_path for module in contexts[-1].utilities] == [HELPER]
    assert all(context.root_path == "/repo" for context in contexts)
    all_files = [path for context in contexts for path in context.member_files]
    assert sorted(all_files) == sorted(modules)


def test_service_dependency_graph_collects_edges_touching_service() -> None:
    graph = service_dependency_graph(RELATIONSHIPS, "User", "/repo")

    assert graph.nodes == {"UserController.java", "UserService.java", "OrderService.java", "UserModel.java"}
    assert graph.edges == [
        GraphEdge("UserController.java", "UserService.java", "import"),
        GraphEdge("OrderService.java", "UserService.java", "references"),
        GraphEdge("UserService.java", "UserModel.java", "import"),
    ]


def test_service_dependency_graph_unknown_service_is_empty() -> None:
    snapshot = list(RELATIONSHIPS)
    graph = service_dependency_graph(RELATIONSHIPS, "Nobody", "/repo")

    assert graph.nodes == set()
    assert graph.edges == []
    assert RELATIONSHIPS == snapshot
