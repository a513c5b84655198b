"""End-to-end tests for the context analyzer."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from contextmap.analyzer import ContextAnalyzer, analyze_directory, combined_statistics
from contextmap.config import ContextMapConfig, load_config
from tests._fixtures.repo_builder import RepoBuilder

USER_SERVICE_FILES = {
    "User/user_controller.go": """
        package user

        import (
            "./user_service"
            "github.com/gin-gonic/gin"
        )

        func Register(r *gin.Engine) {
            r.GET("/users/:id", getUser)
        }

        func getUser(c *gin.Context) {}
    """,
    "User/user_service.go": """
        package user

        type UserService struct {
            cache map[string]User
        }

        func (s *UserService) Find(id string) User {
            return s.cache[id]
        }
    """,
    "User/user_model.go": """
        package user

        type User struct {
            ID   string `json:"id"`
            Name string `json:"name"`
        }
    """,
}


def test_analyze_directory_builds_user_service_context(repo_builder: RepoBuilder) -> None:
    repo_builder.write(USER_SERVICE_FILES)

    result = repo_builder.analyze()

    assert [context.service_name for context in result.contexts] == ["User"]
    context = result.contexts[0]
    controller = repo_builder.file("User/user_controller.go")
    service = repo_builder.file("User/user_service.go")
    model = repo_builder.file("User/user_model.go")

    assert context.root_path == str(repo_builder.path().resolve())
    assert [module.file_path for module in context.controllers] == [controller]
    assert [module.file_path for module in context.services] == [service]
    assert [module.file_path for module in context.models] == [model]

    assert len(context.relationships) == 1
    relationship = context.relationships[0]
    assert (relationship.source_file, relationship.target_file, relationship.kind) == (controller, service, "import")
    assert all(model not in (rel.source_file, rel.target_file) for rel in context.relationships)

    assert [(endpoint.method, endpoint.path) for endpoint in context.api_endpoints] == [("GET", "/users/:id")]
    assert all(endpoint.file_name == controller for endpoint in context.api_endpoints)
    assert [cls.name for cls in context.business_logic] == ["UserService"]
    assert [cls.name for cls in context.data_models] == ["User"]

    assert result.cross_references == []
    assert result.statistics() == {
        "files_analyzed": 3,
        "services_analyzed": 1,
        "relationships_found": 1,
        "skipped_files": 0,
    }


def test_every_file_lands_in_exactly_one_context(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            **USER_SERVICE_FILES,
            "orders/OrderController.java": "public class OrderController {}\n",
            "orders/Order.java": "public class Order {}\n",
            "Billing/InvoiceService.cs": "public class InvoiceService {}\n",
            "main.go": "package main\n",
            "node_modules/dep/ignored.go": "package dep\n",
            ".hidden/secret.go": "package hidden\n",
        }
    )

    result = repo_builder.analyze()

    member_files = [path for context in result.contexts for path in context.member_files]
    assert len(member_files) == len(set(member_files)) == 7
    assert not any("node_modules" in path or ".hidden" in path for path in member_files)
    names = [context.service_name for context in result.contexts]
    assert sorted(names) == sorted(["User", "Order", "orders", "Invoice", "Root"])


def test_analysis_is_idempotent(repo_builder: RepoBuilder) -> None:
    repo_builder.write(USER_SERVICE_FILES)

    first = repo_builder.analyze()
    second = repo_builder.analyze()

    assert first.relationships == second.relationships
    assert [context.member_files for context in first.contexts] == [
        context.member_files for context in second.contexts
    ]


def test_relationships_only_touch_their_service(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "pom.xml": "<project/>",
            "src/users/UserService.java": """
                public class UserService {
                    @Autowired
                    private OrderRepository orderRepository;
                }
            """,
            "src/orders/OrderRepository.java": "public class OrderRepository {}\n",
            "src/catalog/CatalogService.java": "public class CatalogService extends BaseCatalog {}\n",
            "src/catalog/BaseCatalog.java": "public class BaseCatalog {}\n",
        }
    )

    result = repo_builder.analyze()

    for context in result.contexts:
        members = set(context.member_files)
        for relationship in context.relationships:
            assert relationship.source_file in members or relationship.target_file in members

    users = result.context("User")
    orders = result.context("Order")
    catalog = result.context("Catalog")
    assert users is not None and orders is not None and catalog is not None
    assert [rel.kind for rel in users.relationships] == ["references"]
    assert users.relationships == orders.relationships
    assert [rel.details for rel in catalog.relationships] == ["CatalogService extends BaseCatalog"]


def test_unresolvable_references_are_dropped(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "api/user_handler.go": """
                package api

                import "./missing"

                type UserHandler struct {
                    Unknown
                }
            """,
        }
    )

    result = repo_builder.analyze()

    assert result.relationships == []
    assert result.contexts[0].relationships == []


def test_missing_root_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        ContextAnalyzer().analyze_directory(tmp_path / "absent")

    file_root = tmp_path / "file.go"
    file_root.write_text("package x\n", encoding="utf-8")
    with pytest.raises(NotADirectoryError):
        analyze_directory(file_root)


@pytest.mark.skipif(os.name == "nt" or (hasattr(os, "geteuid") and os.geteuid() == 0), reason="needs POSIX permissions")
def test_unreadable_files_are_skipped(repo_builder: RepoBuilder) -> None:
    repo_builder.write(USER_SERVICE_FILES)
    locked = repo_builder.path() / "User" / "user_model.go"
    locked.chmod(0)
    try:
        result = repo_builder.analyze()
    finally:
        locked.chmod(0o644)

    assert result.skipped_files == [repo_builder.file("User/user_model.go")]
    assert result.statistics()["files_analyzed"] == 2


def test_threaded_analysis_matches_sequential(repo_builder: RepoBuilder) -> None:
    repo_builder.write(USER_SERVICE_FILES)

    sequential = repo_builder.analyze(workers=1)
    threaded = repo_builder.analyze(workers=4)

    assert threaded.relationships == sequential.relationships


def test_analyze_directories_uses_configured_sources(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            ".contextmap.yml": "source_directories: [svc-a, svc-b]\nlanguages: [go]\n",
            "svc-a/a_service.go": "package a\n",
            "svc-b/b_service.go": "package b\n",
            "svc-b/Ignored.java": "public class Ignored {}\n",
        }
    )
    config = load_config(repo_builder.path())

    results = ContextAnalyzer(config=config).analyze_directories()

    assert [Path(result.root).name for result in results] == ["svc-a", "svc-b"]
    assert [[context.service_name for context in result.contexts] for result in results] == [["A"], ["B"]]
    assert combined_statistics(results)["files_analyzed"] == 2


def test_analyze_directories_requires_paths_or_config() -> None:
    with pytest.raises(ValueError):
        ContextAnalyzer().analyze_directories()


def test_exclude_dirs_from_config_are_skipped(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "generated/gen_service.go": "package gen\n",
            "app/app_service.go": "package app\n",
        }
    )
    config = ContextMapConfig(root=repo_builder.path(), exclude_dirs=["generated"])

    result = ContextAnalyzer(config=config).analyze_directory(repo_builder.path())

    assert [context.service_name for context in result.contexts] == ["App"]
