"""Tests for module file resolution."""

from __future__ import annotations

from tests._fixtures.repo_builder import RepoBuilder

from axumdoc.routing.modules import HANDLER_FILE_PATTERNS, ModuleLocator


def test_location_of_strips_module_definition_files(repo_builder: RepoBuilder) -> None:
    locator = ModuleLocator(repo_builder.path())
    root = repo_builder.path()

    assert locator.location_of(root / "src/main.rs") == ()
    assert locator.location_of(root / "src/modules/mod.rs") == ("modules",)
    assert locator.location_of(root / "src/modules/user/handler.rs") == ("modules", "user", "handler")


def test_compose_honours_crate_super_and_self() -> None:
    assert ModuleLocator.compose(("a", "b"), ("crate", "c")) == ("c",)
    assert ModuleLocator.compose(("a", "b"), ("super", "c")) == ("a", "c")
    assert ModuleLocator.compose(("a",), ("self", "c")) == ("a", "c")
    assert ModuleLocator.compose((), ("super", "c")) is None


def test_probe_order_prefers_handlers_then_mod_then_file(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/api/mod.rs": "pub fn router() {}\n",
            "src/api.rs": "pub fn router() {}\n",
        }
    )
    locator = ModuleLocator(repo_builder.path())

    lookup = locator.locate((), ("api",))

    assert lookup.match is not None
    assert lookup.match.path.name == "mod.rs"
    assert lookup.match.location == ("api",)
    assert [p.relative_to(repo_builder.path()).as_posix() for p in lookup.tried] == [
        "src/api/handlers.rs",
        "src/api/mod.rs",
    ]


def test_nested_location_wins_over_sibling(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/modules/user/auth.rs": "pub fn router() {}\n",
            "src/modules/auth.rs": "pub fn router() {}\n",
        }
    )
    locator = ModuleLocator(repo_builder.path())

    nested = locator.locate(("modules", "user"), ("auth",))
    sibling = locator.locate(("modules", "billing"), ("auth",))

    assert nested.match.location == ("modules", "user", "auth")
    assert sibling.match.location == ("modules", "auth")


def test_missing_module_reports_every_probe(repo_builder: RepoBuilder) -> None:
    locator = ModuleLocator(repo_builder.path())

    lookup = locator.locate(("modules",), ("ghost",))

    assert lookup.match is None
    assert len(lookup.tried) == 6


def test_existing_yields_handler_aliases_in_order(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/modules/auth_handler.rs": "",
            "src/modules/auth.rs": "",
        }
    )
    locator = ModuleLocator(repo_builder.path())

    found = [m.path.name for m in locator.existing(("modules",), ("auth",), HANDLER_FILE_PATTERNS)]

    assert found == ["auth_handler.rs", "auth.rs"]
