"""End-to-end generation tests."""

from __future__ import annotations

import json

import pytest

from axumdoc.orchestrator import Generator
from axumdoc.routing.resolver import MissingEntryError
from tests._fixtures.apps import MODULAR_APP, SIMPLE_APP
from tests._fixtures.repo_builder import RepoBuilder


def test_simple_app_document(repo_builder: RepoBuilder) -> None:
    repo_builder.write(SIMPLE_APP)

    result = repo_builder.generate()
    document = result.document

    assert list(document["paths"]) == ["/", "/login", "/user/:id"]
    login = document["paths"]["/login"]["post"]
    assert login["summary"] == "User login endpoint"
    assert login["description"] == (
        "This endpoint handles user authentication and returns a JWT token.\n"
        "The token can be used for subsequent authenticated requests."
    )
    assert login["requestBody"]["content"]["application/json"]["schema"] == {
        "$ref": "#/components/schemas/LoginForm"
    }
    get_user = document["paths"]["/user/:id"]["get"]
    assert get_user["parameters"] == [
        {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}
    ]
    root = document["paths"]["/"]["get"]
    assert root["responses"]["200"]["content"]["application/json"]["schema"] == {"type": "string"}

    schemas = document["components"]["schemas"]
    assert set(schemas) == {"LoginForm", "LoginResponse", "User"}
    assert schemas["User"]["properties"]["created_at"]["format"] == "date-time"
    assert schemas["LoginResponse"]["properties"]["user_id"]["format"] == "uuid"
    assert result.model_count == 3
    assert not result.diagnostics


def test_modular_app_collects_models_from_sources(repo_builder: RepoBuilder) -> None:
    repo_builder.write(MODULAR_APP)

    result = repo_builder.generate()

    paths = result.document["paths"]
    assert list(paths) == ["/", "/login", "/api/v1/user/info"]
    assert paths["/login"]["post"]["tags"] == ["modules::auth"]
    assert paths["/api/v1/user/info"]["get"]["tags"] == ["modules::user"]
    schemas = result.document["components"]["schemas"]
    assert {"LoginCredentials", "LoginResponse", "UserInfo"} <= set(schemas)
    assert schemas["UserInfo"]["required"] == ["id", "username"]
    # The default model files do not exist in this crate.
    missing = [m for m in result.diagnostics.messages() if "Model file not found" in m]
    assert len(missing) == 3


def test_missing_model_file_leaves_reference(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/main.rs": """
                fn app() -> Router {
                    Router::new().route("/me", get(me))
                }
                async fn me() -> Json<Profile> { todo!() }
            """,
        }
    )

    result = repo_builder.generate(model_files=["src/profile.rs"])

    schema = result.document["paths"]["/me"]["get"]["responses"]["200"]["content"][
        "application/json"
    ]["schema"]
    assert schema == {"$ref": "#/components/schemas/Profile"}
    messages = result.diagnostics.messages()
    assert any("src/profile.rs" in m and "Model file not found" in m for m in messages)
    assert any("Schema 'Profile' is referenced but not defined" in m for m in messages)


def test_missing_entry_is_fatal(repo_builder: RepoBuilder) -> None:
    with pytest.raises(MissingEntryError):
        repo_builder.generate()


def test_write_uses_configured_output(repo_builder: RepoBuilder) -> None:
    repo_builder.write(SIMPLE_APP)
    generator = Generator(repo_builder.config(output="docs/openapi.json"))

    path = generator.write(generator.run())

    assert path == repo_builder.path().resolve() / "docs" / "openapi.json"
    written = json.loads(path.read_text(encoding="utf-8"))
    assert written["openapi"] == "3.0.0"
    assert "/login" in written["paths"]


def test_long_route_chain_resolves_in_order(repo_builder: RepoBuilder) -> None:
    count = 1200
    chain = "".join(f'.route("/r{index}", get(h))' for index in range(count))
    repo_builder.write(
        {"src/main.rs": f"fn app() -> Router {{ Router::new(){chain} }}\nasync fn h() {{}}\n"}
    )

    result = repo_builder.generate(model_files=[])

    assert len(result.routes) == count
    assert result.routes[0].full_path == "/r0"
    assert result.routes[-1].full_path == f"/r{count - 1}"
    assert len(result.document["paths"]) == count
    assert result.diagnostics.messages() == [
        "models: No model files specified; schemas come only from structs in the parsed sources"
    ]
