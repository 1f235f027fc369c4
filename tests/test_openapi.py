"""Tests for OpenAPI document assembly."""

from __future__ import annotations

import pytest

from axumdoc.config import InfoConfig
from axumdoc.models import Diagnostics, FieldDecl, HttpMethod, ModelDecl, ParameterSource, RouteEntry
from axumdoc.openapi import DocumentAssembler, path_parameter_names
from axumdoc.schema.mapper import TypeMapper
from axumdoc.schema.models import ModelCatalog
from axumdoc.schema.nodes import IntegerSchema, ObjectSchema, ReferenceSchema, StringSchema


@pytest.fixture
def diagnostics() -> Diagnostics:
    return Diagnostics()


@pytest.fixture
def catalog(diagnostics: Diagnostics) -> ModelCatalog:
    catalog = ModelCatalog(TypeMapper(diagnostics), diagnostics)
    catalog.add(
        ModelDecl(
            name="Filter",
            file="src/types.rs",
            fields=[FieldDecl("page", "u32"), FieldDecl("search", "Option<String>")],
        ),
        explicit=True,
    )
    catalog.add(
        ModelDecl(name="User", file="src/types.rs", fields=[FieldDecl("id", "uuid::Uuid")]),
        explicit=True,
    )
    return catalog


def _route(path: str, **kwargs) -> RouteEntry:
    kwargs.setdefault("method", HttpMethod.GET)
    kwargs.setdefault("handler_name", "handler")
    kwargs.setdefault("response_schema", ObjectSchema())
    return RouteEntry(full_path=path, **kwargs)


def test_path_parameter_names_support_both_styles() -> None:
    assert path_parameter_names("/users/:id/posts/{post_id}/:id") == ["id", "post_id"]
    assert path_parameter_names("/files/{*rest}") == ["rest"]
    assert path_parameter_names("/plain") == []


def test_document_shell_and_operation(catalog: ModelCatalog, diagnostics: Diagnostics) -> None:
    assembler = DocumentAssembler(catalog, diagnostics)
    route = _route(
        "/users",
        method=HttpMethod.POST,
        handler_name="create_user",
        request_schema=ReferenceSchema("User"),
        response_schema=ReferenceSchema("User"),
        summary="Create a user",
        description="Stores the user.",
        module=("modules", "user"),
    )

    document = assembler.assemble([route])

    assert document["openapi"] == "3.0.0"
    assert document["info"] == {
        "title": "Generated API",
        "version": "1.0.0",
        "description": "Auto-generated OpenAPI specification from Axum routes",
    }
    operation = document["paths"]["/users"]["post"]
    assert operation == {
        "summary": "Create a user",
        "description": "Stores the user.",
        "operationId": "create_user",
        "tags": ["modules::user"],
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/User"}}},
        },
        "responses": {
            "200": {
                "description": "Successful response",
                "content": {"application/json": {"schema": {"$ref": "#/components/schemas/User"}}},
            }
        },
    }
    assert set(document["components"]["schemas"]) == {"Filter", "User"}
    assert not diagnostics


def test_default_summary_and_custom_info(catalog: ModelCatalog) -> None:
    assembler = DocumentAssembler(catalog, info=InfoConfig(title="Shop", version="2.1.0", description=None))

    document = assembler.assemble([_route("/", handler_name="root")])

    assert document["info"] == {"title": "Shop", "version": "2.1.0"}
    operation = document["paths"]["/"]["get"]
    assert operation["summary"] == "GET root"
    assert "tags" not in operation
    assert "parameters" not in operation


def test_query_struct_expands_into_parameters(catalog: ModelCatalog) -> None:
    route = _route(
        "/users/:id",
        parameter_sources=(
            ParameterSource("query", ReferenceSchema("Filter")),
            ParameterSource("path", IntegerSchema(format="int64")),
        ),
    )

    parameters = DocumentAssembler(catalog).parameters(route)

    assert parameters == [
        {"name": "page", "in": "query", "required": True, "schema": {"type": "integer", "format": "int32"}},
        {"name": "search", "in": "query", "required": False, "schema": {"type": "string"}},
        {"name": "id", "in": "path", "required": True, "schema": {"type": "integer", "format": "int64"}},
    ]


def test_path_parameters_default_to_string_with_several_names(catalog: ModelCatalog) -> None:
    route = _route(
        "/orgs/{org}/users/{user}",
        parameter_sources=(ParameterSource("path", IntegerSchema(format="int64")),),
    )

    parameters = DocumentAssembler(catalog).parameters(route)

    assert [(p["name"], p["schema"]) for p in parameters] == [
        ("org", {"type": "string"}),
        ("user", {"type": "string"}),
    ]


def test_form_body_content_type(catalog: ModelCatalog) -> None:
    route = _route(
        "/login",
        method=HttpMethod.POST,
        request_schema=StringSchema(),
        request_content_type="application/x-www-form-urlencoded",
    )

    operation = DocumentAssembler(catalog).operation(route)

    assert list(operation["requestBody"]["content"]) == ["application/x-www-form-urlencoded"]


def test_duplicate_route_replaces_earlier(catalog: ModelCatalog, diagnostics: Diagnostics) -> None:
    assembler = DocumentAssembler(catalog, diagnostics)

    document = assembler.assemble(
        [_route("/dup", handler_name="first"), _route("/dup", handler_name="second")]
    )

    assert document["paths"]["/dup"]["get"]["operationId"] == "second"
    assert any("'second' replaces 'first'" in m for m in diagnostics.messages())


def test_dangling_references_are_reported_once(catalog: ModelCatalog, diagnostics: Diagnostics) -> None:
    assembler = DocumentAssembler(catalog, diagnostics)

    document = assembler.assemble(
        [
            _route("/a", response_schema=ReferenceSchema("Missing")),
            _route("/b", response_schema=ReferenceSchema("Missing")),
        ]
    )

    assert document["paths"]["/a"]["get"]["responses"]["200"]["content"]["application/json"][
        "schema"
    ] == {"$ref": "#/components/schemas/Missing"}
    assert len([m for m in diagnostics.messages() if "'Missing'" in m]) == 1


def test_components_mark_required_fields(catalog: ModelCatalog) -> None:
    assert catalog.components()["Filter"] == {
        "type": "object",
        "properties": {
            "page": {"type": "integer", "format": "int32"},
            "search": {"type": "string", "nullable": True},
        },
        "required": ["page"],
    }


def test_catalog_keeps_first_declaration(catalog: ModelCatalog, diagnostics: Diagnostics) -> None:
    catalog.add(ModelDecl(name="User", file="src/other.rs", fields=[]), explicit=True)
    catalog.add(ModelDecl(name="User", file="src/main.rs", fields=[]))

    assert catalog.get("User").decl.file == "src/types.rs"
    assert len([m for m in diagnostics.messages() if "already declared" in m]) == 1
