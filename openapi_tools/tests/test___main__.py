import json
from unittest.mock import patch

import pytest
import yaml

from openapi_tools import __main__
from openapi_tools.shared import DocumentCache
from openapi_tools.zod_codegen.options import TemplateContextOptions

PET_DOCUMENT = {
    "openapi": "3.0.0",
    "info": {"title": "Petstore", "version": "1.0.0"},
    "paths": {
        "/pet/{petId}": {
            "get": {
                "operationId": "getPetById",
                "tags": ["pet"],
                "parameters": [
                    {"name": "petId", "in": "path", "required": True, "schema": {"type": "integer"}},
                ],
                "responses": {
                    "200": {
                        "description": "ok",
                        "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
                    }
                },
            }
        },
        "/store/order": {
            "post": {
                "tags": ["store"],
                "responses": {
                    "200": {
                        "description": "ok",
                        "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
                    }
                },
            }
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "required": ["name"],
                "properties": {"id": {"type": "integer"}, "name": {"type": "string"}},
            }
        }
    },
}


@pytest.fixture
def document_path(tmp_path):
    path = tmp_path / "openapi.yaml"
    path.write_text(yaml.safe_dump(PET_DOCUMENT), encoding="utf-8")
    return path


class TestResolveOptions:
    def test_defaults(self, document_path):
        args = __main__.build_parser().parse_args([str(document_path)])
        assert __main__.resolve_options(args) == TemplateContextOptions()

    def test_config_file_and_flag_override(self, document_path, tmp_path):
        config = tmp_path / "codegen.json"
        config.write_text(json.dumps({"complexityThreshold": 2, "withAlias": True, "apiClientName": "petApi"}))

        args = __main__.build_parser().parse_args(
            [str(document_path), "--config", str(config), "--complexity-threshold", "7"]
        )
        options = __main__.resolve_options(args)
        assert options.complexity_threshold == 7
        assert options.with_alias is True
        assert options.api_client_name == "petApi"

    def test_no_default_values_flag(self, document_path):
        args = __main__.build_parser().parse_args([str(document_path), "--no-default-values"])
        assert __main__.resolve_options(args).with_default_values is False

    def test_config_goes_through_cache(self, document_path, tmp_path):
        config = tmp_path / "codegen.yaml"
        config.write_text("withAlias: true\n")
        cache = DocumentCache()

        args = __main__.build_parser().parse_args([str(document_path), "--config", str(config)])
        assert __main__.resolve_options(args, cache).with_alias is True
        assert len(cache) == 1
        assert __main__.resolve_options(args, cache).with_alias is True
        assert len(cache) == 1


class TestMain:
    def test_writes_single_file(self, document_path, tmp_path, capsys):
        out = tmp_path / "out" / "api.ts"
        assert __main__.main([str(document_path), "-o", str(out)]) == 0

        text = out.read_text(encoding="utf-8")
        assert "const Pet = z" in text
        assert 'path: "/pet/:petId"' in text
        assert f"Generated {document_path} -> {out}" in capsys.readouterr().out

    def test_prints_to_stdout_without_output(self, document_path, capsys):
        assert __main__.main([str(document_path)]) == 0
        assert "export const api = new Zodios(endpoints);" in capsys.readouterr().out

    def test_file_strategy_writes_directory(self, document_path, tmp_path):
        out = tmp_path / "client"
        assert __main__.main([str(document_path), "-o", str(out), "--group-strategy", "tag-file"]) == 0

        assert (out / "pet.ts").exists()
        assert (out / "store.ts").exists()
        assert (out / "index.ts").exists()
        assert (out / "common.ts").exists()

    def test_file_strategy_requires_output(self, document_path, capsys):
        assert __main__.main([str(document_path), "--group-strategy", "method-file"]) == 1
        assert "--output is required" in capsys.readouterr().err

    def test_missing_document(self, tmp_path, capsys):
        assert __main__.main([str(tmp_path / "missing.yaml")]) == 1
        assert "Failed to read document" in capsys.readouterr().err

    def test_document_and_config_are_loaded_through_cache(self, document_path, tmp_path, capsys):
        config = tmp_path / "codegen.yaml"
        config.write_text("withAlias: true\n")
        cache = DocumentCache()

        with patch("openapi_tools.__main__.DocumentCache", return_value=cache):
            assert __main__.main([str(document_path), "--config", str(config)]) == 0
        assert len(cache) == 2
        assert 'alias: "getPetById"' in capsys.readouterr().out

    def test_unknown_config_key(self, document_path, tmp_path, capsys):
        config = tmp_path / "codegen.yaml"
        config.write_text("colour: blue\n")
        assert __main__.main([str(document_path), "--config", str(config)]) == 1
        assert "Unknown option 'colour'" in capsys.readouterr().err

    def test_fetches_urls(self, capsys):
        with patch("openapi_tools.__main__.fetch_document", return_value=PET_DOCUMENT) as fetch:
            assert __main__.main(["https://example.com/openapi.json"]) == 0
        fetch.assert_called_once_with("https://example.com/openapi.json")
        assert "const Pet = z" in capsys.readouterr().out
