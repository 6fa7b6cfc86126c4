import pytest

from openapi_tools.shared.errors import (
    ConfigurationError,
    GroupStrategyError,
    MissingContextError,
    SchemaError,
    SchemaNotFoundError,
    UnsupportedMediaTypeError,
    UnsupportedSchemaTypeError,
)


class TestSchemaError:
    def test_init_no_path(self):
        error = SchemaError("test message")
        assert str(error) == "test message"
        assert error.schema_path is None

    def test_init_with_path(self):
        error = SchemaError("test message", "#/components/schemas/Pet")
        assert str(error) == "[#/components/schemas/Pet] test message"
        assert error.schema_path == "#/components/schemas/Pet"


class TestSchemaNotFoundError:
    def test_carries_ref(self):
        error = SchemaNotFoundError("#/components/schemas/Missing")
        assert error.ref == "#/components/schemas/Missing"
        assert str(error) == "[#/components/schemas/Missing] Referenced schema could not be resolved"

    def test_is_schema_error(self):
        with pytest.raises(SchemaError):
            raise SchemaNotFoundError("#/components/schemas/Missing")


class TestUnsupportedMediaTypeError:
    def test_message_lists_media_types(self):
        error = UnsupportedMediaTypeError("filter", ["application/xml", "image/png"])
        assert str(error) == "Unsupported media type for param filter: application/xml, image/png"
        assert error.param_name == "filter"
        assert error.media_types == ["application/xml", "image/png"]

    def test_with_path(self):
        error = UnsupportedMediaTypeError("filter", ("application/xml",), "/pets")
        assert str(error) == "[/pets] Unsupported media type for param filter: application/xml"


class TestUnsupportedSchemaTypeError:
    def test_init(self):
        error = UnsupportedSchemaTypeError("file")
        assert str(error) == "Unsupported schema type: file"
        assert error.type_name == "file"
        assert error.schema_path is None


class TestConfigurationErrors:
    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)

    def test_group_strategy_error(self):
        error = GroupStrategyError("by-color")
        assert str(error) == "Unknown group strategy 'by-color'"
        assert error.strategy == "by-color"
        assert isinstance(error, ConfigurationError)

    def test_missing_context_is_not_a_schema_error(self):
        assert issubclass(MissingContextError, RuntimeError)
        assert not issubclass(MissingContextError, SchemaError)
