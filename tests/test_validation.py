from cedar_state.execution.validation import (
    apply_schema_defaults,
    format_validation_report,
    validate_against_schema,
)


class TestValidation:
    def test_no_schema_accepts_anything(self):
        result = validate_against_schema(object(), None)
        assert result.ok

    def test_void_schema(self):
        assert validate_against_schema(None, {"type": "null"}).ok
        assert not validate_against_schema(1, {"type": "null"}).ok

    def test_collects_all_errors_sorted_by_path(self):
        schema = {
            "type": "object",
            "properties": {
                "b": {"type": "integer"},
                "a": {"type": "string", "minLength": 3},
            },
        }
        result = validate_against_schema({"a": "x", "b": "y"}, schema)
        assert not result
        assert [(v.path, v.code) for v in result.errors] == [
            ("a", "minLength"),
            ("b", "type"),
        ]

    def test_nested_paths(self):
        schema = {"type": "array", "items": {"type": "object", "required": ["id"]}}
        result = validate_against_schema([{"id": 1}, {}], schema)
        assert result.errors[0].path == "1"
        assert result.errors[0].code == "required"

    def test_schema_dialect_from_dollar_schema(self):
        schema = {
            "$schema": "http://json-schema.org/draft-07/schema#",
            "type": "array",
            "items": [{"type": "string"}],
        }
        assert validate_against_schema(["a"], schema).ok
        assert not validate_against_schema([1], schema).ok

    def test_apply_defaults(self):
        schema = {
            "type": "object",
            "properties": {"n": {"type": "integer", "default": 1}, "s": {"type": "string"}},
        }
        assert apply_schema_defaults(None, schema) == {"n": 1}
        assert apply_schema_defaults({"n": 5}, schema) == {"n": 5}
        assert apply_schema_defaults(3, {"type": "integer"}) == 3
        result = validate_against_schema(None, schema, apply_defaults=True)
        assert result.ok
        assert result.value == {"n": 1}

    def test_report_contains_everything(self):
        schema = {"type": "integer"}
        result = validate_against_schema("x", schema)
        report = format_validation_report(
            subject="args", received="x", schema=schema, violations=result.errors
        )
        assert report.startswith("Validation failed for args")
        assert '"type": "integer"' in report
        assert "'x' is not of type 'integer'" in report
