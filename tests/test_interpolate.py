"""Tests for placeholder interpolation."""

import pytest

from invoice_plugins.engine.context import ExecutionContext
from invoice_plugins.engine.interpolate import interpolate, interpolate_value, render_value


class TestInterpolate:
    """Test config and variable substitution."""

    @pytest.fixture
    def context(self):
        return ExecutionContext(config={"region": "eu", "teamId": "12345"})

    def test_config_value(self, context):
        """Config placeholders resolve."""
        assert interpolate("https://{{config.region}}.example.com", context) == "https://eu.example.com"

    def test_multiple_config_values(self, context):
        """Several config placeholders in one string."""
        result = interpolate("https://{{config.region}}.example.com/team/{{config.teamId}}", context)
        assert result == "https://eu.example.com/team/12345"

    def test_variable_value(self, context):
        """Variable placeholders resolve."""
        context.set_variable("invoice", "INV-001")
        assert interpolate("Invoice ID: {{invoice}}", context) == "Invoice ID: INV-001"

    def test_text_without_placeholders_unchanged(self, context):
        """Plain text is returned as is."""
        for text in ["https://example.com", "", "{ not a placeholder }", "a {b} c"]:
            assert interpolate(text, context) == text

    def test_unresolved_placeholder_left_verbatim(self, context):
        """Unknown keys stay in the text."""
        assert interpolate("{{missing}}", context) == "{{missing}}"
        assert interpolate("{{config.missing}}", context) == "{{config.missing}}"

    def test_config_precedes_variables(self):
        """Config and variable namespaces do not collide."""
        context = ExecutionContext(config={"region": "eu"})
        context.set_variable("region", "usa")

        assert interpolate("{{config.region}}", context) == "eu"
        assert interpolate("{{region}}", context) == "usa"
        assert interpolate("{{config.region}}/{{region}}", context) == "eu/usa"

    def test_replaces_every_occurrence(self, context):
        """Replacement is global, not first match only."""
        assert interpolate("{{config.region}}-{{config.region}}", context) == "eu-eu"

    def test_dotted_variable_names(self):
        """Variables with dots in their names resolve literally."""
        context = ExecutionContext()
        context.variables["invoice.id"] = "INV-123"
        context.variables["invoice.total"] = "$100.00"

        result = interpolate("Invoice {{invoice.id}} total: {{invoice.total}}", context)
        assert result == "Invoice INV-123 total: $100.00"

    def test_flattened_dict_variable(self):
        """Dict variables expose their keys as dotted placeholders."""
        context = ExecutionContext()
        context.set_variable("invoice", {"id": "INV-9", "amount": 12.5})

        assert interpolate("{{invoice.id}}: {{invoice.amount}}", context) == "INV-9: 12.5"

    def test_non_string_values_rendered(self):
        """Numbers, booleans and None render as text."""
        context = ExecutionContext()
        context.set_variable("count", 3)
        context.set_variable("paid", True)
        context.set_variable("note", None)

        assert interpolate("{{count}}|{{paid}}|{{note}}", context) == "3|true|"


class TestRenderValue:
    """Test value rendering."""

    def test_collections_render_as_json(self):
        """Lists and dicts render as compact JSON."""
        assert render_value([1, 2]) == "[1,2]"
        assert render_value({"a": "b"}) == '{"a":"b"}'

    def test_false_renders_lowercase(self):
        assert render_value(False) == "false"


class TestInterpolateValue:
    """Test nested interpolation."""

    def test_nested_structures(self):
        """String leaves are interpolated, other values kept."""
        context = ExecutionContext(config={"region": "eu"})
        context.set_variable("id", "INV-1")

        value = {
            "id": "{{id}}",
            "tags": ["{{config.region}}", 5],
            "meta": {"paid": True, "ref": "ref-{{id}}"},
        }
        assert interpolate_value(value, context) == {
            "id": "INV-1",
            "tags": ["eu", 5],
            "meta": {"paid": True, "ref": "ref-INV-1"},
        }


class TestExecutionContext:
    """Test context invariants."""

    def test_config_is_read_only(self):
        """Config cannot be modified during a run."""
        context = ExecutionContext(config={"region": "eu"})
        with pytest.raises(TypeError):
            context.config["region"] = "us"

    def test_config_copied_from_source(self):
        """Mutating the source dict does not leak into the context."""
        source = {"region": "eu"}
        context = ExecutionContext(config=source)
        source["region"] = "us"
        assert context.config["region"] == "eu"

    def test_variables_overwrite(self):
        """Setting a variable again overwrites it."""
        context = ExecutionContext()
        context.set_variable("x", 1)
        context.set_variable("x", 2)
        assert context.get_variable("x") == 2
        assert context.get_variable("missing", "default") == "default"

    def test_overwrite_resets_missing_fields(self):
        """Fields the new value lacks are reset, never left from the old value."""
        context = ExecutionContext()
        context.set_variable("inv", {"id": "A", "url": "https://a/1.pdf", "meta": {"paid": True}})
        context.set_variable("inv", {"id": "B"})

        assert context.variables["inv.id"] == "B"
        assert context.variables["inv.url"] is None
        assert context.variables["inv.meta.paid"] is None
        assert interpolate("{{inv.id}}:{{inv.url}}", context) == "B:"

    def test_scalar_overwrite_resets_fields(self):
        context = ExecutionContext()
        context.set_variable("inv", {"id": "A"})
        context.set_variable("inv", "plain")
        assert context.variables == {"inv": "plain", "inv.id": None}
