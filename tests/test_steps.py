"""Tests for step parsing."""

from invoice_plugins.engine.steps import (
    SUPPORTED_ACTIONS,
    CheckURL,
    DownloadPdf,
    ExtractAll,
    If,
    Navigate,
    Sleep,
    Type,
    Unsupported,
    WaitForElement,
    parse_step,
    parse_steps,
)


class TestParseStep:
    """Test JSON step objects become typed steps."""

    def test_navigate(self):
        step = parse_step({"action": "navigate", "url": "https://x.test", "waitForNetworkIdle": True})
        assert step == Navigate(url="https://x.test", wait_for_network_idle=True)
        assert step.action == "navigate"

    def test_irrelevant_fields_ignored(self):
        """Fields a kind does not use are dropped."""
        step = parse_step({"action": "checkURL", "url": "/dashboard", "selector": "#x", "timeout": 5})
        assert step == CheckURL(url="/dashboard")

    def test_zero_timeout_means_default(self):
        """timeout 0 and a missing timeout are the same."""
        assert parse_step({"action": "waitForElement", "selector": "#a", "timeout": 0}).timeout is None
        assert parse_step({"action": "waitForElement", "selector": "#a"}) == WaitForElement(selector="#a")
        assert parse_step({"action": "waitForElement", "selector": "#a", "timeout": 2500}).timeout == 2500

    def test_type_value_defaults_empty(self):
        assert parse_step({"action": "type", "selector": "#email"}) == Type(selector="#email", value="")

    def test_unknown_action_is_unsupported(self):
        """Unknown actions are kept as Unsupported with their name."""
        step = parse_step({"action": "bogus", "selector": "#x"})
        assert step == Unsupported(action="bogus")
        assert step.action == "bogus"

    def test_missing_action_is_unsupported(self):
        assert parse_step({}) == Unsupported(action="")

    def test_sleep_duration(self):
        assert parse_step({"action": "sleep", "duration": 100}) == Sleep(duration=100)
        assert parse_step({"action": "sleep"}) == Sleep(duration=0)

    def test_if_branches(self):
        """then/else are parsed recursively; missing lists are empty."""
        step = parse_step({
            "action": "if",
            "script": "!!document.querySelector('#cookie')",
            "then": [{"action": "click", "selector": "#cookie"}],
        })
        assert isinstance(step, If)
        assert len(step.then) == 1
        assert step.then[0].action == "click"
        assert step.otherwise == ()

    def test_extract_all_nested(self):
        """forEach nests arbitrary depth."""
        step = parse_step({
            "action": "extractAll",
            "selector": ".invoice",
            "variable": "invoice",
            "fields": {"id": ".id", "url": {"selector": "a", "attribute": "href"}},
            "forEach": [
                {
                    "action": "if",
                    "script": "true",
                    "else": [{"action": "downloadPdf", "url": "{{invoice.url}}", "document": {"id": "{{invoice.id}}"}}],
                }
            ],
        })
        assert isinstance(step, ExtractAll)
        assert step.variable == "invoice"
        assert step.fields["url"] == {"selector": "a", "attribute": "href"}
        nested = step.for_each[0]
        assert isinstance(nested, If)
        assert nested.otherwise[0] == DownloadPdf(url="{{invoice.url}}", document={"id": "{{invoice.id}}"})

    def test_extract_all_default_variable(self):
        assert parse_step({"action": "extractAll", "selector": "li"}).variable == "item"

    def test_every_supported_action_parses(self):
        """No supported action falls through to Unsupported."""
        for action in SUPPORTED_ACTIONS:
            step = parse_step({"action": action, "url": "u", "selector": "s", "script": "1", "variable": "v"})
            assert not isinstance(step, Unsupported)
            assert step.action == action


class TestParseSteps:
    """Test parsing of sequences."""

    def test_none_and_empty(self):
        assert parse_steps(None) == ()
        assert parse_steps([]) == ()

    def test_order_preserved(self):
        steps = parse_steps([
            {"action": "navigate", "url": "a"},
            {"action": "click", "selector": "b"},
            {"action": "nope"},
        ])
        assert [s.action for s in steps] == ["navigate", "click", "nope"]
