"""
Tests for the Control Runner

End to end: rules are compiled, registered, run and reported.
"""

import io
import json

import pytest

from controlrun.config import RunnerConfig
from controlrun.executor import ReportingResult, SequentialRunner
from controlrun.formatters import (
    CliFormatter,
    JsonFormatter,
    MiniJsonFormatter,
    StructuredReporter,
    UnknownFormatterError,
)
from controlrun.framework.context import RunContext
from controlrun.ir.model import ExampleStatus
from controlrun.rule import Profile, Rule
from controlrun.runner import ControlRunner


class SkippedResource:
    resource_skipped = "resource X not supported"

    def __str__(self):
        return "unsupported_resource"


class Platform:
    name = "ubuntu"
    release = "22.04"


class Backend:
    platform = Platform()


@pytest.fixture
def output():
    return io.StringIO()


def make_runner(output, **conf):
    conf.setdefault("format", "json-min")
    return ControlRunner(dict(conf, output=output))


def passing_rule(rule_id="r1", profile_id=None):
    rule = Rule(rule_id, profile_id=profile_id, title="Always passes")
    rule.describe("thing", body=lambda g: g.it("passes", lambda s: True))
    return rule


def failing_rule(rule_id="r2"):
    rule = Rule(rule_id)
    rule.describe("thing", body=lambda g: g.it("fails", lambda s: False))
    return rule


class TestRunStatus:
    """Exit status reflects failures only."""

    def test_passing_rule(self, output):
        runner = make_runner(output)
        runner.add_rule(passing_rule())

        assert runner.run() == 0

        report = runner.report()
        assert len(report["controls"]) == 1
        control = report["controls"][0]
        assert control["id"] == "r1"
        assert control["status"] == "passed"

    def test_failing_rule(self, output):
        runner = make_runner(output)
        runner.add_rule(failing_rule())

        assert runner.run() != 0

        [control] = runner.report()["controls"]
        assert control["id"] == "r2"
        assert control["status"] == "failed"
        assert "thing fails" in control["message"]

    def test_erroring_example_fails_run(self, output):
        def broken(subject):
            raise RuntimeError("boom")

        rule = Rule("r3")
        rule.describe("thing", body=lambda g: g.it("explodes", broken))
        runner = make_runner(output)
        runner.add_rule(rule)

        assert runner.run() == 1
        assert runner.report()["controls"][0]["message"] == "boom"

    def test_skipped_check_is_pending_not_failing(self, output):
        rule = Rule("r4")
        rule.describe(SkippedResource(), body=lambda g: g.it("never declared"))
        runner = make_runner(output)
        runner.add_rule(rule)

        assert runner.run() == 0

        [control] = runner.report()["controls"]
        assert control["status"] == "pending"
        assert control["skip_message"] == "resource X not supported"

    def test_empty_run_succeeds(self, output):
        runner = make_runner(output)

        assert runner.run() == 0
        assert runner.report()["controls"] == []

    def test_formatter_writes_output_on_close(self, output):
        runner = make_runner(output)
        runner.add_rule(passing_rule())
        runner.run()

        written = json.loads(output.getvalue())
        assert written["controls"][0]["id"] == "r1"


class TestOrGroupExecution:
    """OR-group alternatives run while compiling and again when run."""

    def test_winner_runs_twice(self, output):
        calls = []

        def counted(subject):
            calls.append(subject)
            return True

        rule = Rule("r5")

        @rule.describe_one
        def alternatives(one):
            one.describe("missing", body=lambda g: g.it("exists", lambda s: False))
            one.describe("present", body=lambda g: g.it("exists", counted))

        runner = make_runner(output)
        runner.add_rule(rule)
        assert calls == ["present"]

        assert runner.run() == 0
        assert calls == ["present", "present"]

        [control] = runner.report()["controls"]
        assert control["code_desc"] == "present exists"

    def test_all_alternatives_failing_reports_each(self, output):
        rule = Rule("r6")

        @rule.describe_one
        def alternatives(one):
            one.describe("a", body=lambda g: g.it("exists", lambda s: False))
            one.describe("b", body=lambda g: g.it("exists", lambda s: False))

        runner = make_runner(output)
        runner.add_rule(rule)

        assert runner.run() == 1
        controls = runner.report()["controls"]
        assert [c["code_desc"] for c in controls] == ["a exists", "b exists"]
        assert all(c["id"] == "r6" for c in controls)


class TestReport:
    """report() reflects the configured reporting."""

    def test_cli_format_has_no_report(self, output):
        runner = ControlRunner({"format": "cli", "output": output})
        runner.add_rule(passing_rule())
        runner.run()

        assert runner.report() is None

    def test_structured_report_alongside_cli(self, output):
        runner = ControlRunner({"format": "cli", "output": output, "report": True})
        profile = Profile("base", title="Base profile", version="1.0")
        profile.add_rule(passing_rule())
        runner.add_profile(profile)
        for rule in profile.rules:
            runner.add_rule(rule)
        runner.run()

        report = runner.report()
        control = report["profiles"]["base"]["controls"]["r1"]
        assert control["title"] == "Always passes"
        assert control["results"][0]["status"] == "passed"
        assert "Summary: 1 successful, 0 failures, 0 skipped" in output.getvalue()

    def test_reporter_leaves_output_alone(self, output):
        """The structured reporter writes into memory, not the run output."""
        runner = make_runner(output, report=True)
        runner.add_rule(passing_rule())
        runner.run()

        assert len(output.getvalue().strip().splitlines()) == 1
        assert "profiles" in runner.report()

    def test_json_format_groups_by_profile(self, output):
        runner = make_runner(output, format="json")
        runner.add_rule(passing_rule(profile_id="p1"))
        runner.add_rule(failing_rule())
        runner.run()

        report = runner.report()
        assert report["profiles"]["p1"]["controls"]["r1"]["results"][0]["status"] == "passed"
        assert report["profiles"][None]["controls"]["r2"]["results"][0]["status"] == "failed"

    def test_announced_profile_lists_controls_without_results(self, output):
        profile = Profile("base")
        profile.add_rule(passing_rule())
        profile.control("unregistered", title="Never added")

        runner = make_runner(output, format="json")
        runner.add_profile(profile)
        runner.add_rule(profile.rules[0])
        runner.run()

        controls = runner.report()["profiles"]["base"]["controls"]
        assert controls["unregistered"]["results"] == []
        assert len(controls["r1"]["results"]) == 1

    def test_backend_platform_in_report(self, output):
        runner = make_runner(output, format="json")
        runner.backend = Backend()
        runner.run()

        assert runner.report()["platform"] == {"name": "ubuntu", "release": "22.04"}

    def test_backend_reaches_structured_reporter(self, output):
        runner = ControlRunner({"format": "cli", "output": output, "report": True})
        runner.backend = Backend()

        assert runner.report()["platform"]["name"] == "ubuntu"

    def test_add_profile_skips_formatters_without_support(self, output):
        """Formatters without add_profile are left alone."""
        runner = make_runner(output)

        runner.add_profile(Profile("base"))

        assert isinstance(runner.context.formatters[0], MiniJsonFormatter)


class TestConfiguration:
    """Runner configuration and formatter selection."""

    def test_default_is_cli(self, capsys):
        runner = ControlRunner()

        assert isinstance(runner.context.formatters[0], CliFormatter)

    def test_config_object(self, output):
        runner = ControlRunner(RunnerConfig(output=output, format="json"))

        assert isinstance(runner.context.formatters[0], JsonFormatter)

    def test_unknown_keys_are_ignored(self, output):
        runner = ControlRunner({"output": output, "format": "json-min", "reporter": "x"})

        assert runner.config.format == "json-min"

    def test_report_adds_structured_reporter(self, output):
        runner = make_runner(output, report=True)

        kinds = [type(f) for f in runner.context.formatters]
        assert kinds == [MiniJsonFormatter, StructuredReporter]

    def test_formatter_class_selector(self, output):
        runner = ControlRunner({"output": output, "format": JsonFormatter})

        assert isinstance(runner.context.formatters[0], JsonFormatter)

    def test_unknown_formatter(self, output):
        with pytest.raises(UnknownFormatterError, match="nope"):
            ControlRunner({"output": output, "format": "nope"})

    def test_output_path(self, tmp_path):
        path = tmp_path / "results.json"
        runner = ControlRunner({"output": str(path), "format": "json-min"})
        runner.add_rule(passing_rule())
        runner.run()
        runner.context.close()

        assert json.loads(path.read_text())["controls"][0]["id"] == "r1"

    def test_color_reaches_formatters(self, output):
        runner = ControlRunner({"output": output, "color": "yes"})

        assert runner.config.color is True
        assert runner.context.formatters[0].color is True


class TestRegistration:
    """Groups are compiled, stamped and kept in order."""

    def test_groups_registered_in_rule_order(self, output):
        runner = make_runner(output)
        runner.add_rule(passing_rule("a"))
        runner.add_rule(passing_rule("b"))

        assert [g.metadata["id"] for g in runner.tests()] == ["a", "b"]

    def test_add_test_registers_prebuilt_group(self, output):
        runner = make_runner(output)
        group = runner.example_group("manual", body=lambda g: g.it("passes", lambda s: True))

        runner.add_test(group, Rule("manual-rule"))

        assert runner.tests() == [group]
        assert group.filtered_examples[0].metadata["id"] == "manual-rule"

    def test_compilation_error_propagates(self, output):
        rule = Rule("bad")
        rule.add_check("bogus", ("x",), None)
        runner = make_runner(output)

        with pytest.raises(Exception, match="bogus"):
            runner.add_rule(rule)
        assert runner.tests() == []

    def test_custom_accessors(self, output):
        runner = ControlRunner(
            {"output": output, "format": "json-min"},
            rule_id=lambda r: f"x-{r.id}",
            profile_id=lambda r: "px",
        )
        runner.add_rule(passing_rule())
        runner.run()

        [control] = runner.report()["controls"]
        assert control["id"] == "x-r1"
        assert control["profile_id"] == "px"

    def test_ordering_strategy(self, output):
        runner = ControlRunner(
            {"output": output, "format": "json-min"},
            ordering=lambda groups: sorted(groups, key=lambda g: g.metadata["id"]),
        )
        runner.add_rule(passing_rule("b"))
        runner.add_rule(passing_rule("a"))
        runner.run()

        assert [c["id"] for c in runner.report()["controls"]] == ["a", "b"]


class TestCustomRunner:
    """run() accepts any object with run_specs."""

    def test_custom_runner_receives_groups(self, output):
        class Recording:
            def __init__(self):
                self.groups = None

            def run_specs(self, groups):
                self.groups = list(groups)
                return 7

        runner = make_runner(output)
        runner.add_rule(passing_rule())
        recording = Recording()

        assert runner.run(recording) == 7
        assert recording.groups == runner.tests()


class TestSequentialRunner:
    """Notifications reach formatters in order."""

    def test_notification_order(self):
        events = []

        class Recorder:
            def __init__(self, output, color=False):
                pass

            def start(self, count):
                events.append(("start", count))

            def example_started(self, example):
                events.append(("started", example.description))

            def example_passed(self, example):
                events.append(("passed", example.description))

            def example_failed(self, example, exception):
                events.append(("failed", example.description))

            def example_pending(self, example, message):
                events.append(("pending", message))

            def stop(self, duration):
                events.append(("stop",))

            def close(self):
                events.append(("close",))

        context = RunContext(output=io.StringIO())
        context.add_formatter(Recorder)
        runner = ControlRunner({"output": io.StringIO()})

        def body(g):
            g.it("ok", lambda s: True)
            g.it("bad", lambda s: False)
            g.it("later")

        group = runner.example_group("x", body=body)

        assert SequentialRunner(context).run_specs([group]) == 1
        assert events == [
            ("start", 3),
            ("started", "ok"),
            ("passed", "ok"),
            ("started", "bad"),
            ("failed", "bad"),
            ("started", "later"),
            ("pending", "later"),
            ("stop",),
            ("close",),
        ]

    def test_formatters_without_hooks_are_tolerated(self):
        class Silent:
            def __init__(self, output, color=False):
                pass

        context = RunContext(output=io.StringIO())
        context.add_formatter(Silent)
        runner = ControlRunner({"output": io.StringIO()})
        group = runner.example_group("x", body=lambda g: g.it("ok", lambda s: True))

        assert SequentialRunner(context).run_specs([group]) == 0

    def test_result_ignores_non_examples(self):
        events = []

        class Recorder:
            def example_passed(self, example):
                events.append(example)

        result = ReportingResult([Recorder()])
        result.addSuccess(object())

        assert events == []

    def test_statuses_after_run(self):
        runner = ControlRunner({"output": io.StringIO()})
        group = runner.example_group("x", body=lambda g: g.it("ok", lambda s: True))

        SequentialRunner(RunContext(output=io.StringIO())).run_specs([group])

        assert group.filtered_examples[0].status == ExampleStatus.PASSED
