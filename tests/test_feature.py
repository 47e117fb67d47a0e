"""Tests for feature compilation and sequential evaluation."""

import pytest

from widgetqa.engine.compiler import CallStep, ExpectationStep
from widgetqa.engine.feature import Feature
from widgetqa.engine.widget import Widget
from widgetqa.errors import CompileError, FeatureFailed

from conftest import EXPECTED_TEXTS

FAILURE_REASON = "It's a trap!"


def _feature(scenario, widgets):
    return Feature("Test feature", scenario, widgets)


def _failing_step(suffix=""):
    async def step():
        raise RuntimeError(FAILURE_REASON + str(suffix))
    return step


def _raising_step(message=FAILURE_REASON):
    def step():
        raise Exception(message)
    return step


def _namespaced(texts, modify=False):
    return {
        f"TestWidget.{key}": text + (" **modified**" if modify else "")
        for key, text in texts.items()
    }


@pytest.mark.asyncio
class TestFunctionalScenarios:

    async def test_empty_feature_is_accepted(self, widgets):
        feature = _feature([], widgets)
        assert feature.steps == []
        await feature.test()

    async def test_raising_function_is_an_error(self, widgets):
        with pytest.raises(FeatureFailed) as exc_info:
            await _feature([_raising_step()], widgets).test()
        assert exc_info.value.failures == []
        assert exc_info.value.errors == [FAILURE_REASON]

    async def test_boom(self, widgets):
        with pytest.raises(FeatureFailed) as exc_info:
            await _feature([_raising_step("boom")], widgets).test()
        assert exc_info.value.failures == []
        assert exc_info.value.errors == ["boom"]

    async def test_failing_coroutine_is_a_failure(self, widgets):
        with pytest.raises(FeatureFailed) as exc_info:
            await _feature([_failing_step()], widgets).test()
        assert exc_info.value.errors == []
        assert exc_info.value.failures == [FAILURE_REASON]

    async def test_multiple_failures_keep_their_order(self, widgets):
        with pytest.raises(FeatureFailed) as exc_info:
            await _feature([_failing_step(0), _failing_step(1), _failing_step(2)], widgets).test()
        assert exc_info.value.failures == [FAILURE_REASON + "0", FAILURE_REASON + "1", FAILURE_REASON + "2"]
        assert exc_info.value.errors == []

    async def test_failures_and_errors_are_split_by_source(self, widgets):
        scenario = [_failing_step(0), _raising_step("e1"), _failing_step(2), _raising_step("e3")]
        with pytest.raises(FeatureFailed) as exc_info:
            await _feature(scenario, widgets).test()
        assert exc_info.value.failures == [FAILURE_REASON + "0", FAILURE_REASON + "2"]
        assert exc_info.value.errors == ["e1", "e3"]

    async def test_failure_does_not_stop_later_steps(self, widgets):
        calls = []
        scenario = [_raising_step(), lambda: calls.append("after error"),
                    _failing_step(), lambda: calls.append("after failure")]
        with pytest.raises(FeatureFailed):
            await _feature(scenario, widgets).test()
        assert calls == ["after error", "after failure"]

    async def test_plain_functions_are_called(self, widgets):
        called = []
        await _feature([lambda: called.append(True)], widgets).test()
        assert called == [True]

    async def test_lists_are_bound_as_arguments(self, widgets):
        marker = {"called": False}

        def mark(arg):
            arg["called"] = True

        await _feature([mark, [marker]], widgets).test()
        assert marker["called"] is True

    async def test_primitives_are_bound_as_single_argument(self, widgets):
        received = []
        await _feature([received.append, "hello"], widgets).test()
        assert received == ["hello"]

    async def test_exception_without_message_is_described_by_type(self, widgets):
        def step():
            raise KeyError()

        with pytest.raises(FeatureFailed) as exc_info:
            await _feature([step], widgets).test()
        assert exc_info.value.errors == ["KeyError"]

    async def test_evaluate_returns_result(self, widgets):
        result = await _feature([_failing_step()], widgets).evaluate()
        assert result.passed is False
        assert result.failures == [FAILURE_REASON]
        assert result.description == "Test feature"

    async def test_evaluate_passing(self, widgets):
        result = await _feature([], widgets).evaluate()
        assert result.passed is True
        assert result.failures == []
        assert result.errors == []


class TestWidgetStateScenarios:

    def test_expectations_are_compiled_into_steps(self, widgets):
        feature = _feature([_namespaced(EXPECTED_TEXTS)], widgets)
        assert len(feature.steps) == 1
        assert isinstance(feature.steps[0], ExpectationStep)
        assert feature.steps[0] == ExpectationStep(_namespaced(EXPECTED_TEXTS), widgets)

    @pytest.mark.asyncio
    async def test_matching_expectations_pass(self, widgets):
        await _feature([_namespaced(EXPECTED_TEXTS)], widgets).test()

    @pytest.mark.asyncio
    async def test_empty_expectation_passes(self, widgets):
        await _feature([{}], widgets).test()

    @pytest.mark.asyncio
    async def test_mismatch_is_rejected_with_clear_reason(self, widgets):
        wrong = _namespaced(EXPECTED_TEXTS, modify=True)
        first_key = next(iter(wrong))

        with pytest.raises(FeatureFailed) as exc_info:
            await _feature([wrong], widgets).test()

        assert len(exc_info.value.failures) == 1
        reason = exc_info.value.failures[0]
        assert first_key in reason
        assert wrong[first_key] in reason
        assert EXPECTED_TEXTS[first_key.split(".")[1]] in reason

    def test_unknown_widget_throws_on_creation(self, widgets):
        with pytest.raises(CompileError):
            _feature([{"toto": "toto"}], widgets)

    def test_unknown_widget_with_attribute_throws_on_creation(self, widgets):
        with pytest.raises(CompileError, match="NoSuchWidget.field"):
            _feature([{"NoSuchWidget.field": "x"}], widgets)

    def test_element_missing_on_page_does_not_throw_on_creation(self, widgets):
        _feature([{"TestWidget.missing": "missing"}], widgets)

    def test_undeclared_element_does_not_throw_on_creation(self, widgets):
        _feature([{"TestWidget.notDeclared": "x"}], widgets)

    @pytest.mark.asyncio
    async def test_missing_element_is_one_failure(self, widgets):
        with pytest.raises(FeatureFailed) as exc_info:
            await _feature([{"TestWidget.missing": "toto"}], widgets).test()
        assert exc_info.value.errors == []
        assert exc_info.value.failures == ['Element "TestWidget.missing" does not exist on the page.']

    @pytest.mark.asyncio
    async def test_undeclared_element_is_one_failure(self, widgets):
        with pytest.raises(FeatureFailed) as exc_info:
            await _feature([{"TestWidget.notDeclared": "toto"}], widgets).test()
        assert len(exc_info.value.failures) == 1
        assert "TestWidget.notDeclared" in exc_info.value.failures[0]


class TestWidgetScenarios:

    @pytest.mark.asyncio
    async def test_action_then_expectation(self, widgets, test_widget):
        feature = _feature([
            test_widget.fill, ["Paris"],
            {"TestWidget.field": "Paris"},
        ], widgets)

        assert len(feature.steps) == 2
        assert feature.steps[0] == CallStep(test_widget.fill, ("Paris",))
        await feature.test()

    @pytest.mark.asyncio
    async def test_action_then_mismatching_expectation(self, widgets, test_widget):
        feature = _feature([
            test_widget.fill, ["Paris"],
            {"TestWidget.field": "14"},
        ], widgets)

        with pytest.raises(FeatureFailed) as exc_info:
            await feature.test()
        assert exc_info.value.failures == ['TestWidget.field was "Paris" instead of "14"']
        assert exc_info.value.errors == []

    @pytest.mark.asyncio
    async def test_link_shortcut_step(self, widgets, test_widget, mock_driver):
        await _feature([test_widget.p3], widgets).test()
        mock_driver.click.assert_awaited_once_with("#p3 a")

    @pytest.mark.asyncio
    async def test_failed_click_is_a_failure(self, widgets, test_widget, mock_driver):
        mock_driver.click.side_effect = RuntimeError("element is not clickable")
        with pytest.raises(FeatureFailed) as exc_info:
            await _feature([test_widget.p3], widgets).test()
        assert exc_info.value.failures == ["element is not clickable"]

    def test_compiling_twice_gives_the_same_steps(self, widgets, test_widget):
        scenario = [test_widget.fill, ["Paris"], {"TestWidget.field": "Paris"}, test_widget.p3]
        first = _feature(scenario, widgets)
        second = _feature(scenario, widgets)
        assert first.steps == second.steps
        assert [getattr(s, "args", None) for s in first.steps] == [getattr(s, "args", None) for s in second.steps]

    def test_widgets_are_snapshotted(self, widgets):
        feature = _feature([], widgets)
        widgets["Other"] = object()
        assert "Other" not in feature.widgets

    @pytest.mark.asyncio
    async def test_clock_lookup_mismatch(self, mock_driver):
        async def lookup(widget, town):
            await widget.result.clear()
            await widget.result.send_keys(town)

        clock = Widget("ClockWidget", {"result": {"css": "input#field"}}, {"lookup": lookup}, mock_driver)
        feature = Feature(
            "Looking up Paris shows 14h",
            [clock.lookup, ["Paris"], {"ClockWidget.result": "14"}],
            {"ClockWidget": clock},
        )

        assert len(feature.steps) == 2
        with pytest.raises(FeatureFailed) as exc_info:
            await feature.test()
        assert exc_info.value.failures == ['ClockWidget.result was "Paris" instead of "14"']
