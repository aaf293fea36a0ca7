"""Tests for survey planning and spec-file loading."""

import io

import pytest

from autospec.core.errors import ModelResponseError, PlanValidationError, SpecFileError
from autospec.core.models import TestPlan
from autospec.exploration.planner import SpecPlanner, extract_links, load_specs, parse_specs, same_origin

from ..conftest import TEST_URL, completion


class TestLinks:

    def test_extract_links(self):
        html = """
        <a href="/about">About</a>
        <a href="/about#team">Team</a>
        <a href="https://github.com/x">GitHub</a>
        <a href="mailto:hi@example.com">Mail</a>
        <a href="javascript:void(0)">Nothing</a>
        <a>No href</a>
        """
        assert extract_links(html, "http://localhost:3000/") == [
            "http://localhost:3000/about",
            "https://github.com/x",
        ]

    def test_same_origin(self):
        assert same_origin("http://localhost:3000/a", "http://localhost:3000/")
        assert not same_origin("https://localhost:3000/a", "http://localhost:3000/")
        assert not same_origin("http://example.com/", "http://localhost:3000/")


class TestSpecPlanner:

    @pytest.mark.asyncio
    async def test_plan_returns_specs_in_order_and_truncates(self, capturing_browser, mock_model, png):
        frames = [await capturing_browser.capture(None)]
        mock_model.complete.return_value = completion(
            TestPlan(array_of_specs=["First", "Second", "Third"]), 300, 40)
        planner = SpecPlanner(capturing_browser, mock_model)

        specs = await planner.plan(frames, limit=2)

        assert specs == ["First", "Second"]
        assert planner.prompt_tokens == 300
        assert planner.completion_tokens == 40
        messages, schema = mock_model.complete.await_args.args
        assert schema is TestPlan
        content = messages[1]["content"]
        assert "arrayOfSpecs" in content[0]["text"]
        assert content[1]["type"] == "image_url"

    @pytest.mark.asyncio
    async def test_invalid_plan_is_run_fatal(self, capturing_browser, mock_model):
        mock_model.complete.side_effect = ModelResponseError("Response does not match TestPlan",
                                                             prompt_tokens=5, completion_tokens=1)
        planner = SpecPlanner(capturing_browser, mock_model)

        with pytest.raises(PlanValidationError):
            await planner.plan([await capturing_browser.capture(None)])
        assert planner.prompt_tokens == 5

    @pytest.mark.asyncio
    async def test_survey_follows_same_origin_links(self, capturing_browser, mock_model, mock_page):
        planner = SpecPlanner(capturing_browser, mock_model)

        frames = await planner.survey(mock_page, TEST_URL, max_pages=3)

        visited = [c.args[0] for c in mock_page.goto.await_args_list]
        assert visited == [TEST_URL, "http://localhost:3000/about"]
        assert len(frames) == 2
        names = [c.kwargs["name"] for c in capturing_browser.capture.await_args_list]
        assert names == ["screenshot-0", "screenshot-1"]

    @pytest.mark.asyncio
    async def test_single_page_survey(self, capturing_browser, mock_model, mock_page):
        planner = SpecPlanner(capturing_browser, mock_model)
        frames = await planner.survey(mock_page, TEST_URL)
        assert len(frames) == 1
        mock_page.goto.assert_awaited_once_with(TEST_URL)

    @pytest.mark.asyncio
    async def test_unreachable_site_cannot_be_planned(self, capturing_browser, mock_model, mock_page):
        mock_page.goto.side_effect = RuntimeError("net::ERR_NAME_NOT_RESOLVED")
        planner = SpecPlanner(capturing_browser, mock_model)

        with pytest.raises(PlanValidationError):
            await planner.survey_and_plan(mock_page, TEST_URL)
        mock_model.complete.assert_not_called()


class TestSpecFiles:

    def test_parse_specs(self):
        assert parse_specs('["a", "b"]') == ["a", "b"]

    @pytest.mark.parametrize("text", ['{"specs": []}', '["a", 1]', "not json"])
    def test_parse_specs_rejects_bad_content(self, text):
        with pytest.raises(SpecFileError):
            parse_specs(text)

    def test_load_specs_from_file(self, tmp_path):
        path = tmp_path / "specs.json"
        path.write_text('["Adding a todo shows it in the list"]', encoding="utf-8")
        assert load_specs(str(path)) == ["Adding a todo shows it in the list"]

    def test_load_specs_from_stdin(self):
        assert load_specs("-", stdin=io.StringIO('["from stdin"]')) == ["from stdin"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(SpecFileError):
            load_specs(str(tmp_path / "nope.json"))
