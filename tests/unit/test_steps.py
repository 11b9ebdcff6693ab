"""Unit tests for the pipeline steps: classify, fetch_catalog, recommend, resolve."""
import json

import pytest

from agents.core.cancellation import CancellationToken, OperationCancelled
from agents.mentor_agent import steps
from agents.mentor_agent.types import ContentRef, ContentType, PromptContent, StepType


@pytest.mark.unit
class TestClassify:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer", ["true", "TRUE", "  True \n", "tRuE"])
    async def test_true_answers(self, gateway_factory, session, answer):
        gateway = gateway_factory({StepType.RECOMMENDATION_CHECK: answer})
        assert await steps.classify(gateway, session, "How do I learn SQL?") is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer", ["false", "", "yes", "true.", "True, they want resources", "\"true\""])
    async def test_anything_else_is_false(self, gateway_factory, session, answer):
        gateway = gateway_factory({StepType.RECOMMENDATION_CHECK: answer})
        assert await steps.classify(gateway, session, "What is 2+2?") is False

    @pytest.mark.asyncio
    async def test_sends_raw_message_with_check_step(self, gateway_factory, session):
        gateway = gateway_factory({StepType.RECOMMENDATION_CHECK: "false"})
        await steps.classify(gateway, session, "What is 2+2?")
        (request,) = gateway.requests
        assert request.step_type == StepType.RECOMMENDATION_CHECK
        assert request.message == "What is 2+2?"
        assert request.user_email == session.email

    @pytest.mark.asyncio
    async def test_gateway_failure_propagates(self, gateway_factory, session):
        gateway = gateway_factory({StepType.RECOMMENDATION_CHECK: ConnectionError("unreachable")})
        with pytest.raises(ConnectionError):
            await steps.classify(gateway, session, "hi")


@pytest.mark.unit
class TestFetchCatalog:
    @pytest.mark.asyncio
    async def test_one_query_per_type_in_catalog_order(self, content_repository):
        catalog = await steps.fetch_catalog(content_repository)
        assert sorted(content_repository.list_calls) == sorted(steps.CATALOG_TYPES)
        assert [c.type for c in catalog] == list(steps.CATALOG_TYPES)
        news = next(c for c in catalog if c.type is ContentType.NEWS)
        assert news.name == "New open model released"

    @pytest.mark.asyncio
    async def test_failed_type_is_skipped(self, content_repository):
        content_repository.failing = {ContentType.TOOLS}
        catalog = await steps.fetch_catalog(content_repository)
        assert ContentType.TOOLS not in {c.type for c in catalog}
        assert len(catalog) == 4

    @pytest.mark.asyncio
    async def test_cancelled_token_aborts(self, content_repository):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelled):
            await steps.fetch_catalog(content_repository, cancel=token)


@pytest.mark.unit
class TestParseRecommendations:
    def test_valid_array(self):
        raw = '[{"type": "modules", "id": "m1"}, {"type": "prompts", "id": "p1"}]'
        assert steps.parse_recommendations(raw) == [
            ContentRef(type=ContentType.MODULES, id="m1"),
            ContentRef(type=ContentType.PROMPTS, id="p1"),
        ]

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "Here are some picks: modules m1",
            '```json\n[{"type": "modules", "id": "m1"}]\n```',
            '{"type": "modules", "id": "m1"}',
            "[{'type': 'modules', 'id': 'm1'}]",
            "null",
        ],
    )
    def test_non_array_output_is_empty(self, raw):
        assert steps.parse_recommendations(raw) == []

    def test_singular_and_mixed_case_types_are_normalized(self):
        raw = '[{"type": "Module", "id": "m1"}, {"type": "learning-plan", "id": "lp1"}, {"type": "prompt", "id": "p1"}]'
        refs = steps.parse_recommendations(raw)
        assert [r.type for r in refs] == [ContentType.MODULES, ContentType.LEARNING_PLANS, ContentType.PROMPTS]

    def test_bad_entries_are_dropped(self):
        raw = json.dumps(
            [
                {"type": "videos", "id": "v1"},
                {"type": "tools"},
                {"type": "tools", "id": ""},
                "t1",
                {"type": "tools", "id": 7},
            ]
        )
        assert steps.parse_recommendations(raw) == [ContentRef(type=ContentType.TOOLS, id="7")]

    def test_capped_at_limit_keeping_model_order(self):
        raw = json.dumps([{"type": "modules", "id": f"m{i}"} for i in range(8)])
        refs = steps.parse_recommendations(raw, limit=5)
        assert [r.id for r in refs] == ["m0", "m1", "m2", "m3", "m4"]

    def test_surrounding_whitespace_is_allowed(self):
        assert len(steps.parse_recommendations('\n  [{"type": "news", "id": "n1"}]  \n')) == 1


@pytest.mark.unit
class TestRecommend:
    @pytest.mark.asyncio
    async def test_sends_catalog_and_parses_answer(self, gateway_factory, session, content_repository):
        catalog = await steps.fetch_catalog(content_repository)
        gateway = gateway_factory({StepType.CONTENT_ANALYSIS: '[{"type": "prompts", "id": "p1"}]'})
        refs = await steps.recommend(gateway, session, "How can I learn about AI prompting?", catalog)
        assert refs == [ContentRef(type=ContentType.PROMPTS, id="p1")]
        (request,) = gateway.requests
        assert request.step_type == StepType.CONTENT_ANALYSIS
        assert request.content_data == catalog

    @pytest.mark.asyncio
    async def test_malformed_answer_gives_no_refs(self, gateway_factory, session):
        gateway = gateway_factory({StepType.CONTENT_ANALYSIS: "I recommend the prompting module!"})
        assert await steps.recommend(gateway, session, "teach me", []) == []


@pytest.mark.unit
class TestResolve:
    @pytest.mark.asyncio
    async def test_missing_and_failing_refs_are_dropped_in_order(self, content_repository):
        content_repository.failing = {ContentType.NEWS}
        refs = [
            ContentRef(type=ContentType.PROMPTS, id="p1"),
            ContentRef(type=ContentType.MODULES, id="does-not-exist"),
            ContentRef(type=ContentType.NEWS, id="n1"),
            ContentRef(type=ContentType.LEARNING_PLANS, id="lp1"),
            ContentRef(type=ContentType.MODULES, id="m1"),
        ]
        items = await steps.resolve(content_repository, refs)
        assert len(items) < len(refs)
        assert [(i.type, i.id) for i in items] == [("prompts", "p1"), ("learning_plans", "lp1"), ("modules", "m1")]
        assert isinstance(items[0], PromptContent)
        assert items[0].display_name == "Prompt Engineering Basics"

    @pytest.mark.asyncio
    async def test_empty_refs_make_no_lookups(self, content_repository):
        assert await steps.resolve(content_repository, []) == []
        assert content_repository.get_calls == []

    @pytest.mark.asyncio
    async def test_cancellation_is_not_swallowed(self, content_repository):
        token = CancellationToken()
        token.cancel("stop")
        with pytest.raises(OperationCancelled):
            await steps.resolve(content_repository, [ContentRef(type=ContentType.MODULES, id="m1")], cancel=token)
