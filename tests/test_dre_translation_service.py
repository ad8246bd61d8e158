"""
Tests for the LLM-backed translation stage and its concurrent fan-out.
"""

import asyncio

import pytest

from services.dre_translation_service import DreTranslationService, gather_or_cancel
from utils.errors import CompletionServiceError, LLMResponseFormatError

from fakes import CRITERIA_TRANSLATION, RESULT_TRANSLATION, RULE_TRANSLATION, FakeCompletionClient


class TestTranslateRule:

    @pytest.mark.asyncio
    async def test_combines_three_translations(self, fake_completion, sample_rules):
        service = DreTranslationService(fake_completion)

        translation = await service.translate_rule(sample_rules[0])

        assert translation.rule == RULE_TRANSLATION
        assert translation.criteria == CRITERIA_TRANSLATION
        assert translation.results == RESULT_TRANSLATION
        assert len(fake_completion.calls) == 3

    @pytest.mark.asyncio
    async def test_each_prompt_set_gets_full_rule_context(self, fake_completion, sample_rules):
        await DreTranslationService(fake_completion).translate_rule(sample_rules[0])

        for messages in fake_completion.calls:
            assert messages[-1]["role"] == "user"
            assert messages[-1]["content"].startswith("Complete DRE Rule JSON for context:")

    @pytest.mark.asyncio
    async def test_malformed_reply_is_a_hard_failure(self, sample_rules):
        client = FakeCompletionClient(replies={"decision criteria": "Sure! Here are the criteria..."})

        with pytest.raises(LLMResponseFormatError):
            await DreTranslationService(client).translate_rule(sample_rules[0])

    @pytest.mark.asyncio
    async def test_fenced_json_reply_is_accepted(self, sample_rules):
        client = FakeCompletionClient(replies={"DRE Rule expert": '```json\n{"Rule Name": "X"}\n```'})

        translation = await DreTranslationService(client).translate_rule(sample_rules[0])
        assert translation.rule == {"Rule Name": "X"}

    @pytest.mark.asyncio
    async def test_endpoint_failure_propagates(self, sample_rules):
        client = FakeCompletionClient(replies={"data operations": CompletionServiceError("connection refused")})

        with pytest.raises(CompletionServiceError):
            await DreTranslationService(client).translate_rule(sample_rules[0])


class TestTranslateXToFlowY:

    @pytest.mark.asyncio
    async def test_criteria_to_flow_criteria(self, fake_completion, sample_rules):
        result = await DreTranslationService(fake_completion).translate_criteria_to_flow_criteria(sample_rules)

        assert result == [CRITERIA_TRANSLATION]
        assert len(fake_completion.calls) == 1
        assert "a0D5g00000Flt04EAF" not in fake_completion.all_prompt_text()

    @pytest.mark.asyncio
    async def test_results_to_flow_actions(self, fake_completion, sample_rules):
        result = await DreTranslationService(fake_completion).translate_results_to_flow_actions(sample_rules)

        assert result == [RESULT_TRANSLATION]


class TestGatherOrCancel:

    @pytest.mark.asyncio
    async def test_results_keep_order(self):
        async def value(v, delay):
            await asyncio.sleep(delay)
            return v

        assert await gather_or_cancel(value(1, 0.02), value(2, 0), value(3, 0.01)) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_first_failure_cancels_siblings(self):
        cancelled = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def fail():
            await asyncio.sleep(0)
            raise CompletionServiceError("boom")

        with pytest.raises(CompletionServiceError, match="boom"):
            await gather_or_cancel(slow(), fail())
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await gather_or_cancel() == []
