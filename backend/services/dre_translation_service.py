"""
DRE Translation Service

Sends the translator prompts to the completion endpoint and parses the
replies into the intermediate description consumed by flow generation.
"""

import asyncio
import json
from typing import Any, Awaitable, Dict, List, Optional

from schemas.dre_rule import DreRule
from schemas.flow import RuleTranslation
from services.completion_client import CompletionClient
from translators import DreCriteriaTranslator, DreResultTranslator, DreRuleTranslator
from utils.llm_json import parse_llm_json
from utils.logger import ComponentLogger, get_logger

TRANSLATION_TEMPERATURE = 0.2
TRANSLATION_MAX_TOKENS = 2000


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """
    Run awaitables concurrently and return their results in order.
    The first failure cancels the remaining ones and is re-raised.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        for task in tasks:
            if task in done and not task.cancelled() and task.exception() is not None:
                raise task.exception()
        return [task.result() for task in tasks]
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


class DreTranslationService:
    """
    Translates DRE rules into structured flow descriptions via the LLM.
    Malformed model replies raise LLMResponseFormatError.
    """

    def __init__(
        self,
        completion_client: CompletionClient,
        rule_translator: Optional[DreRuleTranslator] = None,
        criteria_translator: Optional[DreCriteriaTranslator] = None,
        result_translator: Optional[DreResultTranslator] = None,
        logger: Optional[ComponentLogger] = None,
    ):
        self.completion_client = completion_client
        self.rule_translator = rule_translator or DreRuleTranslator()
        self.criteria_translator = criteria_translator or DreCriteriaTranslator()
        self.result_translator = result_translator or DreResultTranslator()
        self.logger = logger or get_logger("DreTranslationService")

    async def translate_rule(self, dre_rule: DreRule) -> RuleTranslation:
        """Translate the rule, its criteria, and its results concurrently."""
        self.logger.info("Starting DRE rule translation process", ruleName=dre_rule.name)

        try:
            rule_prompts = self.rule_translator.generate_prompts(dre_rule)
            criteria_prompts = self.criteria_translator.generate_prompts(dre_rule)
            result_prompts = self.result_translator.generate_prompts(dre_rule)

            self.logger.debug(
                "Generated all translation prompts",
                rulePromptsCount=len(rule_prompts),
                criteriaPromptsCount=len(criteria_prompts),
                resultPromptsCount=len(result_prompts),
            )

            context_prompt = self._rule_context_prompt(dre_rule)

            rule_reply, criteria_reply, result_reply = await gather_or_cancel(
                self._process_prompts(rule_prompts + [context_prompt]),
                self._process_prompts(criteria_prompts + [context_prompt]),
                self._process_prompts(result_prompts + [context_prompt]),
            )

            translation = RuleTranslation(
                rule=parse_llm_json(rule_reply, expected=(dict,), source="rule translation"),
                criteria=parse_llm_json(criteria_reply, source="criteria translation"),
                results=parse_llm_json(result_reply, source="result translation"),
            )

            self.logger.info("DRE rule translation completed successfully", ruleName=dre_rule.name)
            return translation
        except Exception as e:
            self.logger.error("DRE rule translation failed", e, ruleName=dre_rule.name)
            raise

    async def translate_criteria_to_flow_criteria(self, dre_rules: List[DreRule]) -> List[Any]:
        """Translate the filter groups of every rule into flow decision criteria."""
        self.logger.info("Translating DRE criteria to flow criteria", ruleCount=len(dre_rules))
        replies = await gather_or_cancel(
            *(self._process_prompts(self.criteria_translator.generate_prompts(rule)) for rule in dre_rules)
        )
        return [parse_llm_json(reply, source="criteria translation") for reply in replies]

    async def translate_results_to_flow_actions(self, dre_rules: List[DreRule]) -> List[Any]:
        """Translate the result groups of every rule into flow record operations."""
        self.logger.info("Translating DRE results to flow actions", ruleCount=len(dre_rules))
        replies = await gather_or_cancel(
            *(self._process_prompts(self.result_translator.generate_prompts(rule)) for rule in dre_rules)
        )
        return [parse_llm_json(reply, source="result translation") for reply in replies]

    def _rule_context_prompt(self, dre_rule: DreRule) -> Dict[str, str]:
        return {
            "role": "user",
            "content": "Complete DRE Rule JSON for context:\n" + json.dumps(dre_rule.to_json_dict(), indent=2),
        }

    async def _process_prompts(self, prompts: List[Dict[str, str]]) -> str:
        return await self.completion_client.complete(
            prompts,
            temperature=TRANSLATION_TEMPERATURE,
            max_tokens=TRANSLATION_MAX_TOKENS,
        )
