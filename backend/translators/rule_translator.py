"""
DRE Rule Translator

Builds the prompts that summarise a DRE rule at rule level.
Deterministic: no I/O, no LLM calls.
"""

import json
from typing import Any, Dict, List, Optional

from schemas.dre_rule import DreRule
from utils.logger import ComponentLogger, get_logger

RULE_SYSTEM_PROMPT = """You are a DRE Rule expert specializing in extracting DRE Rule criteria from a JSON object. Summarize the JSON object into a DRE Rule criteria object following these requirements:
1. Required Fields:
- Rule Name
- Rule Description
- Rule Type
- Rule Active Status
- Rule Object
- Rule Trigger Event
2. Optional Fields:
- Rule Filter Criteria
- Rule Action Criteria
3. Business Logic:
- Extract the rule name from the JSON object
- Extract the rule description from the JSON object
4. Output:
- Respond with ONLY a JSON object (no markdown, no additional text) with the following structure:
{
    "Rule Name": ruleName,
    "Rule Description": ruleDescription,
    "Rule Type": ruleType,
    "Rule Active Status": ruleActiveStatus,
    "Rule Object": ruleObject,
    "Rule Trigger Event": ruleTriggerEvent,
    "Rule Filter Criteria": ruleFilterCriteria,
    "Rule Action Criteria": ruleActionCriteria,
    "Business Logic": businessLogic
}"""


class DreRuleTranslator:
    """Prompt builder for the rule-level summary."""

    def __init__(self, logger: Optional[ComponentLogger] = None):
        self.logger = logger or get_logger("DreRuleTranslator")

    def extract_rule_info(self, dre_rule: DreRule) -> Dict[str, Any]:
        return {
            "Name": dre_rule.name,
            "Description": dre_rule.description,
            "Type": dre_rule.rule_type,
            "IsActive": dre_rule.is_active,
            "Object": dre_rule.object_name,
            "TriggerEvent": dre_rule.trigger_event,
            "FilterCriteria": [g.to_json_dict() for g in dre_rule.filter_group_records],
            "ActionCriteria": [g.to_json_dict() for g in dre_rule.result_group_records],
        }

    def generate_prompts(self, dre_rule: DreRule) -> List[Dict[str, str]]:
        self.logger.info("Generating prompts for DRE rule translation", ruleName=dre_rule.name)

        rule_info = self.extract_rule_info(dre_rule)
        self.logger.debug("Rule information extracted", ruleInfo=rule_info)

        return [
            {"role": "system", "content": RULE_SYSTEM_PROMPT},
            {"role": "user", "content": json.dumps(rule_info, indent=2)},
        ]
