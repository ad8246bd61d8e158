"""
DRE Criteria Translator

Builds the prompts that turn DRE filter groups and their active filters into
Salesforce Flow decision criteria.
"""

import json
from typing import Any, Dict, List, Optional

from schemas.dre_rule import DreRule
from utils.logger import ComponentLogger, get_logger

CRITERIA_SYSTEM_PROMPT = (
    "You are a Salesforce Flow expert specializing in decision criteria. "
    "Analyze these DRE Filter Groups and translate them into clear, human-readable conditions. For each group:\n"
    "1. Identify the object being queried\n"
    "2. Specify any parent-child relationships in the object path\n"
    "3. List all filter conditions and their operators\n"
    "4. Explain how the conditions should be combined (AND/OR)\n"
    "5. Describe the business logic these filters implement\n"
    "Format each group as structured JSON with 'objectInfo', 'conditions', 'logicOperator', and 'businessLogic' properties. "
    "Return ONLY a JSON array of the translated filter groups (no markdown, no additional text)."
)


class DreCriteriaTranslator:
    """Prompt builder for filter groups and filters."""

    def __init__(self, logger: Optional[ComponentLogger] = None):
        self.logger = logger or get_logger("DreCriteriaTranslator")

    def extract_filter_groups(self, dre_rule: DreRule) -> List[Dict[str, Any]]:
        """
        Each filter group with the active filters that reference it.
        Filters belong to a group by DRE__DRE_Group__c == group Id.
        """
        return [
            {
                "Id": group.id,
                "Name": group.name,
                "DRE__Condition__c": group.condition,
                "DRE__Object_Name__c": group.object_name,
                "DRE__Object_Path__c": group.object_path,
                "filters": [f.to_json_dict() for f in dre_rule.active_filters_for_group(group.id)],
            }
            for group in dre_rule.filter_group_records
        ]

    def generate_prompts(self, dre_rule: DreRule) -> List[Dict[str, str]]:
        self.logger.info("Generating prompts for DRE rule filters", ruleName=dre_rule.name)

        filter_groups = self.extract_filter_groups(dre_rule)
        self.logger.debug(
            "Filter groups extracted",
            groupCount=len(filter_groups),
            totalFilters=sum(len(g["filters"]) for g in filter_groups),
        )

        return [
            {"role": "system", "content": CRITERIA_SYSTEM_PROMPT},
            {"role": "user", "content": json.dumps(filter_groups, indent=2)},
        ]
