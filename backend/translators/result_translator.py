"""
DRE Result Translator

Builds the prompts that describe DRE result groups (record creations and
updates) as Salesforce data operations.
"""

import json
from typing import Any, Dict, List, Optional

from schemas.dre_rule import DreRule
from utils.logger import ComponentLogger, get_logger

RESULT_SYSTEM_PROMPT = (
    "You are a Salesforce data operations expert. "
    "Analyze these DRE Result Groups and translate them into clear, human-readable descriptions "
    "of record updates and creations. For each group:\n"
    "1. Identify the objects being modified\n"
    "2. Specify the parent objects and path to the lookup relationship if this is updating related object\n"
    "3. Specify if it's a creation or update operation\n"
    "4. List the specific fields being modified\n"
    "5. Explain the business logic behind each operation\n"
    "Format each group as structured JSON with 'operationType', 'objects', 'fields', and 'businessLogic' properties. "
    "Return ONLY a JSON array of the translated groups (no markdown, no additional text). "
    "Order the groups in the same sequence as Result Group order."
)


class DreResultTranslator:
    """Prompt builder for result groups and results."""

    def __init__(self, logger: Optional[ComponentLogger] = None):
        self.logger = logger or get_logger("DreResultTranslator")

    def extract_result_groups(self, dre_rule: DreRule) -> List[Dict[str, Any]]:
        return [
            {
                "Id": group.id,
                "Name": group.name,
                "DRE__Description__c": group.description,
                "results": [r.to_json_dict() for r in dre_rule.active_results_for_group(group.id)],
            }
            for group in dre_rule.result_group_records
        ]

    def generate_prompts(self, dre_rule: DreRule) -> List[Dict[str, str]]:
        self.logger.info("Generating prompts for DRE rule results", ruleName=dre_rule.name)

        result_groups = self.extract_result_groups(dre_rule)
        self.logger.debug(
            "Result groups extracted",
            groupCount=len(result_groups),
            totalResults=sum(len(g["results"]) for g in result_groups),
        )

        return [
            {"role": "system", "content": RESULT_SYSTEM_PROMPT},
            {"role": "user", "content": json.dumps(result_groups, indent=2)},
        ]
