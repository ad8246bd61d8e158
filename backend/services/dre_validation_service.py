"""
DRE Validation Service

First pipeline stage. Rejects batches containing unsupported rule types and
strips inactive filters. Pure apart from logging.
"""

from typing import List, Optional

from schemas.dre_rule import AUTOMATION_RULE_TYPE, DreRule
from utils.errors import UnsupportedRuleTypeError
from utils.logger import ComponentLogger, get_logger


class DreValidationService:
    """Validates DRE rules and filters out inactive filter records."""

    def __init__(self, logger: Optional[ComponentLogger] = None):
        self.logger = logger or get_logger("DreValidationService")

    def validate_dre_type(self, dre_rules: List[DreRule]) -> None:
        """
        Validate that every rule is of type Automation.
        A single unsupported rule fails the whole batch.
        """
        for rule in dre_rules:
            if rule.rule_type != AUTOMATION_RULE_TYPE:
                raise UnsupportedRuleTypeError(rule.rule_type)

    def filter_inactive_records(self, dre_rules: List[DreRule]) -> List[DreRule]:
        """Deep copy the rules, keeping only active DRE filters."""
        processed = []
        for rule in dre_rules:
            processed_rule = rule.model_copy(deep=True)
            if processed_rule.filters is not None:
                active = [f for f in processed_rule.filters.records if f.is_active is True]
                processed_rule.filters = processed_rule.filters.model_copy(update={"records": active})
            processed.append(processed_rule)
        return processed

    def validate_and_process_rules(self, dre_rules: List[DreRule]) -> List[DreRule]:
        """Validate rule types, then filter inactive records."""
        try:
            self.logger.debug("Starting DRE rules validation and processing")

            self.validate_dre_type(dre_rules)
            processed_rules = self.filter_inactive_records(dre_rules)

            self.logger.info(
                "Successfully validated and processed DRE rules",
                ruleCount=len(processed_rules),
            )
            return processed_rules
        except Exception as e:
            self.logger.error("Failed to validate and process DRE rules", e)
            raise
