"""
Deterministic Translator Layer

Builds the LLM prompts for each part of a DRE rule.
No network calls happen here; see services.dre_translation_service.
"""

from .rule_translator import DreRuleTranslator
from .criteria_translator import DreCriteriaTranslator
from .result_translator import DreResultTranslator

__all__ = ['DreRuleTranslator', 'DreCriteriaTranslator', 'DreResultTranslator']
