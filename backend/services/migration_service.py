"""
DRE Migration Service

Chains the pipeline: validate -> translate -> generate flow.
"""

from typing import Any, List, Optional

from schemas.dre_rule import DreRule
from schemas.flow import FlowArtifact, RuleTranslation
from services.dre_translation_service import DreTranslationService
from services.dre_validation_service import DreValidationService
from services.flow_generation_service import FlowGenerationService
from utils.dre_input import load_dre_rules_file, parse_dre_rules
from utils.logger import ComponentLogger, get_logger


class DreMigrationService:

    def __init__(
        self,
        validation_service: DreValidationService,
        translation_service: DreTranslationService,
        generation_service: FlowGenerationService,
        logger: Optional[ComponentLogger] = None,
    ):
        self.validation_service = validation_service
        self.translation_service = translation_service
        self.generation_service = generation_service
        self.logger = logger or get_logger("DreMigrationService")

    def process_json_input(self, raw: Any) -> List[DreRule]:
        """Parse and validate raw DRE input. Rejects the whole batch on any unsupported rule."""
        rules = parse_dre_rules(raw)
        return self.validation_service.validate_and_process_rules(rules)

    def load_input_file(self, path: str) -> List[DreRule]:
        rules = load_dre_rules_file(path)
        return self.validation_service.validate_and_process_rules(rules)

    async def translate_rules(self, rules: List[DreRule]) -> List[RuleTranslation]:
        translations = []
        for rule in rules:
            translations.append(await self.translation_service.translate_rule(rule))
        return translations

    async def migrate(self, raw: Any) -> List[FlowArtifact]:
        """
        Convert every rule in the input into a saved Flow artifact, in input order.
        Files are written only once every rule has generated a valid flow.
        """
        self.logger.info("Starting DRE rule migration")

        rules = self.process_json_input(raw)
        flows = []
        for rule in rules:
            translation = await self.translation_service.translate_rule(rule)
            flows.append(await self.generation_service.generate_flow(translation.model_dump()))

        artifacts = []
        for flow in flows:
            path = await self.generation_service.save_flow(flow)
            artifacts.append(FlowArtifact(filename=flow.filename, flow_content=flow.flow_content, path=path))

        self.logger.info(
            "DRE rule migration completed",
            ruleCount=len(rules),
            files=[a.filename for a in artifacts],
        )
        return artifacts
