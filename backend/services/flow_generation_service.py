"""
Flow Generation Service

Turns a translated DRE rule into a Salesforce Flow metadata file using the
LLM, validates the output contract, and saves the file locally.
"""

import json
import os
from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from schemas.flow import (
    FLOW_FILE_SUFFIX, GENERATE_FLOW_FUNCTION_NAME, REQUIRED_FLOW_XML_ELEMENTS,
    FlowArtifact, GeneratedFlow, get_flow_json_schema
)
from services.completion_client import CompletionClient
from utils.config import Settings
from utils.errors import FlowValidationError, LLMResponseFormatError
from utils.llm_json import parse_llm_json
from utils.logger import ComponentLogger, get_logger

GENERATION_REQUEST = (
    "Generate a Salesforce Flow based on these instructions following the provided guide "
    "and output format requirements"
)


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _write_text(path: str, content: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


def validate_flow_output(flow_info: Any) -> GeneratedFlow:
    """
    Enforce the generator output contract:
    - filename and flowContent are non-empty strings
    - filename is a bare file name
    - flowContent carries every required Flow XML element
    """
    if not isinstance(flow_info, dict):
        raise FlowValidationError("Invalid flow info: expected a JSON object")

    filename = flow_info.get("filename")
    if isinstance(filename, str):
        filename = filename.strip()
    if not filename or not isinstance(filename, str):
        raise FlowValidationError("Invalid flow info: missing or invalid filename")
    flow_content = flow_info.get("flowContent")
    if not flow_content or not isinstance(flow_content, str):
        raise FlowValidationError("Invalid flow info: missing or invalid flowContent")

    if os.path.basename(filename) != filename or filename in (".", ".."):
        raise FlowValidationError(f"Invalid flow info: filename must not contain a path: {filename}")

    for element in REQUIRED_FLOW_XML_ELEMENTS:
        if element not in flow_content:
            raise FlowValidationError(f"Missing required XML element: {element}")

    try:
        return GeneratedFlow(filename=filename, flow_content=flow_content)
    except ValidationError as e:
        raise FlowValidationError(f"Invalid flow info: {e}")


class FlowGenerationService:

    def __init__(
        self,
        settings: Settings,
        completion_client: CompletionClient,
        logger: Optional[ComponentLogger] = None,
    ):
        self.settings = settings
        self.completion_client = completion_client
        self.logger = logger or get_logger("FlowGenerationService")

    async def _get_system_prompt(self) -> str:
        """Load the Salesforce Flow expert guide; an unreadable guide yields an empty prompt."""
        try:
            return await run_in_threadpool(_read_text, self.settings.flow_expert_prompt_path)
        except OSError as e:
            self.logger.error("Error loading system prompt", e, path=self.settings.flow_expert_prompt_path)
            return ""

    async def _get_flow_template(self) -> Optional[str]:
        path = self.settings.flow_template_path
        if not path:
            return None
        try:
            return await run_in_threadpool(_read_text, path)
        except OSError as e:
            self.logger.error("Error loading flow template", e, path=path)
            return None

    async def build_messages(self, instructions: Dict[str, Any]) -> List[Dict[str, str]]:
        system_prompt = await self._get_system_prompt()
        messages = [{"role": "system", "content": system_prompt}]

        template = await self._get_flow_template()
        if template:
            messages.append({
                "role": "user",
                "content": "Reference Flow metadata template:\n" + template,
            })

        messages.append({
            "role": "user",
            "content": json.dumps({"instructions": instructions, "request": GENERATION_REQUEST}),
        })
        return messages

    async def generate_flow(self, instructions: Dict[str, Any]) -> GeneratedFlow:
        self.logger.info("Starting flow generation from instructions")

        if not instructions or not isinstance(instructions, dict):
            raise FlowValidationError("Invalid instructions provided")

        messages = await self.build_messages(instructions)
        self.logger.debug("Sending request to LiteLLM", model=self.completion_client.model)

        reply = await self.completion_client.complete_with_function(
            messages,
            name=GENERATE_FLOW_FUNCTION_NAME,
            description="Return the generated Salesforce Flow file name and metadata XML",
            parameters=get_flow_json_schema(),
        )

        try:
            flow_info = parse_llm_json(reply, expected=(dict,), source="flow generation")
        except LLMResponseFormatError as e:
            self.logger.error("Failed to parse LLM response", e, response=reply[:2000])
            raise

        flow = validate_flow_output(flow_info)
        if not flow.filename.endswith(FLOW_FILE_SUFFIX):
            self.logger.warning("Generated filename lacks the flow suffix", filename=flow.filename)

        self.logger.info("Flow generation completed successfully", filename=flow.filename)
        return flow

    async def save_flow(self, flow: GeneratedFlow) -> str:
        self.logger.info("Saving generated flow")

        flow_path = os.path.join(self.settings.flow_output_dir, flow.filename)
        await run_in_threadpool(_write_text, flow_path, flow.flow_content)

        self.logger.info("Flow saved successfully", path=flow_path)
        return flow_path

    async def generate_and_save_flow(self, instructions: Dict[str, Any]) -> FlowArtifact:
        """Generate a flow from the translated rule and write it to the output directory."""
        try:
            self.logger.info("Starting flow generation and save process")

            flow = await self.generate_flow(instructions)
            flow_path = await self.save_flow(flow)

            return FlowArtifact(filename=flow.filename, flow_content=flow.flow_content, path=flow_path)
        except Exception as e:
            self.logger.error("Error in flow generation and save process", e)
            raise
