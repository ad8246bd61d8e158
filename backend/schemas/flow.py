"""
Flow Schemas

Output side of the pipeline: the translated rule description handed to the
flow generator, the generator's structured reply, and the saved artifact.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

FLOW_FILE_SUFFIX = ".flow-meta.xml"
FLOW_API_VERSION = "62.0"

REQUIRED_FLOW_XML_ELEMENTS = [
    '<Flow xmlns="http://soap.sforce.com/2006/04/metadata">',
    f"<apiVersion>{FLOW_API_VERSION}</apiVersion>",
    "<status>Active</status>",
    "<processType>AutoLaunchedFlow</processType>",
]

GENERATE_FLOW_FUNCTION_NAME = "generate_salesforce_flow"


class RuleTranslation(BaseModel):
    """
    LLM-authored description of one DRE rule.
    rule: rule-level summary, criteria: translated filter groups,
    results: translated result groups.
    """
    model_config = ConfigDict(frozen=True)

    rule: Dict[str, Any] = Field(default_factory=dict)
    criteria: Any = Field(default_factory=list)
    results: Any = Field(default_factory=list)


class GeneratedFlow(BaseModel):
    """Structured reply expected from the flow generation call."""
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    flow_content: str = Field(alias="flowContent")


class FlowArtifact(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    flow_content: str = Field(alias="flowContent")
    path: Optional[str] = None


class DeploymentResult(BaseModel):
    """Outcome of a Metadata API deployment as reported by Salesforce."""
    id: Optional[str] = None
    state: str
    success: bool
    state_detail: Optional[str] = None
    components_deployed: Optional[int] = None
    components_total: Optional[int] = None
    errors: List[Dict[str, Any]] = Field(default_factory=list)


def get_flow_json_schema() -> Dict[str, Any]:
    """
    JSON schema of the generate_salesforce_flow function arguments.
    Function arguments arrive as provider-encoded JSON, so the multi-line
    XML in flowContent needs no extra escaping on our side.
    """
    return {
        "type": "object",
        "properties": {
            "filename": {
                "type": "string",
                "description": f"Flow file name, the flow API name followed by '{FLOW_FILE_SUFFIX}'"
            },
            "flowContent": {
                "type": "string",
                "description": "Complete Salesforce Flow metadata XML document"
            }
        },
        "required": ["filename", "flowContent"]
    }
