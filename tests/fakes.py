"""Test doubles and canned model replies."""

import json
from typing import Dict, List, Optional, Union

VALID_FLOW_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Flow xmlns="http://soap.sforce.com/2006/04/metadata">
    <apiVersion>62.0</apiVersion>
    <label>DRE Escalate High Value Opportunities</label>
    <processType>AutoLaunchedFlow</processType>
    <start>
        <object>Opportunity</object>
        <triggerType>RecordAfterSave</triggerType>
    </start>
    <status>Active</status>
</Flow>"""

RULE_TRANSLATION = {
    "Rule Name": "Escalate High Value Opportunities",
    "Rule Type": "Automation",
    "Rule Object": "Opportunity",
}
CRITERIA_TRANSLATION = [
    {
        "objectInfo": "Opportunity",
        "conditions": ["Amount > 100000", "Account.BillingCountry = Germany", "Account.BillingCountry = France"],
        "logicOperator": "1 AND (2 OR 3)",
        "businessLogic": "High value opportunities in priority regions",
    }
]
RESULT_TRANSLATION = [
    {"operationType": "update", "objects": ["Account"], "fields": ["Strategic__c"], "businessLogic": "Flag account"},
    {"operationType": "create", "objects": ["Task"], "fields": ["Subject"], "businessLogic": "Follow up"},
]


class FakeCompletionClient:
    """
    Scripted stand-in for CompletionClient.
    Replies are chosen by the system prompt of each request; every request is recorded.
    """

    def __init__(self, flow_reply: Union[str, List[str], None] = None, replies: Optional[Dict[str, str]] = None):
        self.model = "test-model"
        self.calls: List[List[Dict[str, str]]] = []
        self.function_calls: List[List[Dict[str, str]]] = []
        self.flow_reply = flow_reply if flow_reply is not None else json.dumps(
            {"filename": "DRE_Escalate_High_Value_Opportunities.flow-meta.xml", "flowContent": VALID_FLOW_XML}
        )
        self.replies = {
            "DRE Rule expert": json.dumps(RULE_TRANSLATION),
            "decision criteria": json.dumps(CRITERIA_TRANSLATION),
            "data operations": json.dumps(RESULT_TRANSLATION),
        }
        self.replies.update(replies or {})

    async def complete(self, messages, temperature=None, max_tokens=None) -> str:
        self.calls.append(messages)
        system = messages[0]["content"] if messages and messages[0]["role"] == "system" else ""
        for marker, reply in self.replies.items():
            if marker in system:
                if isinstance(reply, Exception):
                    raise reply
                return reply
        return "hello world"

    async def complete_with_function(self, messages, name, description, parameters) -> str:
        self.function_calls.append(messages)
        if isinstance(self.flow_reply, list):
            return self.flow_reply[len(self.function_calls) - 1]
        return self.flow_reply

    def all_prompt_text(self) -> str:
        return "\n".join(m["content"] for call in self.calls + self.function_calls for m in call)
