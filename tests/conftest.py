"""Pytest configuration and shared fixtures."""

import copy
import json
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app import ServiceContainer, create_app
from schemas.dre_rule import DreRule
from utils.config import Settings

from fakes import FakeCompletionClient

BACKEND_DIR = Path(__file__).parent.parent / "backend"


@pytest.fixture
def sample_rules_json() -> List[Dict[str, Any]]:
    """The sample DRE export shipped with the backend."""
    with open(BACKEND_DIR / "data" / "dre-rule.json") as f:
        return json.load(f)


@pytest.fixture
def sample_rules(sample_rules_json) -> List[DreRule]:
    return [DreRule.model_validate(r) for r in sample_rules_json]


@pytest.fixture
def workflow_rules_json(sample_rules_json) -> List[Dict[str, Any]]:
    rules = copy.deepcopy(sample_rules_json)
    rules[0]["DRE__Type__c"] = "Workflow"
    return rules


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        litellm_api_base="http://litellm.test",
        litellm_api_key="test-key",
        litellm_model="test-model",
        flow_output_dir=str(tmp_path / "flows"),
        flow_expert_prompt_path=str(BACKEND_DIR / "prompts" / "SalesforceFlowExpert.md"),
        dre_input_file=str(BACKEND_DIR / "data" / "dre-rule.json"),
        sf_username="user@example.com",
        sf_password="secret",
        sf_security_token="TOKEN",
        sf_deploy_poll_seconds=0,
        sf_deploy_timeout_seconds=5,
    )


@pytest.fixture
def fake_completion() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def salesforce_connection() -> MagicMock:
    sf = MagicMock()
    sf.deploy.return_value = {"asyncId": "0Af5g00000DePlOY", "state": "Queued"}
    sf.checkDeployStatus.return_value = {
        "state": "Succeeded",
        "state_detail": None,
        "deployment_detail": {"total_count": 1, "failed_count": 0, "deployed_count": 1, "errors": []},
        "unit_test_detail": {},
    }
    return sf


@pytest.fixture
def salesforce_factory(salesforce_connection) -> MagicMock:
    return MagicMock(return_value=salesforce_connection)


@pytest.fixture
def services(settings, fake_completion, salesforce_factory) -> ServiceContainer:
    return ServiceContainer(settings, completion_client=fake_completion, salesforce_factory=salesforce_factory)


@pytest.fixture
def client(settings, services) -> TestClient:
    """Test client fixture"""
    return TestClient(create_app(settings, services))
