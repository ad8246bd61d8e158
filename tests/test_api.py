"""
HTTP surface tests

Covers the request/response contracts of every endpoint with the completion
endpoint and the Salesforce SDK replaced by test doubles.
"""

import json
import os

from fastapi.testclient import TestClient

from app import ServiceContainer, create_app
from utils.errors import CompletionServiceError, LLMResponseFormatError

from fakes import VALID_FLOW_XML, FakeCompletionClient

FILENAME = "DRE_Escalate_High_Value_Opportunities.flow-meta.xml"


class TestBasicEndpoints:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_index_page(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "DRE Rule to Salesforce Flow" in response.text

    def test_litellm_check(self, client):
        assert client.get("/api/test-litellm").json() == {"success": True, "response": "hello world"}

    def test_litellm_check_failure(self, settings, salesforce_factory):
        fake = FakeCompletionClient()

        async def unreachable(*args, **kwargs):
            raise CompletionServiceError("connection refused")

        fake.complete = unreachable
        app = create_app(settings, ServiceContainer(settings, completion_client=fake,
                                                    salesforce_factory=salesforce_factory))

        response = TestClient(app).get("/api/test-litellm")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to connect to LiteLLM"}


class TestProcessJson:

    def test_returns_rules_without_inactive_filters(self, client, sample_rules_json):
        response = client.post("/api/process-json", json={"jsonString": json.dumps(sample_rules_json)})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        filters = body["processedRules"][0]["DRE__DRE_Filters__r"]["records"]
        assert [f["Id"] for f in filters] == ["a0D5g00000Flt01EAF", "a0D5g00000Flt02EAF", "a0D5g00000Flt03EAF"]

    def test_missing_json_string(self, client):
        response = client.post("/api/process-json", json={})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Request must include a jsonString field"}

    def test_error_status_comes_from_error_class(self, client, services, monkeypatch):
        def fail(raw):
            raise LLMResponseFormatError("Invalid response format from LLM: empty")

        monkeypatch.setattr(services.migration_service, "process_json_input", fail)

        response = client.post("/api/process-json", json={"jsonString": "[]"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Invalid response format from LLM: empty"}


class TestMigrateDreRule:

    def test_full_pipeline(self, client, settings, fake_completion, sample_rules_json):
        response = client.post("/api/migrate-dre-rule", json={"jsonString": json.dumps(sample_rules_json)})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["fileName"] == FILENAME
        assert body["flowContent"] == VALID_FLOW_XML
        assert body["flows"] == [{"fileName": FILENAME, "path": os.path.join(settings.flow_output_dir, FILENAME)}]
        assert os.path.exists(os.path.join(settings.flow_output_dir, FILENAME))

        assert len(fake_completion.calls) == 3
        assert len(fake_completion.function_calls) == 1

    def test_inactive_filter_never_reaches_a_prompt(self, client, fake_completion):
        rule = {
            "Name": "Two filters",
            "DRE__Type__c": "Automation",
            "DRE__DRE_Filter_Groups__r": {"records": [{"Id": "grp1", "Name": "Group", "DRE__Condition__c": "1"}]},
            "DRE__DRE_Filters__r": {"records": [
                {"Id": "flt-on", "DRE__DRE_Group__c": "grp1", "DRE__IsActive__c": True,
                 "DRE__Field__c": "Amount"},
                {"Id": "flt-off", "DRE__DRE_Group__c": "grp1", "DRE__IsActive__c": False,
                 "DRE__Field__c": "InactiveMarkerField"},
            ]},
        }

        response = client.post("/api/migrate-dre-rule", json={"jsonString": json.dumps([rule])})

        assert response.json()["success"] is True
        prompt_text = fake_completion.all_prompt_text()
        assert "flt-on" in prompt_text
        assert "flt-off" not in prompt_text
        assert "InactiveMarkerField" not in prompt_text

    def test_workflow_rule_is_rejected_without_output(self, client, settings, fake_completion, workflow_rules_json):
        response = client.post("/api/migrate-dre-rule", json={"jsonString": json.dumps(workflow_rules_json)})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "rule type is not supported" in body["error"]
        assert fake_completion.calls == []
        assert not os.path.exists(settings.flow_output_dir)

    def test_failed_rule_leaves_no_files_behind(self, settings, salesforce_factory, sample_rules_json):
        second = dict(sample_rules_json[0], Name="Second Rule")
        fake = FakeCompletionClient(flow_reply=[
            json.dumps({"filename": FILENAME, "flowContent": VALID_FLOW_XML}),
            json.dumps({"filename": "DRE_Second_Rule.flow-meta.xml", "flowContent": "<Flow/>"}),
        ])
        app = create_app(settings, ServiceContainer(settings, completion_client=fake,
                                                    salesforce_factory=salesforce_factory))

        response = TestClient(app).post(
            "/api/migrate-dre-rule", json={"jsonString": json.dumps(sample_rules_json + [second])}
        )

        assert response.status_code == 500
        assert len(fake.function_calls) == 2
        assert not os.path.exists(settings.flow_output_dir)

    def test_malformed_json_string(self, client):
        response = client.post("/api/migrate-dre-rule", json={"jsonString": "{not json"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid JSON input")

    def test_invalid_generated_flow(self, settings, salesforce_factory, sample_rules_json):
        fake = FakeCompletionClient(flow_reply=json.dumps({"filename": FILENAME, "flowContent": "<Flow/>"}))
        app = create_app(settings, ServiceContainer(settings, completion_client=fake,
                                                    salesforce_factory=salesforce_factory))

        response = TestClient(app).post("/api/migrate-dre-rule", json={"jsonString": json.dumps(sample_rules_json)})

        assert response.status_code == 500
        assert response.json()["error"].startswith("Missing required XML element")


class TestDeployFlow:

    def test_deploy(self, client, salesforce_connection):
        response = client.post("/api/deploy-flow", json={"filename": FILENAME, "flowContent": VALID_FLOW_XML})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Flow deployed successfully"
        assert body["flowApiName"] == "DRE_Escalate_High_Value_Opportunities"
        assert body["deploymentResult"]["state"] == "Succeeded"
        salesforce_connection.deploy.assert_called_once()

    def test_wrong_suffix_fails_before_remote_call(self, client, salesforce_factory):
        response = client.post("/api/deploy-flow", json={"filename": "Flow.xml", "flowContent": VALID_FLOW_XML})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "Must end with .flow-meta.xml" in response.json()["error"]
        salesforce_factory.assert_not_called()

    def test_get_without_body(self, client, salesforce_factory):
        response = client.get("/api/deploy-flow")

        assert response.status_code == 400
        assert response.json()["error"] == "Request must include filename and flowContent"
        salesforce_factory.assert_not_called()

    def test_deployment_failure_shape(self, client, salesforce_connection):
        salesforce_connection.checkDeployStatus.return_value = {
            "state": "Failed",
            "deployment_detail": {"errors": [{"message": "Field Strategic__c does not exist"}]},
        }

        response = client.post("/api/deploy-flow", json={"filename": FILENAME, "flowContent": VALID_FLOW_XML})

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Failed to deploy Flow",
            "details": "Deployment failed: Field Strategic__c does not exist",
        }


class TestTranslationEndpoints:

    def test_translate_dre_rule(self, client, fake_completion):
        body = client.get("/api/translate-dre-rule").json()

        assert body["success"] is True
        assert body["flowCriteria"][0][0]["logicOperator"] == "1 AND (2 OR 3)"
        assert "a0D5g00000Flt04EAF" not in fake_completion.all_prompt_text()

    def test_translate_dre_results(self, client):
        body = client.get("/api/translate-dre-results").json()

        assert body["success"] is True
        assert [g["operationType"] for g in body["flowActions"][0]] == ["update", "create"]

    def test_translate_dre_full(self, client):
        body = client.get("/api/translate-dre-full").json()

        assert body["success"] is True
        assert set(body["translations"][0]) == {"rule", "criteria", "results"}

    def test_missing_input_file(self, settings, services):
        settings = settings.model_copy(update={"dre_input_file": "/nonexistent/dre.json"})
        response = TestClient(create_app(settings, services)).get("/api/translate-dre-results")

        assert response.status_code == 400
        assert response.json()["error"].startswith("DRE input file not found")
