"""
Flow Deployment Service

Deploys a generated Flow metadata file to a Salesforce org through the
Metadata API (simple-salesforce). Each deployment logs in afresh.
"""

import asyncio
import io
import time
import zipfile
from typing import Any, Callable, Dict, Optional

from fastapi.concurrency import run_in_threadpool
from simple_salesforce import Salesforce

from schemas.flow import FLOW_API_VERSION, FLOW_FILE_SUFFIX, DeploymentResult
from utils.config import Settings
from utils.errors import (
    FlowDeploymentError, InputValidationError, SalesforceConnectionError
)
from utils.logger import ComponentLogger, get_logger

PACKAGE_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<Package xmlns="http://soap.sforce.com/2006/04/metadata">
    <types>
        <members>*</members>
        <name>Flow</name>
    </types>
    <version>{FLOW_API_VERSION}</version>
</Package>"""

# Metadata API deploy states that end polling
TERMINAL_STATES = {"Succeeded", "SucceededPartial", "Failed", "Canceled"}

DEPLOY_OPTIONS = {
    "singlePackage": True,
    "rollbackOnError": True,
    "checkOnly": False,
}


def flow_api_name_from_filename(filename: str) -> str:
    return filename[: -len(FLOW_FILE_SUFFIX)]


def create_deployment_zip(flow_metadata: str, flow_api_name: str) -> bytes:
    """Build the deploy package: package.xml plus flows/<name>.flow-meta.xml."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("package.xml", PACKAGE_XML)
        zf.writestr(f"flows/{flow_api_name}{FLOW_FILE_SUFFIX}", flow_metadata)
    return buffer.getvalue()


def _deployment_error_messages(deployment_detail: Optional[Dict[str, Any]]) -> str:
    errors = (deployment_detail or {}).get("errors") or []
    messages = []
    for error in errors:
        message = error.get("message") or error.get("problem")
        if message:
            messages.append(message)
    return ", ".join(messages)


class FlowDeploymentService:

    def __init__(
        self,
        settings: Settings,
        salesforce_factory: Optional[Callable[..., Salesforce]] = None,
        logger: Optional[ComponentLogger] = None,
    ):
        self.settings = settings
        self.salesforce_factory = salesforce_factory or Salesforce
        self.logger = logger or get_logger("FlowDeploymentService")

    def validate_request(self, filename: Optional[str], flow_content: Optional[str]) -> str:
        """Check the payload before any remote call; returns the flow API name."""
        if not filename or not flow_content:
            raise InputValidationError("Request must include filename and flowContent")
        if not filename.endswith(FLOW_FILE_SUFFIX):
            raise InputValidationError(f"Invalid filename format. Must end with {FLOW_FILE_SUFFIX}")
        return flow_api_name_from_filename(filename)

    async def deploy_flow(self, filename: Optional[str], flow_content: Optional[str]) -> DeploymentResult:
        self.logger.info("Starting Flow deployment process")
        try:
            flow_api_name = self.validate_request(filename, flow_content)
            self.logger.debug("Flow API name extracted", flowApiName=flow_api_name)

            sf = await self._get_salesforce_connection()
            self.logger.debug("Connected to Salesforce successfully")

            zip_bytes = create_deployment_zip(flow_content, flow_api_name)
            self.logger.debug("Deployment zip created successfully", size=len(zip_bytes))

            result = await self._deploy_flow_to_org(sf, zip_bytes)
            self.logger.info("Flow deployment process completed successfully", flowApiName=flow_api_name)
            return result
        except Exception as e:
            self.logger.error("Flow deployment process failed", e, endpoint="deployFlow")
            raise

    async def _get_salesforce_connection(self) -> Salesforce:
        settings = self.settings
        try:
            return await run_in_threadpool(
                self.salesforce_factory,
                username=settings.sf_username,
                password=settings.sf_password,
                security_token=settings.sf_security_token or "",
                domain=settings.sf_domain,
            )
        except Exception as e:
            self.logger.error("Failed to connect to Salesforce", e, domain=settings.sf_domain)
            raise SalesforceConnectionError(f"Salesforce connection failed: {e}")

    async def _deploy_flow_to_org(self, sf: Salesforce, zip_bytes: bytes) -> DeploymentResult:
        """Start the deployment and wait for a terminal state."""
        try:
            started = await run_in_threadpool(
                sf.deploy, io.BytesIO(zip_bytes), self.settings.sf_is_sandbox, **DEPLOY_OPTIONS
            )
        except Exception as e:
            raise FlowDeploymentError(f"Deployment error: {e}")

        async_id = started.get("asyncId")
        if not async_id:
            raise FlowDeploymentError(f"Deployment error: no deployment id returned (state {started.get('state')})")
        self.logger.debug("Deployment started", asyncId=async_id, state=started.get("state"))

        status = await self._wait_for_deployment(sf, async_id)
        state = status.get("state")
        detail = status.get("deployment_detail") or {}

        if state not in ("Succeeded", "SucceededPartial"):
            messages = _deployment_error_messages(detail) or status.get("state_detail") or state
            raise FlowDeploymentError(f"Deployment failed: {messages}")

        return DeploymentResult(
            id=async_id,
            state=state,
            success=True,
            state_detail=status.get("state_detail"),
            components_deployed=detail.get("deployed_count"),
            components_total=detail.get("total_count"),
            errors=detail.get("errors") or [],
        )

    async def _wait_for_deployment(self, sf: Salesforce, async_id: str) -> Dict[str, Any]:
        deadline = time.monotonic() + self.settings.sf_deploy_timeout_seconds
        while True:
            try:
                status = await run_in_threadpool(sf.checkDeployStatus, async_id)
            except Exception as e:
                raise FlowDeploymentError(f"Deployment error: {e}")

            state = status.get("state")
            self.logger.debug("Deployment status", asyncId=async_id, state=state)
            if state in TERMINAL_STATES:
                return status

            if time.monotonic() >= deadline:
                raise FlowDeploymentError(
                    f"Deployment error: timed out after {self.settings.sf_deploy_timeout_seconds}s (state {state})"
                )
            await asyncio.sleep(self.settings.sf_deploy_poll_seconds)
