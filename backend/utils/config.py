"""
Application settings

All environment-derived configuration lives in one Settings object that is
built once at startup and handed to every service.
"""

import os
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel

BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _resolve_path(path: Optional[str]) -> Optional[str]:
    """Make relative paths relative to the backend directory."""
    if not path:
        return None
    if not os.path.isabs(path):
        path = os.path.join(BACKEND_DIR, path)
    return path


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


class Settings(BaseModel):
    port: int = 3000
    log_level: str = "INFO"

    # LiteLLM (OpenAI-compatible completion endpoint)
    litellm_api_base: Optional[str] = None
    litellm_api_key: Optional[str] = None
    litellm_model: Optional[str] = None
    litellm_timeout_seconds: float = 120.0

    # Flow generation
    flow_template_path: Optional[str] = None
    flow_expert_prompt_path: str = os.path.join(BACKEND_DIR, "prompts", "SalesforceFlowExpert.md")
    flow_output_dir: str = os.path.join(BACKEND_DIR, "dre-2-sf-flows", "flows")
    dre_input_file: str = os.path.join(BACKEND_DIR, "data", "dre-rule.json")

    # Salesforce
    sf_login_url: str = "https://login.salesforce.com"
    sf_username: Optional[str] = None
    sf_password: Optional[str] = None
    sf_security_token: Optional[str] = None
    sf_deploy_poll_seconds: float = 2.0
    sf_deploy_timeout_seconds: float = 600.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from the process environment (and .env if present)."""
        load_dotenv()
        defaults = cls()
        return cls(
            port=int(os.getenv("PORT", defaults.port)),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
            litellm_api_base=os.getenv("LITELLM_API_BASE") or None,
            litellm_api_key=os.getenv("LITELLM_API_KEY") or None,
            litellm_model=os.getenv("LITELLM_MODEL") or None,
            litellm_timeout_seconds=_env_float("LITELLM_TIMEOUT_SECONDS", defaults.litellm_timeout_seconds),
            flow_template_path=_resolve_path(os.getenv("FLOW_TEMPLATE_PATH")),
            flow_expert_prompt_path=_resolve_path(os.getenv("FLOW_EXPERT_PROMPT_PATH")) or defaults.flow_expert_prompt_path,
            flow_output_dir=_resolve_path(os.getenv("FLOW_OUTPUT_DIR")) or defaults.flow_output_dir,
            dre_input_file=_resolve_path(os.getenv("DRE_INPUT_FILE")) or defaults.dre_input_file,
            sf_login_url=os.getenv("SF_LOGIN_URL") or defaults.sf_login_url,
            sf_username=os.getenv("SF_USERNAME") or None,
            sf_password=os.getenv("SF_PASSWORD") or None,
            sf_security_token=os.getenv("SF_SECURITY_TOKEN") or None,
            sf_deploy_poll_seconds=_env_float("SF_DEPLOY_POLL_SECONDS", defaults.sf_deploy_poll_seconds),
            sf_deploy_timeout_seconds=_env_float("SF_DEPLOY_TIMEOUT_SECONDS", defaults.sf_deploy_timeout_seconds),
        )

    @property
    def sf_domain(self) -> str:
        """
        Salesforce login domain derived from the login URL.

        https://login.salesforce.com      -> "login"
        https://test.salesforce.com       -> "test"
        https://acme.my.salesforce.com    -> "acme.my"
        """
        url = self.sf_login_url if "://" in self.sf_login_url else f"https://{self.sf_login_url}"
        host = urlparse(url).hostname or "login.salesforce.com"
        if host.endswith(".salesforce.com"):
            return host[: -len(".salesforce.com")]
        return host

    @property
    def sf_is_sandbox(self) -> bool:
        return self.sf_domain == "test"
