from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pydantic import BaseModel
from typing import Optional, Any, Callable
import os

from utils.config import Settings, BACKEND_DIR
from utils.errors import MigrationError
from utils.logger import configure_logging, get_logger

from services.completion_client import CompletionClient
from services.dre_validation_service import DreValidationService
from services.dre_translation_service import DreTranslationService
from services.flow_generation_service import FlowGenerationService
from services.flow_deployment_service import FlowDeploymentService, flow_api_name_from_filename
from services.migration_service import DreMigrationService

PUBLIC_DIR = os.path.join(BACKEND_DIR, "public")

logger = get_logger("app")


class ServiceContainer:
    """All pipeline services, built once from the settings at startup."""

    def __init__(
        self,
        settings: Settings,
        completion_client: Optional[CompletionClient] = None,
        salesforce_factory: Optional[Callable] = None,
    ):
        self.settings = settings
        self.completion_client = completion_client or CompletionClient(settings)
        self.validation_service = DreValidationService()
        self.translation_service = DreTranslationService(self.completion_client)
        self.generation_service = FlowGenerationService(settings, self.completion_client)
        self.deployment_service = FlowDeploymentService(settings, salesforce_factory=salesforce_factory)
        self.migration_service = DreMigrationService(
            self.validation_service,
            self.translation_service,
            self.generation_service,
        )


def error_response(error: MigrationError, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "error": error.message, **extra},
    )


def unexpected_error_response(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"success": False, "error": message})


# ============================================================================
# REQUEST MODELS
# ============================================================================

class JsonInputRequest(BaseModel):
    jsonString: Optional[Any] = None

class DeployFlowRequest(BaseModel):
    filename: Optional[str] = None
    flowContent: Optional[str] = None


def create_app(settings: Optional[Settings] = None, services: Optional[ServiceContainer] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    services = services or ServiceContainer(settings)

    # Lifespan event handler
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting up DRE to Salesforce Flow migrator...")
        if not settings.litellm_api_key:
            logger.warning("LITELLM_API_KEY is not set in environment variables")
        if not settings.litellm_api_base:
            logger.warning("LITELLM_API_BASE is not set in environment variables")
        logger.info(f"Server is running on http://localhost:{settings.port}")
        yield
        logger.info("Shutting down DRE to Salesforce Flow migrator...")

    app = FastAPI(
        title="DRE to Salesforce Flow Migrator",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services

    # Configure CORS - Simplified for local use
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    if os.path.isdir(PUBLIC_DIR):
        app.mount("/static", StaticFiles(directory=PUBLIC_DIR), name="static")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.error("Request validation failed", url=str(request.url), errors=exc.errors())
        return JSONResponse(status_code=400, content={"success": False, "error": f"Invalid request: {exc.errors()}"})

    @app.exception_handler(MigrationError)
    async def migration_exception_handler(request: Request, exc: MigrationError):
        return error_response(exc)

    # ============================================================================
    # BASIC ENDPOINTS
    # ============================================================================

    @app.get("/")
    async def root():
        index_path = os.path.join(PUBLIC_DIR, "index.html")
        if os.path.exists(index_path):
            return FileResponse(index_path)
        return {"message": "DRE to Salesforce Flow Migrator API"}

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    @app.get("/api/test-litellm")
    async def test_litellm():
        """Check that the LiteLLM endpoint answers."""
        try:
            response = await services.completion_client.complete(
                [{"role": "user", "content": "Say hello world"}]
            )
            return {"success": True, "response": response}
        except Exception as e:
            logger.error("LiteLLM API Error", e)
            return unexpected_error_response("Failed to connect to LiteLLM")

    # ============================================================================
    # DRE PIPELINE ENDPOINTS
    # ============================================================================

    @app.post("/api/process-json")
    async def process_json(request: JsonInputRequest):
        """Validate DRE rules and return them with inactive filters removed."""
        try:
            logger.info("Starting JSON processing")
            rules = services.migration_service.process_json_input(request.jsonString)
            logger.info("JSON processing completed successfully")
            return {"success": True, "processedRules": [rule.to_json_dict() for rule in rules]}
        except MigrationError as e:
            return error_response(e)
        except Exception as e:
            logger.error("Failed to process JSON input", e)
            return JSONResponse(status_code=400, content={"success": False, "error": str(e)})

    @app.post("/api/migrate-dre-rule")
    async def migrate_dre_rule(request: JsonInputRequest):
        """Validate, translate and generate a Salesforce Flow for each DRE rule."""
        try:
            artifacts = await services.migration_service.migrate(request.jsonString)
            first = artifacts[0]
            return {
                "success": True,
                "fileName": first.filename,
                "flowContent": first.flow_content,
                "flows": [{"fileName": a.filename, "path": a.path} for a in artifacts],
            }
        except MigrationError as e:
            logger.error("DRE rule migration failed", e)
            return error_response(e)
        except Exception as e:
            logger.error("Unexpected error in DRE rule migration", e)
            return unexpected_error_response(f"Migration failed: {str(e)}")

    @app.api_route("/api/deploy-flow", methods=["GET", "POST"])
    async def deploy_flow(request: Optional[DeployFlowRequest] = None):
        """Deploy a generated flow to the configured Salesforce org."""
        payload = request or DeployFlowRequest()
        try:
            result = await services.deployment_service.deploy_flow(payload.filename, payload.flowContent)
            return {
                "success": True,
                "message": "Flow deployed successfully",
                "flowApiName": flow_api_name_from_filename(payload.filename),
                "deploymentResult": result.model_dump(),
            }
        except MigrationError as e:
            if e.status_code < 500:
                return error_response(e)
            return JSONResponse(
                status_code=e.status_code,
                content={"success": False, "error": "Failed to deploy Flow", "details": e.message},
            )
        except Exception as e:
            logger.error("Unexpected error in flow deployment", e)
            return JSONResponse(
                status_code=500,
                content={"success": False, "error": "Failed to deploy Flow", "details": str(e)},
            )

    # ============================================================================
    # AUXILIARY TRANSLATION ENDPOINTS (read the configured input file)
    # ============================================================================

    @app.get("/api/translate-dre-rule")
    async def translate_dre_rule():
        """Translate the filter groups of the input file into flow criteria."""
        try:
            rules = services.migration_service.load_input_file(settings.dre_input_file)
            flow_criteria = await services.translation_service.translate_criteria_to_flow_criteria(rules)
            return {"success": True, "flowCriteria": flow_criteria}
        except MigrationError as e:
            logger.error("DRE criteria translation failed", e)
            return error_response(e)
        except Exception as e:
            logger.error("Unexpected error in DRE criteria translation", e)
            return unexpected_error_response(f"Translation failed: {str(e)}")

    @app.get("/api/translate-dre-results")
    async def translate_dre_results():
        """Translate the result groups of the input file into flow record operations."""
        try:
            rules = services.migration_service.load_input_file(settings.dre_input_file)
            flow_actions = await services.translation_service.translate_results_to_flow_actions(rules)
            return {"success": True, "flowActions": flow_actions}
        except MigrationError as e:
            logger.error("DRE result translation failed", e)
            return error_response(e)
        except Exception as e:
            logger.error("Unexpected error in DRE result translation", e)
            return unexpected_error_response(f"Translation failed: {str(e)}")

    @app.get("/api/translate-dre-full")
    async def translate_dre_full():
        """Full rule, criteria and result translation of every rule in the input file."""
        try:
            rules = services.migration_service.load_input_file(settings.dre_input_file)
            translations = await services.migration_service.translate_rules(rules)
            return {"success": True, "translations": [t.model_dump() for t in translations]}
        except MigrationError as e:
            logger.error("DRE translation failed", e)
            return error_response(e)
        except Exception as e:
            logger.error("Unexpected error in DRE translation", e)
            return unexpected_error_response(f"Translation failed: {str(e)}")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
