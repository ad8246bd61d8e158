"""
Error taxonomy for the migration pipeline.

Every error carries the HTTP status it maps to at the API boundary.
"""


class MigrationError(Exception):
    """Base class for all pipeline errors"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# Input validation (400)

class InputValidationError(MigrationError):
    """Raised for missing request fields or malformed input JSON"""
    status_code = 400


class UnsupportedRuleTypeError(InputValidationError):
    """Raised when a DRE rule is not of type Automation"""

    def __init__(self, rule_type):
        super().__init__(
            f'Currently, "{rule_type}" rule type is not supported. Only Automation type is supported.'
        )
        self.rule_type = rule_type


# External dependencies and model output (500)

class CompletionServiceError(MigrationError):
    """Raised when the completion endpoint cannot be reached or fails"""
    pass


class LLMResponseFormatError(MigrationError):
    """Raised when a model reply cannot be parsed into the expected JSON"""
    pass


class FlowValidationError(MigrationError):
    """Raised when generated flow output violates the output contract"""
    pass


class SalesforceConnectionError(MigrationError):
    """Raised when login to the Salesforce org fails"""
    pass


class FlowDeploymentError(MigrationError):
    """Raised when the Metadata API deployment fails"""
    pass
