"""Exception hierarchy for the chat proxy."""


class CodeWizardError(Exception):
    """Base class for all service errors."""


class ConfigurationError(CodeWizardError):
    """Request is missing something required before any network call."""


class UpstreamModelError(CodeWizardError):
    """The chat-completions endpoint failed or returned an unusable body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class RemoteServiceError(CodeWizardError):
    """The documentation service call failed."""


class EnvelopeDecodeError(RemoteServiceError):
    """A server-sent-event body did not contain a usable JSON-RPC envelope."""


class ToolArgumentsError(CodeWizardError):
    """Tool call arguments could not be decoded."""


class UnknownToolError(CodeWizardError):
    """The model requested a tool that is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name
