from src.core.errors.exceptions import (
    InstanceNotFoundException,
    ServiceUnavailableException,
)


class ScriptGenerationException(ServiceUnavailableException):
    code = "GENERATION_UNAVAILABLE"
    default_message = (
        "Script generation service is temporarily unavailable. Please try again later."
    )


class EmptyScriptException(ScriptGenerationException):
    code = "EMPTY_SCRIPT"
    default_message = (
        "Failed to generate a valid script. Please try rephrasing your description."
    )


class ScriptNotFoundException(InstanceNotFoundException):
    default_message = "Script not found"
