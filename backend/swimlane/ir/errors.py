from dataclasses import dataclass


@dataclass(frozen=True)
class PipelineError:
    field: str    # dotted payload path or stage name
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class NoPayloadFound(Exception):
    """Raised when free text carries no object or XML payload."""

    def __init__(self, message: str = "no structured payload found in text"):
        super().__init__(message)
        self.message = message


class GeneratorError(Exception):
    """Raised when the text-generation collaborator call fails."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
