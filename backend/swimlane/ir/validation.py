from dataclasses import dataclass, field
from typing import Any, List, Optional
from .errors import PipelineError


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[PipelineError] = field(default_factory=list)
    data: Optional[Any] = None

    @classmethod
    def success(cls, data: Any = None):
        return cls(is_valid=True, errors=[], data=data)

    @classmethod
    def failure(cls, errors: List[PipelineError]):
        return cls(is_valid=False, errors=errors)

    @property
    def messages(self) -> List[str]:
        return [str(e) for e in self.errors]
