"""
Schema validation for inbound requests and for provider output.

Both directions share one result shape so handlers can treat "the client sent
junk" and "the model sent junk" the same way, only mapping them to different
HTTP statuses.
"""
from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .schemas import RoastRequest, RoastResponse

M = TypeVar("M", bound=BaseModel)


@dataclass
class ValidationResult(Generic[M]):
    ok: bool
    data: Optional[M] = None
    errors: List[str] = field(default_factory=list)


def format_errors(exc: ValidationError) -> List[str]:
    """Render every issue as '<field path>: <message>', one per field."""
    messages: List[str] = []
    seen = set()
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or "body"
        if path in seen:
            continue
        seen.add(path)
        messages.append(f"{path}: {err['msg']}")
    return messages


def validate(model: Type[M], raw: Any) -> ValidationResult[M]:
    try:
        return ValidationResult(ok=True, data=model.model_validate(raw))
    except ValidationError as e:
        return ValidationResult(ok=False, errors=format_errors(e))


def validate_roast_request(raw: Any) -> ValidationResult[RoastRequest]:
    return validate(RoastRequest, raw)


def validate_roast_response(raw: Any) -> ValidationResult[RoastResponse]:
    return validate(RoastResponse, raw)
