"""
Validation of inbound create/update payloads.
"""

from typing import Any, Dict, List, Sequence, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from catalog.exceptions import ValidationError
from catalog.models import BookCreate, BookUpdate

ModelT = TypeVar("ModelT", bound=BaseModel)


def format_errors(errors: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten pydantic errors into field/message/type entries."""
    details = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        details.append({
            "field": ".".join(location) or None,
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        })
    return details


def _validate(model: Type[ModelT], payload: Any) -> ModelT:
    if isinstance(payload, model):
        return payload
    if not isinstance(payload, dict):
        raise ValidationError(details=[{
            "field": None,
            "message": "Request body must be a JSON object",
            "type": "dict_type",
        }])
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(details=format_errors(e.errors())) from e


def validate_create(payload: Any) -> BookCreate:
    """
    Validate a create payload.

    Raises:
        ValidationError: listing every violated field
    """
    return _validate(BookCreate, payload)


def validate_update(payload: Any) -> BookUpdate:
    """
    Validate a partial-update payload.

    Raises:
        ValidationError: listing every violated field
    """
    return _validate(BookUpdate, payload)
