# healthtrack/schemas/common/common.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Optional

class CamelModel(BaseModel):
    """Serialises as camelCase for the web and mobile clients, accepts either casing."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class ErrorResponse(BaseModel):
    success: bool = False
    data: Optional[Any] = None
    error: str
    kind: str
    field: Optional[str] = None

class MessageResponse(BaseModel):
    success: bool = True
    message: str
    data: Optional[Dict[str, Any]] = None
