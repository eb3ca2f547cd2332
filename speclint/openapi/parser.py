"""
Loading of raw specification text into typed document trees.

YAML is a superset of JSON, so a single `yaml.safe_load` call reads both
formats. Text that cannot be loaded, or that does not describe a document
of the requested dialect, yields ``None`` instead of an exception.
"""

import datetime
import logging
from enum import Enum
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .legacy import SwaggerDocument
from .models import OpenAPI

logger = logging.getLogger(__name__)


class Dialect(str, Enum):
    """Supported specification dialects."""
    OPENAPI = "openapi"
    SWAGGER = "swagger"


def load_document(content: str) -> Optional[Dict[str, Any]]:
    """Load JSON or YAML text into a mapping with string keys."""
    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as e:
        logger.debug(f"Document is neither valid JSON nor YAML: {e}")
        return None

    if not isinstance(raw, dict):
        logger.debug(f"Document root is a {type(raw).__name__}, expected a mapping")
        return None

    return _normalize(raw, {})


def detect_dialect(raw: Dict[str, Any]) -> Optional[Dialect]:
    """Detect the dialect from the version marker at the document root."""
    if "swagger" in raw:
        return Dialect.SWAGGER
    if "openapi" in raw:
        return Dialect.OPENAPI
    return None


def parse_openapi(content: str) -> Optional[OpenAPI]:
    """Parse text as an OpenAPI v3 document."""
    raw = load_document(content)
    if raw is None:
        return None
    try:
        return OpenAPI.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Document does not have the shape of an OpenAPI document: {e.error_count()} errors")
        logger.debug(str(e))
        return None


def parse_swagger(content: str) -> Optional[SwaggerDocument]:
    """Parse text as a Swagger v2 document."""
    raw = load_document(content)
    if raw is None:
        return None
    try:
        return SwaggerDocument.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Document does not have the shape of a Swagger document: {e.error_count()} errors")
        logger.debug(str(e))
        return None


def _normalize(value: Any, seen: Dict[int, Any]) -> Any:
    """Stringify mapping keys and dates; YAML reads ``200:`` as an int."""
    if isinstance(value, dict):
        if id(value) in seen:
            return seen[id(value)]
        result: Dict[str, Any] = {}
        seen[id(value)] = result
        for key, item in value.items():
            result[_scalar_to_str(key)] = _normalize(item, seen)
        return result
    if isinstance(value, list):
        if id(value) in seen:
            return seen[id(value)]
        items: list = []
        seen[id(value)] = items
        items.extend(_normalize(item, seen) for item in value)
        return items
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return value


def _scalar_to_str(key: Any) -> str:
    if isinstance(key, bool):
        return str(key).lower()
    if isinstance(key, (datetime.date, datetime.datetime)):
        return key.isoformat()
    return str(key)
