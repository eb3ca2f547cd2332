"""Shared fixtures: contexts built from inline YAML documents."""

from textwrap import dedent
from typing import Callable

import pytest

from speclint.config import LinterSettings
from speclint.rules.context import Context, create_openapi_context, create_swagger_context


@pytest.fixture
def settings() -> LinterSettings:
    """Default settings, independent of the environment."""
    return LinterSettings(
        ignore_extension="x-speclint-ignore",
        disabled_rules=[],
        min_severity="HINT",
    )


@pytest.fixture
def openapi_context(settings) -> Callable[[str], Context]:
    """Factory building a context from OpenAPI v3 YAML."""
    def build(content: str) -> Context:
        context = create_openapi_context(dedent(content), settings)
        assert context is not None
        return context
    return build


@pytest.fixture
def swagger_context(settings) -> Callable[[str], Context]:
    """Factory building a context from Swagger v2 YAML."""
    def build(content: str) -> Context:
        context = create_swagger_context(dedent(content), settings)
        assert context is not None
        return context
    return build
