"""Rule-based linter for OpenAPI v3 and Swagger v2 API specifications."""

__version__ = "0.1.0"
