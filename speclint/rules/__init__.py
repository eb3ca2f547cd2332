"""Rule engine: metadata, context, registry and executor."""
