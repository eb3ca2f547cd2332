"""Document model and reverse-AST machinery for API specifications."""
