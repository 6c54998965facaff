"""api-testlab: test-suite execution engine for HTTP API collections."""

__version__ = "0.1.0"
