"""Core configuration, errors, cache, and language-model client."""
