"""Policy query assistant: claim decisions from uploaded insurance policies."""

__version__ = "0.1.0"
