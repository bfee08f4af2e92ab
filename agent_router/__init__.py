"""Agent Router Proxy: OpenRouter chat relay, code generation and PDF text extraction."""

__version__ = "0.1.0"
