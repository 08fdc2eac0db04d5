"""
Backend adapters package.

Import built-in adapters so they register with the adapter registry.
"""

# Import adapters for side-effect registration
from .adapters import openai_adapter  # noqa: F401
from .adapters import cohere_gateway_adapter  # noqa: F401
from .adapters import anthropic_gateway_adapter  # noqa: F401

__all__ = [
    "openai_adapter",
    "cohere_gateway_adapter",
    "anthropic_gateway_adapter",
]
