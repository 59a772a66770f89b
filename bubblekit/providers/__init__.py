"""Model gateway module."""

from bubblekit.providers.base import GatewayError, ModelGateway
from bubblekit.providers.gemini_provider import GeminiProvider

__all__ = ["GatewayError", "GeminiProvider", "ModelGateway"]
