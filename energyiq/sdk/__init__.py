"""
SDK for EnergyIQ.

Provides the AI assistant used for tips and free-form questions.
"""

from .assistant_client import AssistantReply, EnergyAssistant

__all__ = ["AssistantReply", "EnergyAssistant"]
