"""Prompt Relay - prompt analysis, enrichment and image generation relay."""

__version__ = "0.1.0"

from promptrelay.core.config import RelayConfig, config
from promptrelay.core.orchestrator import OperationResult, PromptOrchestrator

__all__ = [
    "OperationResult",
    "PromptOrchestrator",
    "RelayConfig",
    "config",
]
