"""Core functionality for prompt refinement and image generation.

Architecture Overview
---------------------
The core module follows a layered architecture:

1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with PROMPTRELAY_ in .env files

2. **Inference Layer** (inference.py):
   - One pooled async HTTP client for the hosted chat and image models
   - Failures surface as InferenceError, never retried

3. **Pipeline Layer** (orchestrator.py, elements.py, templates.py):
   - Analyze, enrich and generate operations returning OperationResult
   - Best-effort element-map parsing with the raw-prompt fallback
   - Fixed instruction templates for each chat call

Usage Example
-------------
    from promptrelay.core import InferenceClient, PromptOrchestrator, config

    orchestrator = PromptOrchestrator(InferenceClient(config), config)
    result = await orchestrator.analyze("un lapin")
    if result.ok:
        print(result.value.elements)
"""

from promptrelay.core.config import RelayConfig, config
from promptrelay.core.elements import AnalysisResult, extract_json_object, parse_analysis
from promptrelay.core.inference import InferenceClient, InferenceError
from promptrelay.core.orchestrator import OperationResult, PromptOrchestrator, decode_image

__all__ = [
    "AnalysisResult",
    "InferenceClient",
    "InferenceError",
    "OperationResult",
    "PromptOrchestrator",
    "RelayConfig",
    "config",
    "decode_image",
    "extract_json_object",
    "parse_analysis",
]
