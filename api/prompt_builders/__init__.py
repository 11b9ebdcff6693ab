"""
Gateway prompt builders. Prompt text lives here, on the server; clients only
send the step type and its data.
"""

from api.prompt_builders.mentor import build_gateway_prompt

__all__ = [
    "build_gateway_prompt",
]
