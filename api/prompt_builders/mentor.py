"""Gateway prompts for the AI mentor, one template per step type."""

from __future__ import annotations

from agents.core.prompt_builder import as_json_block, build_from_template
from agents.mentor_agent.composer import CURRENT_MESSAGE_LABEL, HISTORY_HEADER
from agents.mentor_agent.types import GatewayRequest, StepType

TEMPLATE_RECOMMENDATION_CHECK = """Analyze this user message and determine if they are asking for learning recommendations or if their question would benefit from learning content recommendations.

User message: "{message}"

Return ONLY "true" or "false" - nothing else. Return "true" if:
- They explicitly ask for learning recommendations
- They ask how to learn something
- They ask about tools, resources, or materials for a topic
- Their question would be best answered by recommending learning content
- They mention wanting to understand or get better at something

Return "false" if:
- They're asking a direct factual question
- They want definitions or explanations
- They're having a general conversation
- They're asking about something unrelated to learning"""

TEMPLATE_CONTENT_ANALYSIS = """You are a learning recommendation engine. Analyze the user's request and the available learning content to recommend the most relevant items.

User request: "{message}"

Available learning content:
{content_data}

CRITICAL: You MUST return ONLY a valid JSON array. Do not include any explanatory text, markdown formatting, or additional content before or after the JSON. Your response must be pure JSON that can be parsed directly.

Return a JSON array of objects with "type" and "id" fields for the most relevant learning content (maximum {max_items} items). Only include content that directly relates to the user's learning goals.

Required format (return ONLY this, nothing else):
[
  {{"type": "modules", "id": "uuid-here"}},
  {{"type": "tools", "id": "uuid-here"}},
  {{"type": "learning_plans", "id": "uuid-here"}}
]

Be selective - only recommend highly relevant content. RETURN ONLY THE JSON ARRAY, NO OTHER TEXT."""

TEMPLATE_FINAL_RESPONSE = """You are a helpful AI learning mentor. The user asked: "{message}"

Based on their request, I've identified these relevant learning resources:
{selected_content}

Provide a friendly, helpful response that:
1. Acknowledges their learning request
2. Explains why these specific resources will help them
3. Gives brief descriptions of each recommended resource
4. Encourages them to explore the content

Keep the response conversational and motivating. The resources will be displayed as clickable cards below your message."""

TEMPLATE_CHAT_WITH_HISTORY = """You are a helpful AI learning mentor. The user is having an ongoing conversation with you. Consider the conversation history when providing your response.

{message}

Provide a helpful response that addresses their question directly. Keep responses conversational and acknowledge the context from previous messages when relevant."""

TEMPLATE_CHAT = """You are a helpful AI learning mentor. Provide helpful, accurate information in response to the user's question. Keep responses concise but informative.

User message: "{message}"

Provide a helpful response that addresses their question directly."""


def _carries_history(message: str) -> bool:
    # Only the block the composer writes counts, not the phrase inside a question.
    return message.startswith(f"{HISTORY_HEADER}\n") and f"\n\n{CURRENT_MESSAGE_LABEL} " in message


def build_gateway_prompt(request: GatewayRequest, *, max_items: int = 5) -> str:
    """Full LLM prompt for one gateway call."""
    step = request.step_type
    if step == StepType.RECOMMENDATION_CHECK:
        return build_from_template(TEMPLATE_RECOMMENDATION_CHECK, message=request.message)
    if step == StepType.CONTENT_ANALYSIS:
        catalog = [c.model_dump(mode="json") for c in request.content_data or []]
        return build_from_template(
            TEMPLATE_CONTENT_ANALYSIS,
            message=request.message,
            content_data=as_json_block(catalog),
            max_items=max_items,
        )
    if step == StepType.FINAL_RESPONSE:
        return build_from_template(
            TEMPLATE_FINAL_RESPONSE,
            message=request.message,
            selected_content=as_json_block(request.selected_content or []),
        )
    if _carries_history(request.message):
        return build_from_template(TEMPLATE_CHAT_WITH_HISTORY, message=request.message)
    return build_from_template(TEMPLATE_CHAT, message=request.message)
