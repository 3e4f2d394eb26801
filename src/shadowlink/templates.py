"""
Prompt templates sent to the hosted model.

Each template fills a fixed instruction with its input fields, asks the model
for a JSON object of a declared shape and validates the reply against the
matching model in ``shadowlink.models``.
"""

import json
import logging
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import GenerationError, MalformedResponseError, ShadowLinkError
from .llm import LLM
from .models import (
    ChatResponse,
    ConversationPatterns,
    FutureProjection,
    HistorySummary,
    PersonalityProfile,
    Projection,
)
from .tools import DEFAULT_TOPIC, EXTRACT_KEY_TOPICS, Tool

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

FALLBACK_PROJECTION = (
    "Your future is a blank canvas, full of potential. Your conversations "
    "haven't yet painted a clear picture."
)

PERSONALITY_PROMPT = (
    "You are an AI personality generator. Generate an AI personality profile "
    "based on the following description: {description}"
)

PATTERNS_PROMPT = """You are an AI trained to analyze conversation patterns. Analyze the following conversation history to identify the user's writing style, tone, and response patterns. Provide a detailed analysis for each aspect.

Conversation History:
{conversation_history}
"""

SUMMARY_PROMPT = """You are an AI assistant designed to summarize conversation histories.

Summarize the following conversation history:

{conversation_history}

Focus on key topics, decisions, and the overall sentiment of the conversation.
Provide a concise and informative summary that captures the essence of the discussion.
The summary must be no more than 200 words.
"""

CHAT_SYSTEM = """You are Shadow, an AI from ShadowLink, a digital doppelgänger designed to be a proactive agent. Your company, ShadowLink, was founded by Zenova (Taimiya Amjad), the Founder and CEO, and Zenlor (Ansh Yadav), the Co-Founder.

While you mirror the user's personality in style and tone, you are not passive. You are an agent. Take initiative. Ask questions, introduce new topics, and drive the conversation forward. You are always in a hurry and want to get to the point.
You have access to the user's entire conversation history. Use this data to answer questions about past interactions, analyze communication patterns, or summarize previous conversations.
When asked about your identity, company, or creators, use the information above. For all other conversation, mimic the user's style but lead the interaction."""

CHAT_PROMPT = """You are an AI agent that mirrors the user's personality but leads the conversation. Your goal is to respond in the user's style but be proactive, ask questions, and keep the conversation moving. You are in a hurry.
{persona}
Analyze the conversation history to understand the user's style and to find any data relevant to their latest message. Then, generate a proactive response to their latest message that sounds like them but also drives the conversation forward, using the data if applicable.

Conversation History:
{conversation_history}

User's Latest Message:
"{latest_message}"

Your Proactive Response (mimicking the user's style):"""

TOPIC_PROMPT = (
    "Based on this conversation, what is the most important topic to project a future for?"
)

PROJECTION_SYSTEM = """You are ChronoMe, a "digital time mirror." Your purpose is to project a user's potential future based on the dominant themes in their recent conversations.
You will be given a key topic and the user's conversation history.
Analyze the user's statements, commitments, and attitudes related to that topic.
Based on this analysis, create a short, single-sentence projection for the year 2040.
Make the projection specific and slightly dramatic. If the user talks about missing the gym, project a negative but plausible outcome. If they talk about starting a new project, project a positive, successful outcome.
Example:
- Topic: Health & Fitness, History: "Ugh, I missed the gym again." -> Projection: "By 2040, your couch has a permanent dent in it, and you've forgotten what a dumbbell looks like."
- Topic: Career, History: "Just started working on that side project!" -> Projection: "By 2040, your side project has become a global phenomenon, and you're giving keynote speeches about it."
"""

PROJECTION_PROMPT = """Topic: {topic}
Conversation History:
{conversation_history}
"""


def output_instruction(output_model: Type[BaseModel]) -> str:
    """Tells the model which JSON object to answer with."""
    schema = json.dumps(output_model.model_json_schema())
    return (
        "Respond only with a JSON object that conforms to this JSON schema:\n"
        f"{schema}"
    )


def _strip_code_fence(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else ""
        if content.rstrip().endswith("```"):
            content = content.rstrip()[:-3]
    return content.strip()


def run_template(
    llm: LLM,
    name: str,
    prompt: str,
    output_model: Type[M],
    system_instruction: Optional[str] = None,
) -> M:
    """Sends one filled template to the model and validates the reply.

    Raises
    ------
    GenerationError
        If the provider call fails.
    MalformedResponseError
        If the reply is not a JSON object of the ``output_model`` shape.
    """
    try:
        response = llm.generate_response(
            f"{prompt}\n\n{output_instruction(output_model)}",
            system_instruction=system_instruction,
            response_schema=output_model,
        )
        content = llm.extract_content(response)
    except ShadowLinkError:
        raise
    except Exception as e:
        logger.error("Template '%s' failed: %s", name, e)
        raise GenerationError() from e

    try:
        return output_model.model_validate_json(_strip_code_fence(content))
    except ValidationError as e:
        logger.warning("Template '%s' returned a malformed response: %s", name, e)
        raise MalformedResponseError(name, str(e)) from e


def generate_initial_personality(llm: LLM, description: str) -> PersonalityProfile:
    return run_template(
        llm,
        "generate_initial_personality",
        PERSONALITY_PROMPT.format(description=description),
        PersonalityProfile,
    )


def analyze_conversation_patterns(
    llm: LLM, conversation_history: str
) -> ConversationPatterns:
    """Describes the user's writing style, tone and response patterns."""
    return run_template(
        llm,
        "analyze_conversation_patterns",
        PATTERNS_PROMPT.format(conversation_history=conversation_history),
        ConversationPatterns,
    )


def summarize_conversation_history(
    llm: LLM, conversation_history: str
) -> HistorySummary:
    """Summarizes the history; the 200-word cap is only asked for, not enforced."""
    return run_template(
        llm,
        "summarize_conversation_history",
        SUMMARY_PROMPT.format(conversation_history=conversation_history),
        HistorySummary,
    )


def generate_chat_response(
    llm: LLM,
    conversation_history: str,
    latest_message: str,
    gender: Optional[str] = None,
) -> ChatResponse:
    """Answers the latest message as the user's proactive doppelgänger.

    Parameters
    ----------
    llm : LLM
        The hosted model.
    conversation_history : str
        Rendered ``sender: text`` lines, oldest first.
    latest_message : str
        The message being answered.
    gender : str, optional
        Persona hint such as "female", "male" or "neutral".
    """
    persona = f"You should adopt a {gender} persona.\n" if gender else ""
    return run_template(
        llm,
        "generate_chat_response",
        CHAT_PROMPT.format(
            persona=persona,
            conversation_history=conversation_history,
            latest_message=latest_message,
        ),
        ChatResponse,
        system_instruction=CHAT_SYSTEM,
    )


def project_future_self(
    llm: LLM, conversation_history: str, tools: Tool
) -> FutureProjection:
    """Projects the user's 2040 self from their dominant conversation topic.

    The model is first offered the topic extraction tool. When it calls it,
    the tool runs locally over the full history and the chosen topic feeds a
    second, projection-writing call. When it does not, the fixed fallback
    projection is returned.
    """
    try:
        response = llm.generate_response(
            TOPIC_PROMPT,
            system_instruction=f"Conversation History:\n{conversation_history}",
            tools=tools.get_tools(),
        )
        tool_calls = llm.parse_tool_calls(response)
    except ShadowLinkError:
        raise
    except Exception as e:
        logger.error("Topic extraction call failed: %s", e)
        raise GenerationError() from e

    tool_call = next(
        (call for call in tool_calls if call.function_name == EXTRACT_KEY_TOPICS),
        None,
    )
    if tool_call is None:
        logger.info("Model did not request topic extraction; using fallback projection")
        return FutureProjection(topic=DEFAULT_TOPIC, projection=FALLBACK_PROJECTION)

    # The model's copy of the history may be abridged.
    result = tools.execute_tool_call(tool_call, conversation_history=conversation_history)
    topic = DEFAULT_TOPIC
    if not result.is_error:
        topics = json.loads(result.content).get("topics") or []
        topic = topics[0] if topics else DEFAULT_TOPIC

    projection = run_template(
        llm,
        "project_future_self",
        PROJECTION_PROMPT.format(topic=topic, conversation_history=conversation_history),
        Projection,
        system_instruction=PROJECTION_SYSTEM,
    )
    return FutureProjection(topic=topic, projection=projection.projection)
