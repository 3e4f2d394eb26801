"""Concrete implementations for tool handlers."""

import json
import re
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Dict, List

from .models import ToolCall, ToolResult

EXTRACT_KEY_TOPICS = "extract_key_topics"
DEFAULT_TOPIC = "General Well-being"

# Declaration order breaks ties between equally frequent topics.
TOPIC_KEYWORDS: "OrderedDict[str, List[str]]" = OrderedDict(
    [
        (
            "Health & Fitness",
            ["gym", "workout", "diet", "sleep", "healthy", "run", "exercise"],
        ),
        (
            "Career & Finance",
            ["work", "job", "project", "deadline", "promotion", "invest", "budget", "money"],
        ),
        ("Learning & Growth", ["learn", "book", "course", "skill", "study", "read"]),
        ("Social Life", ["friends", "party", "hang out", "family", "relationship"]),
    ]
)


def count_topics(conversation_history: str) -> Dict[str, int]:
    """Counts whole-word, case-insensitive keyword hits per topic."""
    history = conversation_history.lower()
    return {
        topic: sum(
            len(re.findall(rf"\b{re.escape(keyword)}\b", history))
            for keyword in keywords
        )
        for topic, keywords in TOPIC_KEYWORDS.items()
    }


def extract_key_topics(conversation_history: str, limit: int = 1) -> List[str]:
    """Returns the ``limit`` most mentioned topics, or the default topic if none match."""
    counts = count_topics(conversation_history)
    ranked = sorted(
        (topic for topic, count in counts.items() if count > 0),
        key=lambda topic: counts[topic],
        reverse=True,
    )
    return ranked[:limit] or [DEFAULT_TOPIC]


class Tool(ABC):
    """Interface for executing agentic tools."""

    @abstractmethod
    def get_tools(self) -> List[Dict[str, Any]]:
        """Returns a list of tool specifications for the LLM."""
        return []

    @abstractmethod
    def execute_tool_call(self, tool_call: ToolCall, **overrides: Any) -> ToolResult:
        """Executes a tool call; ``overrides`` replace arguments sent by the model."""
        pass


class NoTool(Tool):
    """Default handler that provides no tools and does nothing."""

    def get_tools(self) -> List[Dict[str, Any]]:
        return []

    def execute_tool_call(self, tool_call: ToolCall, **overrides: Any) -> ToolResult:
        return ToolResult(
            tool_call_id=tool_call.id,
            function_name=tool_call.function_name,
            content="No tools are available: the NoTool handler is active.",
            is_error=True,
        )


class TopicExtractor(Tool):
    """Offers the keyword-based life-topic extractor to the model."""

    def get_tools(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": EXTRACT_KEY_TOPICS,
                "description": (
                    "Extracts the most prominent life topics (e.g., Health, Career, "
                    "Social Life, Learning) from a conversation history."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "conversation_history": {
                            "type": "string",
                            "description": "The conversation history to analyze.",
                        }
                    },
                },
            }
        ]

    def execute_tool_call(self, tool_call: ToolCall, **overrides: Any) -> ToolResult:
        if tool_call.function_name != EXTRACT_KEY_TOPICS:
            return ToolResult(
                tool_call_id=tool_call.id,
                function_name=tool_call.function_name,
                content=f"Unknown tool: {tool_call.function_name}",
                is_error=True,
            )

        args = {**tool_call.arguments(), **overrides}
        topics = extract_key_topics(str(args.get("conversation_history", "")))
        return ToolResult(
            tool_call_id=tool_call.id,
            function_name=tool_call.function_name,
            content=json.dumps({"topics": topics}),
        )
