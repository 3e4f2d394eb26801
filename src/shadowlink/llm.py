"""Concrete implementations for LLM providers."""

import json
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from .models import ToolCall


class LLM(ABC):
    """Abstract Base Class for all LLM providers."""

    @abstractmethod
    def generate_response(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Type[BaseModel]] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        model: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        """Generates a response from the LLM provider.

        This method should return the provider's native, rich response object
        directly from their SDK.

        Parameters
        ----------
        prompt : str
            The user-facing instruction with its fields already interpolated.
        system_instruction : str, optional
            Instructions that frame the whole exchange.
        response_schema : Type[BaseModel], optional
            The output shape the model is asked to conform to. Providers with
            native structured output should pass it on; the caller validates
            the reply either way.
        tools : List[Dict[str, Any]], optional
            Function declarations, each with ``name``, ``description`` and a
            JSON-schema ``parameters`` object.
        model : str, optional
            Overrides the provider's default model.
        **kwargs : Any
            Provider-specific parameters passed directly to the SDK.

        Returns
        -------
        Any
            The provider's native, rich response object.
        """
        pass

    @abstractmethod
    def extract_content(self, response: Any) -> str:
        """Extracts the text content from the provider's native response object.

        Parameters
        ----------
        response : Any
            The provider's native response object from generate_response.

        Returns
        -------
        str
            The extracted text content from the response.
        """
        pass

    @abstractmethod
    def parse_tool_calls(self, response: Any) -> List[ToolCall]:
        """Extracts the tool calls the model requested, if any."""
        pass


class Gemini(LLM):
    def __init__(
        self, default_model: str = "gemini-2.5-flash", api_key: Optional[str] = None
    ):
        from google import genai

        self.client = genai.Client(api_key=api_key or os.environ["GEMINI_API_KEY"])
        self.model = default_model

    def generate_response(
        self,
        prompt,
        system_instruction=None,
        response_schema=None,
        tools=None,
        model=None,
        **kwargs,
    ):
        from google.genai import types

        config: Dict[str, Any] = {"system_instruction": system_instruction}
        if tools:
            config["tools"] = [
                types.Tool(
                    function_declarations=[
                        types.FunctionDeclaration(
                            name=tool["name"],
                            description=tool.get("description"),
                            parameters_json_schema=tool.get("parameters"),
                        )
                        for tool in tools
                    ]
                )
            ]
            config["automatic_function_calling"] = (
                types.AutomaticFunctionCallingConfig(disable=True)
            )
        elif response_schema is not None:
            config["response_mime_type"] = "application/json"
            config["response_schema"] = response_schema
        config.update(kwargs)

        return self.client.models.generate_content(
            model=model or self.model,
            contents=prompt,
            config=types.GenerateContentConfig(**config),
        )

    def extract_content(self, response: Any) -> str:
        return response.text or ""

    def parse_tool_calls(self, response: Any) -> List[ToolCall]:
        return [
            ToolCall(
                id=call.id or f"{call.name}-{i}",
                function_name=call.name,
                function_args=json.dumps(call.args or {}),
            )
            for i, call in enumerate(response.function_calls or [])
        ]


class OpenAI(LLM):
    def __init__(self, default_model: str = "gpt-4o", api_key: Optional[str] = None):
        from openai import OpenAI

        self.client = OpenAI(api_key=api_key) if api_key else OpenAI()
        self.model = default_model

    def generate_response(
        self,
        prompt,
        system_instruction=None,
        response_schema=None,
        tools=None,
        model=None,
        **kwargs,
    ):
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})

        if tools:
            kwargs["tools"] = [{"type": "function", "function": tool} for tool in tools]
        elif response_schema is not None:
            kwargs.setdefault("response_format", {"type": "json_object"})

        return self.client.chat.completions.create(
            messages=messages, model=model or self.model, **kwargs
        )

    def extract_content(self, response: Any) -> str:
        return response.choices[0].message.content or ""

    def parse_tool_calls(self, response: Any) -> List[ToolCall]:
        tool_calls = response.choices[0].message.tool_calls or []
        return [
            ToolCall(
                id=call.id,
                function_name=call.function.name,
                function_args=call.function.arguments or "{}",
            )
            for call in tool_calls
        ]


class Echo(LLM):
    """Offline provider for development and tests.

    Fills every field of the requested schema with a static text and, when
    tools are offered, always calls the first one.
    """

    ECHO_TEXT = "Echo LLM - static response for testing"

    def __init__(self, default_model: str = "echo-v1"):
        self.model = default_model

    def generate_response(
        self,
        prompt,
        system_instruction=None,
        response_schema=None,
        tools=None,
        model=None,
        **kwargs,
    ):
        if tools:
            tool = tools[0]
            return {
                "content": "",
                "tool_calls": [
                    {"id": "echo-call-0", "name": tool["name"], "arguments": "{}"}
                ],
            }

        if response_schema is not None:
            content = json.dumps(
                {name: self.ECHO_TEXT for name in response_schema.model_fields}
            )
        else:
            content = f"{self.ECHO_TEXT}\n\n{prompt}"

        return {"content": content, "tool_calls": []}

    def extract_content(self, response: Any) -> str:
        if isinstance(response, dict) and "content" in response:
            return response["content"]
        return str(response)

    def parse_tool_calls(self, response: Any) -> List[ToolCall]:
        if not isinstance(response, dict):
            return []
        return [
            ToolCall(
                id=call["id"],
                function_name=call["name"],
                function_args=call["arguments"],
            )
            for call in response.get("tool_calls", [])
        ]
