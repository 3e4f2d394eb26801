"""Maps browser paths to application views and back."""

from abc import ABC, abstractmethod
from typing import Literal, Optional

from pydantic import BaseModel

Page = Literal["chat", "dashboard"]


class URLParts(BaseModel):
    page: Page = "chat"
    convo_id: Optional[str] = None


class URL(ABC):
    """Interface for parsing and building application URLs."""

    @abstractmethod
    def parse(self, pathname: Optional[str]) -> URLParts:
        pass

    @abstractmethod
    def build_conversation_path(self, convo_id: str) -> str:
        pass

    @abstractmethod
    def build_new_chat_path(self) -> str:
        pass

    @abstractmethod
    def build_dashboard_path(self) -> str:
        pass


class PathBased(URL):
    """``/chat``, ``/chat/<convo_id>`` and ``/dashboard``; anything else is a new chat."""

    def parse(self, pathname: Optional[str]) -> URLParts:
        segments = [s for s in (pathname or "").split("/") if s]
        if segments[:1] == ["dashboard"]:
            return URLParts(page="dashboard")
        if segments[:1] == ["chat"] and len(segments) > 1:
            return URLParts(page="chat", convo_id=segments[1])
        return URLParts(page="chat")

    def build_conversation_path(self, convo_id: str) -> str:
        return f"/chat/{convo_id}"

    def build_new_chat_path(self) -> str:
        return "/chat"

    def build_dashboard_path(self) -> str:
        return "/dashboard"
