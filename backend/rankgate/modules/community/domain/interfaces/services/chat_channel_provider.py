"""External chat widget port."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ChatChannel:
    """Opaque handle for a channel on the chat widget provider."""

    channel_id: str
    nickname: str
    url: str


class IChatChannelProvider(Protocol):
    """Maps forums and private sessions to chat channels."""

    def forum_channel(self, forum_id: str, nickname: str) -> ChatChannel:
        """Channel a member joins to talk in a forum.

        Args:
            forum_id: Forum identifier
            nickname: Name shown to other participants

        Returns:
            ChatChannel with a stable id for the forum
        """
        ...

    def session_channel(self, session_id: str, nickname: str) -> ChatChannel:
        ...
