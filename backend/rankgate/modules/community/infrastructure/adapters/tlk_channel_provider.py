"""tlk.io chat channel adapter.

tlk.io channels are addressed purely by URL path, so a channel exists as
soon as someone opens it. This adapter only derives stable, URL-safe
channel names; no network calls are made.
"""

import re

from rankgate.core.config import ChatConfig
from rankgate.modules.community.domain.interfaces.services import ChatChannel

_UNSAFE_CHARS = re.compile(r"[^a-z0-9-]")


class TlkChannelProvider:
    """Maps forums and private sessions onto tlk.io channel names."""

    def __init__(
        self,
        base_url: str = "https://tlk.io",
        forum_max_length: int = 30,
        session_max_length: int = 20,
    ):
        self.base_url = base_url.rstrip("/")
        self.forum_max_length = forum_max_length
        self.session_max_length = session_max_length

    @classmethod
    def from_config(cls, config: ChatConfig) -> "TlkChannelProvider":
        return cls(
            base_url=config.base_url,
            forum_max_length=config.forum_channel_max_length,
            session_max_length=config.session_channel_max_length,
        )

    def forum_channel(self, forum_id: str, nickname: str) -> ChatChannel:
        channel_id = self._channel_name(f"forum-{forum_id}", self.forum_max_length)
        return self._channel(channel_id, nickname)

    def session_channel(self, session_id: str, nickname: str) -> ChatChannel:
        channel_id = self._channel_name(f"chat{session_id}", self.session_max_length)
        return self._channel(channel_id, nickname)

    def _channel(self, channel_id: str, nickname: str) -> ChatChannel:
        return ChatChannel(
            channel_id=channel_id,
            nickname=nickname,
            url=f"{self.base_url}/{channel_id}",
        )

    @staticmethod
    def _channel_name(raw: str, max_length: int) -> str:
        return _UNSAFE_CHARS.sub("", raw.lower())[:max_length]
