from rankgate.modules.community.infrastructure.adapters.tlk_channel_provider import (
    TlkChannelProvider,
)

__all__ = ["TlkChannelProvider"]
