"""
Community module bootstrap configuration.

Wires settings, persistence, adapters and application services for the
community bounded context. The Rank Card verifier is an external dependency
and must be supplied by the caller.

Usage Example:
    container = create_community_container(verifier=my_verifier)
    forums = container.forum_service()
    entry = await forums.enter_forum(member_id, forum_id)
"""

from dependency_injector import containers, providers

from rankgate.core.config import SessionPolicyConfig, Settings, get_settings
from rankgate.core.database import create_engine, create_session_factory
from rankgate.core.security.rate_limiter import SlidingWindowRateLimiter
from rankgate.modules.community.application.services import (
    ForumService,
    MatchingService,
    MemberService,
    PrivateChatService,
    RankCardVerificationService,
)
from rankgate.modules.community.domain.enums import SessionType
from rankgate.modules.community.domain.interfaces.services import IRankVerificationService
from rankgate.modules.community.domain.value_objects.expiry_policy import ExpiryPolicy
from rankgate.modules.community.infrastructure.adapters import TlkChannelProvider
from rankgate.modules.community.infrastructure.security import FieldEncryptionService
from rankgate.modules.community.infrastructure.unit_of_work import community_uow_factory


def expiry_policies(config: SessionPolicyConfig) -> dict[SessionType, ExpiryPolicy]:
    """Expiry policy per session type from configured durations."""
    return {
        SessionType.DAILY_MATCH: ExpiryPolicy.from_hours(
            SessionType.DAILY_MATCH, config.daily_match_hours, config.grace_period_ms
        ),
        SessionType.GROUP_INITIATED: ExpiryPolicy.from_hours(
            SessionType.GROUP_INITIATED, config.group_initiated_hours, config.grace_period_ms
        ),
    }


class CommunityContainer(containers.DeclarativeContainer):
    """Community module dependency injection container."""

    settings = providers.Singleton(get_settings)
    verifier = providers.Dependency()

    # Persistence
    engine = providers.Singleton(create_engine, settings.provided.database)
    session_factory = providers.Singleton(create_session_factory, engine)
    field_encryption = providers.Singleton(FieldEncryptionService.from_settings, settings)
    uow_factory = providers.Singleton(community_uow_factory, session_factory, field_encryption)

    # Adapters
    channel_provider = providers.Singleton(
        TlkChannelProvider.from_config, settings.provided.chat
    )
    forum_entry_limiter = providers.Singleton(
        SlidingWindowRateLimiter,
        limit=settings.provided.rate_limit.forum_entry_limit,
        window_seconds=settings.provided.rate_limit.forum_entry_window_seconds,
    )
    session_policies = providers.Singleton(expiry_policies, settings.provided.session_policy)

    # Application services
    member_service = providers.Factory(MemberService, uow_factory)
    verification_service = providers.Factory(
        RankCardVerificationService,
        uow_factory,
        verifier,
        settings.provided.session_policy.vc_verification_ttl_ms,
    )
    forum_service = providers.Factory(
        ForumService,
        uow_factory,
        channel_provider,
        rate_limiter=forum_entry_limiter,
        max_lock_retries=settings.provided.max_lock_retries,
    )
    chat_service = providers.Factory(
        PrivateChatService,
        uow_factory,
        channel_provider,
        policies=session_policies,
    )
    matching_service = providers.Factory(
        MatchingService,
        uow_factory,
        chat_service,
        settings.provided.session_policy.match_queue_ttl_ms,
    )


def create_community_container(
    settings: Settings | None = None,
    verifier: IRankVerificationService | None = None,
) -> CommunityContainer:
    """Build a container, optionally overriding settings and the verifier."""
    container = CommunityContainer()
    if settings is not None:
        container.settings.override(providers.Object(settings))
    if verifier is not None:
        container.verifier.override(providers.Object(verifier))
    return container
