from rankgate.bootstrap.community_bootstrap import (
    CommunityContainer,
    create_community_container,
    expiry_policies,
)

__all__ = ["CommunityContainer", "create_community_container", "expiry_policies"]
