from rankgate.modules.community.domain.value_objects.expiry_policy import ExpiryPolicy
from rankgate.modules.community.domain.value_objects.rank_hierarchy import RankHierarchy

__all__ = ["ExpiryPolicy", "RankHierarchy"]
