"""Community domain layer.

- MemberProfile, Forum and PrivateChatSession aggregates
- Rank hierarchy and adjacency rules
- SessionExpiryService for expiry detection and cleanup
- Repository and collaborator ports
"""
