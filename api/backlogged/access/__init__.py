from backlogged.access.policy import (
    AccessPolicyResolver,
    RelationshipFacts,
    ResourceDescriptor,
    Visibility,
    can_mutate,
    can_view,
)


__all__ = [
    "AccessPolicyResolver",
    "RelationshipFacts",
    "ResourceDescriptor",
    "Visibility",
    "can_mutate",
    "can_view",
]
