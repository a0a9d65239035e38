"""Access decisions for owned resources.

``can_view`` and ``can_mutate`` are pure: they look only at the actor, a
descriptor of the resource and pre-gathered relationship facts.
``AccessPolicyResolver`` wraps them for services, fetching the follow fact
only when the answer depends on it and raising typed failures.

Existence is always checked before authorization: services load the
resource (raising not-found) and only then ask the resolver.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

import structlog

from backlogged.auth.models import Actor
from backlogged.core.errors import DomainError, ForbiddenError, UnauthorizedError


logger = structlog.get_logger(__name__)

FollowPredicate = Callable[[UUID, UUID], Awaitable[bool]]


class Visibility(str, Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    FOLLOWERS_ONLY = "FOLLOWERS_ONLY"


@dataclass(frozen=True)
class ResourceDescriptor:
    """What the policy needs to know about a resource."""

    owner_id: UUID
    visibility: Visibility = Visibility.PUBLIC
    admin_mutable: bool = False


@dataclass(frozen=True)
class RelationshipFacts:
    actor_follows_owner: bool = False


def is_owner(actor: Actor | None, resource: ResourceDescriptor) -> bool:
    return actor is not None and actor.id == resource.owner_id


def can_view(
    actor: Actor | None,
    resource: ResourceDescriptor,
    facts: RelationshipFacts = RelationshipFacts(),
) -> bool:
    """Read permission by visibility tier.

    PUBLIC is visible to everyone including anonymous callers. PRIVATE only
    to the owner. FOLLOWERS_ONLY to the owner and to actors following them.
    """
    if resource.visibility is Visibility.PUBLIC:
        return True
    if actor is None:
        return False
    if is_owner(actor, resource):
        return True
    if resource.visibility is Visibility.FOLLOWERS_ONLY:
        return facts.actor_follows_owner
    return False


def can_mutate(actor: Actor | None, resource: ResourceDescriptor) -> bool:
    """Write permission: the owner, or an admin where the resource allows it."""
    if actor is None:
        return False
    if is_owner(actor, resource):
        return True
    return resource.admin_mutable and actor.is_admin


class AccessPolicyResolver:
    """Applies the policy for services.

    Args:
        follow_exists: ``(follower_id, following_id) -> bool`` predicate,
            consulted only for FOLLOWERS_ONLY resources viewed by a
            non-owner.
    """

    def __init__(self, follow_exists: FollowPredicate) -> None:
        self.follow_exists = follow_exists

    async def facts_for(
        self, actor: Actor | None, resource: ResourceDescriptor
    ) -> RelationshipFacts:
        if (
            actor is None
            or resource.visibility is not Visibility.FOLLOWERS_ONLY
            or is_owner(actor, resource)
        ):
            return RelationshipFacts()
        follows = await self.follow_exists(actor.id, resource.owner_id)
        return RelationshipFacts(actor_follows_owner=follows)

    async def allows_view(self, actor: Actor | None, resource: ResourceDescriptor) -> bool:
        return can_view(actor, resource, await self.facts_for(actor, resource))

    async def check_view(
        self,
        actor: Actor | None,
        resource: ResourceDescriptor,
        error: type[DomainError] = ForbiddenError,
    ) -> None:
        """Raise ``error`` (Forbidden by default) unless the actor may view."""
        if not await self.allows_view(actor, resource):
            logger.info(
                "view_denied",
                actor_id=str(actor.id) if actor else None,
                owner_id=str(resource.owner_id),
                visibility=resource.visibility.value,
            )
            raise error

    def check_mutate(
        self,
        actor: Actor | None,
        resource: ResourceDescriptor,
        error: type[DomainError] = ForbiddenError,
    ) -> None:
        """Raise Unauthorized for anonymous callers, ``error`` for non-owners."""
        if actor is None:
            raise UnauthorizedError
        if not can_mutate(actor, resource):
            logger.info(
                "mutation_denied",
                actor_id=str(actor.id),
                owner_id=str(resource.owner_id),
            )
            raise error
