"""RosterService and StableService: the operations the CLI exposes.

Each public method returns a :class:`ServiceResult`; domain errors become
structured failures (``VALIDATION_FAILED``, ``CONFIGURATION_ERROR``,
``NOT_FOUND``) instead of exceptions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from ringside.domain.capabilities import (
    Entity,
    HasManagers,
    HasTagTeams,
    HasWrestlers,
    StableMember,
    TagTeamMember,
    capabilities_of,
)
from ringside.domain.dates import parse_date
from ringside.domain.errors import ValidationError
from ringside.domain.lifecycle import available_transitions, compute_status, rule_for
from ringside.domain.types import EntityType, PeriodKind, Relation
from ringside.orchestration.actions import UnifiedActions
from ringside.orchestration.collection import MemberCollectionManager
from ringside.orchestration.stables import StableMembershipOrchestrator
from ringside.services._helpers import to_iso
from ringside.services.base import BaseService
from ringside.services.result import ServiceResult
from ringside.services.telemetry import traced

ATTACH_KINDS = ("wrestler", "tag_team", "manager")


def entity_summary(entity: Entity) -> dict[str, Any]:
    return {
        "id": entity.id,
        "type": str(entity.entity_type),
        "name": entity.name,
        "status": str(compute_status(entity)),
    }


def _names(entities: list[Entity]) -> list[dict[str, Any]]:
    return [{"id": e.id, "name": e.name} for e in entities]


def entity_detail(entity: Entity) -> dict[str, Any]:
    """Summary plus capabilities, open transitions, periods, and relationships."""
    roster = entity.state
    detail = entity_summary(entity)
    detail["capabilities"] = [str(c) for c in capabilities_of(entity)]
    detail["available_transitions"] = [str(t) for t in available_transitions(entity)]
    detail["periods"] = [
        {
            "kind": str(period.kind),
            "started_at": to_iso(period.started_at),
            "ended_at": to_iso(period.ended_at),
            "notes": period.notes,
        }
        for kind in PeriodKind
        for period in roster.periods(entity.key, kind)
    ]
    relationships: dict[str, Any] = {}
    if isinstance(entity, HasManagers):
        relationships["managers"] = _names(entity.current_managers())
    if isinstance(entity, HasWrestlers):
        relationships["wrestlers"] = _names(entity.current_wrestlers())
    if isinstance(entity, HasTagTeams):
        relationships["tag_teams"] = _names(entity.current_tag_teams())
    if isinstance(entity, StableMember):
        stable = entity.current_stable()
        relationships["stable"] = stable.name if stable else None
    if isinstance(entity, TagTeamMember):
        team = entity.current_tag_team()
        relationships["tag_team"] = team.name if team else None
    detail["relationships"] = relationships
    return detail


class RosterService(BaseService):
    """Entity records, lifecycle transitions, and reporting."""

    @traced
    def add(self, entity_type: str, name: str) -> ServiceResult:
        def run() -> dict[str, Any]:
            try:
                etype = EntityType(entity_type)
            except ValueError:
                msg = f"Unknown entity type '{entity_type}'"
                raise ValidationError(msg) from None
            if not name.strip():
                msg = "Name must not be empty"
                raise ValidationError(msg)
            return entity_summary(self._roster.add(etype, name.strip()))

        return self._guarded("add", run)

    @traced
    def list_entities(self, entity_type: str | None = None) -> ServiceResult:
        def run() -> dict[str, Any]:
            items = [entity_summary(e) for e in self._load_all(entity_type)]
            return {"items": items, "count": len(items)}

        return self._guarded("list", run)

    @traced
    def show(self, entity_id: int) -> ServiceResult:
        return self._guarded("show", lambda: entity_detail(self._roster.get(entity_id)))

    @traced
    def stats(self, entity_type: str | None = None) -> ServiceResult:
        def run() -> dict[str, Any]:
            return MemberCollectionManager.from_(self._load_all(entity_type)).get_statistics()

        return self._guarded("stats", run)

    @traced
    def transition(
        self,
        entity_id: int,
        transition: str,
        *,
        date: str | None = None,
        notes: str | None = None,
    ) -> ServiceResult:
        """Apply a unified lifecycle action (``employ`` ... ``reinstate``, ``heal``)."""

        def run() -> dict[str, Any]:
            entity = self._roster.get(entity_id)
            when = parse_date(date) if date else None
            if transition == "heal":
                UnifiedActions.heal(entity, when, notes)
            else:
                UnifiedActions.run(entity, rule_for(transition).transition, when, notes)
            return entity_summary(self._roster.reload(entity))

        return self._guarded(transition, run)

    @traced
    def attach(
        self,
        container_id: int,
        member_id: int,
        kind: str,
        *,
        date: str | None = None,
    ) -> ServiceResult:
        """Attach *member* to a stable, a tag team, or (for managers) a client."""

        def run() -> dict[str, Any]:
            if kind not in ATTACH_KINDS:
                msg = f"Unknown member kind '{kind}' (expected one of {', '.join(ATTACH_KINDS)})"
                raise ValidationError(msg)
            container = self._roster.get(container_id)
            member = self._roster.get(member_id)
            if member.entity_type is not EntityType(kind):
                msg = f"{member.entity_type.label} '{member.name}' is not a {kind}"
                raise ValidationError(msg)
            when = parse_date(date) if date else self._roster.now()
            self._attach(container, member, Relation(kind), when)
            return {
                "container": entity_summary(container),
                "member": entity_summary(member),
                "as": kind,
            }

        return self._guarded("attach", run)

    @traced
    def drain_events(self) -> ServiceResult:
        """Retry pending and failed lifecycle events."""
        bus = self._roster.event_bus
        if bus is None:
            return ServiceResult.success(
                "drain", {"events": []}, warnings=["Event bus is disabled"]
            )
        return ServiceResult.success("drain", {"events": bus.drain()})

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load_all(self, entity_type: str | None) -> list[Entity]:
        if entity_type is None:
            return self._roster.all()
        try:
            return self._roster.all(EntityType(entity_type))
        except ValueError:
            msg = f"Unknown entity type '{entity_type}'"
            raise ValidationError(msg) from None

    def _attach(
        self, container: Entity, member: Entity, relation: Relation, when: datetime
    ) -> None:
        registry = self._roster.registry
        ctype = container.entity_type
        if ctype is EntityType.STABLE:
            stables = registry.stables()
            getattr(stables, f"add_{relation}")(container, member, when)
        elif relation is Relation.MANAGER and isinstance(container, HasManagers):
            registry.for_entity(container).assign_manager(container, member, when)
        elif ctype is EntityType.TAG_TEAM and relation is Relation.WRESTLER:
            registry.for_entity(container).add_wrestler(container, member, when)
        else:
            msg = f"Cannot attach a {relation} to {ctype.label} '{container.name}'"
            raise ValidationError(msg)


class StableService(BaseService):
    """Stable merges and splits."""

    @traced
    def merge(
        self,
        primary_id: int,
        secondary_id: int,
        *,
        new_name: str | None = None,
        date: str | None = None,
    ) -> ServiceResult:
        def run() -> dict[str, Any]:
            primary = self._roster.get(primary_id, EntityType.STABLE)
            secondary = self._roster.get(secondary_id, EntityType.STABLE)
            when = parse_date(date) if date else None
            result = (
                StableMembershipOrchestrator.merge_stables(primary, secondary, new_name)
                .on_date(when)
                .execute()
            )
            merged = self._roster.reload(result) if isinstance(result, Entity) else primary
            return {
                "stable": entity_detail(merged),
                "retired": entity_summary(self._roster.reload(secondary)),
            }

        return self._guarded("merge", run)

    @traced
    def split(self, original_id: int, new_name: str, *, date: str | None = None) -> ServiceResult:
        def run() -> dict[str, Any]:
            original = self._roster.get(original_id, EntityType.STABLE)
            when = parse_date(date) if date else None
            result = StableMembershipOrchestrator.split_stable(original, new_name).on_date(when)
            new_stable = result.execute()
            if not isinstance(new_stable, Entity):
                msg = "Stable split produced no stable"
                raise ValidationError(msg)
            return {"original": entity_summary(original), "stable": entity_summary(new_stable)}

        return self._guarded("split", run)
