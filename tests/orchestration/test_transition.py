"""Tests for StatusTransitionPipeline and CascadeChain."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from ringside.domain.capabilities import Entity
from ringside.domain.errors import (
    CannotBeEmployedError,
    CannotBeInjuredError,
    CannotBeReleasedError,
    CannotBeSuspendedError,
    CascadeDepthError,
    ConfigurationError,
    InvalidDateRangeError,
    TransitionError,
    ValidationError,
)
from ringside.domain.lifecycle import (
    STATUS_TRANSITIONS,
    TRANSITION_RULES,
    available_transitions,
    compute_status,
    is_valid_transition,
)
from ringside.domain.types import EntityKey, EntityType, PeriodKind, Transition
from ringside.infrastructure.roster import Roster
from ringside.orchestration.cascades import EmploymentCascadeStrategy
from ringside.orchestration.transition import CascadeChain, StatusTransitionPipeline

JUNE_1 = datetime(2024, 6, 1, tzinfo=UTC)


class TestExecute:
    def test_employ_defaults_to_clock_now(self, make, roster: Roster) -> None:
        wrestler = make("wrestler", "Sting")
        StatusTransitionPipeline.employ(wrestler).execute()
        assert wrestler.is_employed()
        assert roster.periods(wrestler.key, PeriodKind.EMPLOYMENT)[0].started_at == JUNE_1

    def test_explicit_date(self, make, roster: Roster) -> None:
        wrestler = make("wrestler", "Sting")
        StatusTransitionPipeline.employ(wrestler, date(2024, 3, 1)).execute()
        started = roster.periods(wrestler.key, PeriodKind.EMPLOYMENT)[0].started_at
        assert started == datetime(2024, 3, 1, tzinfo=UTC)

    def test_notes(self, make, roster: Roster) -> None:
        wrestler = make("wrestler", "Sting")
        StatusTransitionPipeline.employ(wrestler).with_notes("Signed at the taping").execute()
        assert roster.periods(wrestler.key, PeriodKind.EMPLOYMENT)[0].notes == (
            "Signed at the taping"
        )

    def test_accepts_transition_names(self, make) -> None:
        wrestler = make("wrestler", "Sting")
        pipeline = StatusTransitionPipeline(wrestler, "employ")
        assert pipeline.transition is Transition.EMPLOY
        assert pipeline.entity is wrestler

    def test_unknown_transition(self, make) -> None:
        with pytest.raises(ConfigurationError):
            StatusTransitionPipeline(make("wrestler", "Sting"), "promote")

    def test_employ_ends_retirement(self, make, roster: Roster) -> None:
        wrestler = make("wrestler", "Terry Funk", employed=True)
        StatusTransitionPipeline.retire(wrestler, date(2024, 2, 1)).execute()
        StatusTransitionPipeline.employ(wrestler).execute()
        assert not wrestler.is_retired()
        assert wrestler.is_employed()
        retirement = roster.periods(wrestler.key, PeriodKind.RETIREMENT)[0]
        assert retirement.ended_at == JUNE_1


class TestValidation:
    def test_guard_failure_writes_nothing(self, make, roster: Roster) -> None:
        wrestler = make("wrestler", "Sting", employed=True)
        with pytest.raises(CannotBeEmployedError):
            StatusTransitionPipeline.employ(wrestler).execute()
        assert len(roster.periods(wrestler.key, PeriodKind.EMPLOYMENT)) == 1

    def test_capability_checked_before_guard(self, make) -> None:
        team = make("tag_team", "The Steiners", employed=True)
        with pytest.raises(CannotBeInjuredError, match="Tag Team entities cannot be injured"):
            StatusTransitionPipeline.injure(team).execute()

    def test_custom_validators_run_after_guard(self, make) -> None:
        calls: list[str] = []

        def veto(entity: Entity, transition: Transition) -> None:
            calls.append(str(transition))
            msg = "Contract not countersigned"
            raise ValidationError(msg)

        wrestler = make("wrestler", "Sting")
        with pytest.raises(ValidationError, match="not countersigned"):
            StatusTransitionPipeline.employ(wrestler).with_validation(veto).execute()
        assert calls == ["employ"]
        assert not wrestler.is_employed()

    def test_guard_failure_skips_custom_validators(self, make) -> None:
        calls: list[str] = []
        wrestler = make("wrestler", "Sting")
        with pytest.raises(CannotBeReleasedError):
            (
                StatusTransitionPipeline.release(wrestler)
                .with_validation(lambda e, t: calls.append("ran"))
                .execute()
            )
        assert calls == []

    def test_end_before_start_is_rejected(self, make) -> None:
        wrestler = make("wrestler", "Sting", employed=True)
        with pytest.raises(InvalidDateRangeError):
            StatusTransitionPipeline.release(wrestler, date(2023, 1, 1)).execute()
        assert wrestler.is_employed()


class TestStatusTable:
    def test_missing_edge_blocks_a_guarded_transition(
        self, make, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        wrestler = make("wrestler", "Sting", employed=True)
        monkeypatch.setitem(STATUS_TRANSITIONS, "employed", ["release", "retire", "injure"])
        with pytest.raises(CannotBeSuspendedError, match="no suspend edge out of employed"):
            StatusTransitionPipeline.suspend(wrestler).execute()
        assert not wrestler.is_suspended()
        assert Transition.SUSPEND not in available_transitions(wrestler)

    def test_every_guarded_transition_is_an_edge(self, make) -> None:
        cast = [make("wrestler", "Rookie"), make("stable", "Rookie Stable")]
        for entity_type in ("wrestler", "manager", "tag_team", "stable"):
            cast.append(make(entity_type, f"Employed {entity_type}", employed=True))
        for name, transition in [
            ("Suspended", Transition.SUSPEND),
            ("Injured", Transition.INJURE),
            ("Retired", Transition.RETIRE),
            ("Released", Transition.RELEASE),
        ]:
            wrestler = make("wrestler", name, employed=True)
            StatusTransitionPipeline(wrestler, transition).execute()
            cast.append(wrestler)
        future = make("wrestler", "Signed")
        StatusTransitionPipeline.employ(future, date(2024, 9, 1)).execute()
        cast.append(future)

        for entity in cast:
            status = compute_status(entity)
            for transition, rule in TRANSITION_RULES.items():
                if not isinstance(entity, rule.capability):
                    continue
                try:
                    getattr(entity, rule.guard)()
                except TransitionError:
                    continue
                assert is_valid_transition(status, transition), (entity, transition)


class TestCascades:
    def test_cascades_run_in_order(self, make) -> None:
        order: list[str] = []

        def first(entity, when, transition, chain) -> None:
            order.append("first")

        def second(entity, when, transition, chain) -> None:
            order.append("second")

        wrestler = make("wrestler", "Sting")
        StatusTransitionPipeline.employ(wrestler).with_cascade(first).with_cascade(second).execute()
        assert order == ["first", "second"]

    def test_cascade_failure_rolls_back_everything(self, make, roster: Roster) -> None:
        wrestler = make("wrestler", "Brock Lesnar")
        heyman = make("manager", "Paul Heyman")
        roster.registry.for_entity(wrestler).assign_manager(wrestler, heyman, JUNE_1)

        def explode(entity, when, transition, chain) -> None:
            msg = "cascade failed"
            raise ValidationError(msg)

        with pytest.raises(ValidationError):
            (
                StatusTransitionPipeline.employ(wrestler)
                .with_cascade(EmploymentCascadeStrategy.managers())
                .with_cascade(explode)
                .execute()
            )
        assert not wrestler.is_employed()
        assert not heyman.is_employed()

    def test_cascade_receives_effective_date(self, make) -> None:
        seen: list[datetime] = []
        wrestler = make("wrestler", "Sting")
        (
            StatusTransitionPipeline.employ(wrestler, date(2024, 3, 1))
            .with_cascade(lambda entity, when, transition, chain: seen.append(when))
            .execute()
        )
        assert seen == [datetime(2024, 3, 1, tzinfo=UTC)]


class TestCascadeChain:
    def test_applied_transition_is_skipped(self, make) -> None:
        wrestler = make("wrestler", "Sting")
        chain = CascadeChain()
        StatusTransitionPipeline.employ(wrestler, chain=chain).execute()
        StatusTransitionPipeline.employ(wrestler, chain=chain).execute()
        assert chain.has_applied(Transition.EMPLOY, wrestler.key)

    def test_failed_transition_is_not_marked(self, make) -> None:
        wrestler = make("wrestler", "Sting", employed=True)
        chain = CascadeChain()
        with pytest.raises(CannotBeEmployedError):
            StatusTransitionPipeline.employ(wrestler, chain=chain).execute()
        assert chain.applied == frozenset()

    def test_depth_limit(self) -> None:
        chain = CascadeChain(max_depth=1)
        with chain.descend() as depth:
            assert depth == 1
            with pytest.raises(CascadeDepthError), chain.descend():
                pass
        assert chain.depth == 0

    def test_depth_limit_from_settings_rolls_back(self, settings, clock) -> None:
        cascade = settings.cascade.model_copy(update={"max_depth": 1})
        shallow = Roster(settings.model_copy(update={"cascade": cascade}), clock=clock)
        try:
            wrestler = shallow.add(EntityType.WRESTLER, "Brock Lesnar")
            heyman = shallow.add(EntityType.MANAGER, "Paul Heyman")
            shallow.registry.for_entity(wrestler).assign_manager(wrestler, heyman, JUNE_1)
            with pytest.raises(CascadeDepthError):
                (
                    StatusTransitionPipeline.employ(wrestler)
                    .with_cascade(EmploymentCascadeStrategy.managers())
                    .execute()
                )
            assert not wrestler.is_employed()
        finally:
            shallow.close()

    def test_scope_is_shared_and_cleared(self) -> None:
        chain = CascadeChain()
        key = EntityKey(EntityType.WRESTLER, 1)
        with chain.scope("visits"):
            assert chain.claim("visits", key)
            with chain.scope("visits") as inner:
                assert key in inner
                assert not chain.claim("visits", key)
        assert chain.visited("visits") == frozenset()
