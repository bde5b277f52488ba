"""
Tests for the pure journey model: transitions, retention strategies and the codec.
"""

import pytest
from pydantic import ValidationError

from journey_fsm.model.breadcrumbs import (
    StateAndBreadcrumbs,
    compose,
    drop_matching,
    keep_all,
    max_depth,
)
from journey_fsm.model.codec import JourneyCodec
from journey_fsm.model.journey import JourneyModel, JourneyState, Moved, Rejected, Transition, goto, matches

from dummy_journey import ArgForm, Continue, DummyJourneyModel, Start, Stop, continue_, stop


class TestTransition:
    """Test Transition matching and outcomes."""

    @pytest.mark.asyncio
    async def test_matching_case_moves(self):
        assert await stop(5)(Continue(arg="dummy")) == Moved(Stop(result="dummy"))

    @pytest.mark.asyncio
    async def test_uncovered_state_is_rejected(self):
        assert await stop(5)(Stop(result="dummy")) == Rejected(Stop(result="dummy"))

    @pytest.mark.asyncio
    async def test_first_matching_case_wins(self):
        transition = Transition("pick", {
            lambda state: isinstance(state, Continue) and state.arg == "special": goto(Stop(result="special")),
            Continue: goto(Stop(result="generic")),
        })

        assert await transition(Continue(arg="special")) == Moved(Stop(result="special"))
        assert await transition(Continue(arg="other")) == Moved(Stop(result="generic"))

    @pytest.mark.asyncio
    async def test_async_outcome_is_awaited(self):
        async def lookup(state):
            return Continue(arg="looked up")

        transition = Transition("lookup", {Start: lookup})

        assert await transition(Start()) == Moved(Continue(arg="looked up"))

    @pytest.mark.asyncio
    async def test_root_transition_is_defined_everywhere(self):
        model = DummyJourneyModel()

        for state in (Start(), Continue(arg="x"), Stop(result="y")):
            assert await model.start(state) == Moved(Start())

    def test_is_defined_at(self):
        transition = continue_(5, ArgForm(arg="x"))

        assert transition.is_defined_at(Start())
        assert transition.is_defined_at(Continue(arg="y"))
        assert not transition.is_defined_at(Stop(result="z"))

    def test_tuple_pattern(self):
        assert matches((Start, Stop), Stop(result=""))
        assert not matches((Start, Stop), Continue(arg=""))

    def test_states_are_immutable_values(self):
        state = Continue(arg="dummy")

        assert state == Continue(arg="dummy")
        assert hash(state) == hash(Continue(arg="dummy"))
        with pytest.raises(ValidationError):
            state.arg = "changed"


class TestRetention:
    """Test breadcrumbs retention strategies."""

    def test_push_prepends_current_state(self):
        pair = StateAndBreadcrumbs(Continue(arg="a"), (Start(),))

        assert pair.push(Stop(result="a"), keep_all) == StateAndBreadcrumbs(
            Stop(result="a"), (Continue(arg="a"), Start())
        )

    def test_max_depth(self):
        assert max_depth(2)((1, 2, 3)) == (1, 2)
        assert max_depth(0)((1, 2, 3)) == ()

    def test_max_depth_rejects_negative(self):
        with pytest.raises(ValueError):
            max_depth(-1)

    def test_drop_matching(self):
        assert drop_matching(Stop)((Stop(result=""), Start(), Stop(result="x"))) == (Start(),)

    def test_compose_applies_in_order(self):
        strategy = compose(drop_matching(Stop), max_depth(1))

        assert strategy((Stop(result=""), Continue(arg="a"), Start())) == (Continue(arg="a"),)


class TestJourneyCodec:
    """Test encoding journeys for persistence."""

    def test_round_trip_keeps_state_variants(self):
        codec = JourneyCodec(DummyJourneyModel())
        pair = StateAndBreadcrumbs(Stop(result="dummy"), (Continue(arg="dummy"), Start()))

        document = codec.encode(pair)

        assert document == {"states": [
            {"kind": "stop", "result": "dummy"},
            {"kind": "continue", "arg": "dummy"},
            {"kind": "start"},
        ]}
        assert codec.decode(document) == pair

    def test_decode_rejects_unknown_states(self):
        codec = JourneyCodec(DummyJourneyModel())

        with pytest.raises(ValidationError):
            codec.decode({"states": [{"kind": "unknown"}]})

    def test_decode_rejects_empty_documents(self):
        codec = JourneyCodec(DummyJourneyModel())

        with pytest.raises(ValueError):
            codec.decode({"states": []})

    def test_model_without_state_type_cannot_be_persisted(self):
        class UntypedModel(JourneyModel):
            @property
            def root(self):
                return Start()

        with pytest.raises(ValueError, match="UntypedModel must declare state_type"):
            JourneyCodec(UntypedModel())

    def test_base_state_is_not_a_state_type(self):
        class BaseTypedModel(JourneyModel):
            state_type = JourneyState

            @property
            def root(self):
                return Start()

        # Would encode every state as an empty object
        with pytest.raises(ValueError):
            JourneyCodec(BaseTypedModel())
