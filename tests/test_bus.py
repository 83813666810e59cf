"""Test the action bus: dispatch, observe, transforms and teardown."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from actionbus import ActionBus, ActionsFactory, BusRetiredError, bus_of, create_bus, teardown
from actionbus.bus import declared_actions
from actionbus.coercion import coerce_int
from actionbus.config import Config
from actionbus.registry import ChannelRegistry
from tests.recorders import Recorder


class UIActions:
    search: str
    count: int


def make_bus(**settings) -> ActionBus:
    return ActionBus(UIActions, {"count": coerce_int}, config=Config(settings))


class TestScenario:
    """Search/count example: one plain action, one coerced."""

    def test_search_and_count(self):
        # Arrange
        bus = make_bus()
        searches, counts = Recorder(), Recorder()
        bus.actions.search_stream.subscribe(searches)
        bus.actions.count_stream.subscribe(counts)

        # Act
        bus.actions.search("abc")
        bus.actions.count("4")
        bus.actions.count("not-a-number")

        # Assert
        assert searches.values == ["abc"]
        assert counts.values == [4, 0]


class TestChannelIdentity:
    """Same action name always maps to one channel."""

    def test_two_stream_reads_share_the_channel(self):
        # Arrange
        bus = make_bus()
        first, second = Recorder(), Recorder()
        bus.actions.search_stream.subscribe(first)
        bus.actions.search_stream.subscribe(second)

        # Act
        bus.actions.search("x")

        # Assert
        assert first.values == ["x"]
        assert second.values == ["x"]

    def test_dispatch_first_then_observe(self):
        # Arrange
        bus = make_bus()
        bus.dispatch("late", 1)
        channel = bus.registry.get("late")

        # Act
        stream = bus.observe("late")

        # Assert
        assert stream is channel.stream
        assert bus.channel("late") is channel

    def test_observe_first_then_dispatch(self):
        # Arrange
        bus = make_bus()
        recorder = Recorder()
        bus.observe("late").subscribe(recorder)

        # Act
        bus.dispatch("late", 1)

        # Assert
        assert recorder.values == [1]
        assert bus.registry.names() == ["search", "count", "late"]

    def test_undeclared_channels_created_on_first_use(self):
        bus = make_bus()
        assert len(bus.registry) == 2  # declared streams are bound with the surface
        assert "other" not in bus.registry
        bus.dispatch("other", None)
        assert "other" in bus.registry


class TestOrdering:
    """Per-action ordering and no replay."""

    def test_subscriber_sees_values_from_its_registration_on(self):
        # Arrange
        bus = make_bus()
        early, late = Recorder(), Recorder()
        bus.actions.search_stream.subscribe(early)

        # Act
        bus.actions.search("v1")
        bus.actions.search_stream.subscribe(late)
        bus.actions.search("v2")
        bus.actions.search("v3")

        # Assert
        assert early.values == ["v1", "v2", "v3"]
        assert late.values == ["v2", "v3"]

    def test_actions_are_independent(self):
        # Arrange
        bus = make_bus()
        searches = Recorder()
        bus.actions.search_stream.subscribe(searches)

        # Act
        bus.actions.count("3")

        # Assert
        assert searches.values == []

    def test_reentrant_dispatch_from_subscriber(self):
        # Arrange
        bus = make_bus()
        counts = Recorder()
        bus.actions.count_stream.subscribe(counts)
        bus.actions.search_stream.subscribe(lambda value: bus.actions.count(str(len(value))))

        # Act
        bus.actions.search("abcd")

        # Assert
        assert counts.values == [4]


class TestTransforms:
    """Transform application through the bus."""

    def test_transform_gets_all_arguments(self):
        # Arrange
        calls = []

        def join(a, b, c):
            calls.append((a, b, c))
            return f"{a}-{b}-{c}"

        bus = ActionBus(["joined"], {"joined": join}, config=Config({}))
        recorder = Recorder()
        bus.actions.joined_stream.subscribe(recorder)

        # Act
        bus.actions.joined(1, 2, 3)

        # Assert
        assert calls == [(1, 2, 3)]
        assert recorder.values == ["1-2-3"]

    def test_failing_transform_propagates_and_publishes_nothing(self):
        # Arrange
        def strict(value):
            raise ValueError(f"bad: {value}")

        bus = ActionBus(["strict"], {"strict": strict}, config=Config({}))
        recorder = Recorder()
        bus.actions.strict_stream.subscribe(recorder)

        # Act & Assert
        with pytest.raises(ValueError, match="bad: x"):
            bus.actions.strict("x")
        assert recorder.values == []
        assert bus.channel("strict").closed is False

    def test_bus_usable_after_transform_failure(self):
        # Arrange
        def positive(value):
            if value < 0:
                raise ValueError("negative")
            return value

        bus = ActionBus(["n"], {"n": positive}, config=Config({}))
        recorder = Recorder()
        bus.actions.n_stream.subscribe(recorder)

        # Act
        with pytest.raises(ValueError):
            bus.actions.n(-1)
        bus.actions.n(2)

        # Assert
        assert recorder.values == [2]

    def test_transform_keys_are_declared_actions(self):
        bus = ActionBus(None, {"count": coerce_int}, config=Config({}))
        assert list(bus.actions) == ["count"]

    def test_no_transform_without_arguments_publishes_none(self):
        # Arrange
        bus = ActionBus(["submit"], config=Config({}))
        recorder = Recorder()
        bus.actions.submit_stream.subscribe(recorder)

        # Act
        bus.actions.submit()

        # Assert
        assert recorder.values == [None]


class TestTeardown:
    """Lifecycle: teardown closes everything, once."""

    def test_teardown_completes_all_streams(self):
        # Arrange
        bus = make_bus()
        searches, counts = Recorder(), Recorder()
        bus.actions.search_stream.subscribe(searches)
        bus.actions.count_stream.subscribe(counts)

        # Act
        bus.teardown()

        # Assert
        assert searches.completed == 1
        assert counts.completed == 1
        assert bus.retired is True
        assert all(c.closed for c in bus.registry.channels())

    def test_teardown_is_idempotent(self):
        # Arrange
        bus = make_bus()
        recorder = Recorder()
        bus.actions.search_stream.subscribe(recorder)

        # Act
        bus.teardown()
        bus.teardown()

        # Assert
        assert recorder.completed == 1
        assert bus.retired is True

    def test_teardown_logs_channel_count_once(self):
        bus = make_bus()
        with patch("actionbus.bus.logger") as mock_logger:
            bus.teardown()
            bus.teardown()
        mock_logger.info.assert_called_once()
        assert mock_logger.info.call_args[0][1] == 2
        mock_logger.debug.assert_called_once()

    def test_dispatch_after_teardown_is_silent_noop(self):
        # Arrange
        bus = make_bus()
        recorder = Recorder()
        bus.actions.search_stream.subscribe(recorder)
        bus.teardown()

        # Act
        with patch("actionbus.bus.logger") as mock_logger:
            bus.actions.search("late")
            bus.actions.never_seen("late")

        # Assert
        assert recorder.values == []
        assert mock_logger.warning.call_count == 2

    def test_subscribe_after_teardown_is_completed(self):
        # Arrange
        bus = make_bus()
        bus.teardown()
        known, unknown = Recorder(), Recorder()

        # Act
        known_sub = bus.actions.search_stream.subscribe(known)
        unknown_sub = bus.actions.fresh_stream.subscribe(unknown)

        # Assert
        assert known.completed == 1
        assert unknown.completed == 1
        assert not known_sub.active
        assert not unknown_sub.active

    def test_ignore_policy_logs_debug_only(self):
        bus = make_bus(post_teardown_dispatch="ignore")
        bus.teardown()
        with patch("actionbus.bus.logger") as mock_logger:
            bus.actions.search("late")
        mock_logger.warning.assert_not_called()
        mock_logger.debug.assert_called_once()

    def test_raise_policy_raises_bus_retired(self):
        # Arrange
        bus = make_bus(post_teardown_dispatch="raise")
        bus.teardown()

        # Act & Assert
        with pytest.raises(BusRetiredError) as exc_info:
            bus.actions.search("late")
        assert exc_info.value.code == "bus_retired"
        assert exc_info.value.details == {"action": "search"}

    def test_transform_still_runs_after_teardown(self):
        # Arrange
        def strict(value):
            raise ValueError("bad")

        bus = ActionBus(["strict"], {"strict": strict}, config=Config({}))
        bus.teardown()

        # Act & Assert
        with pytest.raises(ValueError):
            bus.actions.strict("x")

    def test_context_manager_tears_down(self):
        # Arrange
        recorder = Recorder()

        # Act
        with make_bus() as bus:
            bus.actions.search_stream.subscribe(recorder)
            bus.actions.search("inside")

        # Assert
        assert recorder.values == ["inside"]
        assert recorder.completed == 1
        assert bus.retired is True

    def test_repr_reports_state(self):
        bus = make_bus()
        assert "active" in repr(bus)
        bus.teardown()
        assert "retired" in repr(bus)


class TestCreateBus:
    """Module-level helpers."""

    def test_create_bus_returns_surface(self):
        # Arrange
        actions = create_bus(UIActions, {"count": coerce_int}, config=Config({}))
        recorder = Recorder()
        actions.count_stream.subscribe(recorder)

        # Act
        actions.count("7")

        # Assert
        assert recorder.values == [7]

    def test_teardown_helper(self):
        # Arrange
        actions = create_bus(UIActions, config=Config({}))
        recorder = Recorder()
        actions.search_stream.subscribe(recorder)

        # Act
        teardown(actions)

        # Assert
        assert recorder.completed == 1
        assert bus_of(actions).retired is True

    def test_action_named_teardown_does_not_clash(self):
        # Arrange
        actions = create_bus(["teardown"], config=Config({}))
        recorder = Recorder()
        actions.teardown_stream.subscribe(recorder)

        # Act
        actions.teardown("now")

        # Assert
        assert recorder.values == ["now"]
        assert bus_of(actions).retired is False

    def test_buses_do_not_share_channels(self):
        # Arrange
        first = create_bus(UIActions, config=Config({}))
        second = create_bus(UIActions, config=Config({}))
        recorder = Recorder()
        second.search_stream.subscribe(recorder)

        # Act
        first.search("x")

        # Assert
        assert recorder.values == []


class TestActionsFactory:
    """Surfaces from one factory share channels."""

    def test_surfaces_share_channels(self):
        # Arrange
        factory = ActionsFactory(UIActions, config=Config({}))
        raw = factory.create()
        coerced = factory.create({"count": coerce_int})
        recorder = Recorder()
        raw.count_stream.subscribe(recorder)

        # Act
        coerced.count("5")
        raw.count("6")

        # Assert
        assert recorder.values == [5, "6"]

    def test_factory_teardown_closes_all_surfaces(self):
        # Arrange
        factory = ActionsFactory(UIActions, config=Config({}))
        first = factory.create()
        second = factory.create()
        recorder = Recorder()
        first.search_stream.subscribe(recorder)

        # Act
        factory.teardown()
        second.search("late")

        # Assert
        assert recorder.completed == 1
        assert recorder.values == []
        assert factory.retired is True
        assert bus_of(second).retired is True

    def test_surfaces_use_the_factory_registry(self):
        # Arrange
        factory = ActionsFactory(UIActions, config=Config({}))

        # Act
        first = bus_of(factory.create())
        second = bus_of(factory.create())

        # Assert
        assert first.registry is second.registry
        assert first.channel("search") is second.channel("search")

    def test_bus_keeps_a_given_empty_registry(self):
        # Arrange
        registry = ChannelRegistry()

        # Act
        bus = ActionBus(config=Config({}), registry=registry)

        # Assert
        assert bus.registry is registry

    def test_factory_context_manager(self):
        with ActionsFactory(UIActions, config=Config({})) as factory:
            factory.create()
        assert factory.retired is True


class TestDeclaredActions:
    """Action declarations in their supported forms."""

    def test_from_annotated_class_includes_bases(self):
        class Base:
            search: str

        class Derived(Base):
            count: int

        assert declared_actions(Derived) == ["search", "count"]

    def test_from_mapping(self):
        assert declared_actions({"search": str, "count": int}) == ["search", "count"]

    def test_from_iterable_and_string(self):
        assert declared_actions(["a", "b", "a"]) == ["a", "b"]
        assert declared_actions("search") == ["search"]

    def test_extra_names_appended(self):
        assert declared_actions(["a"], ["b", "a"]) == ["a", "b"]

    def test_none(self):
        assert declared_actions(None) == []
