"""
Unit tests for the consumer registry and ingestion controller.
"""

import pytest

from src.ingestion import ConsumerRegistry, IngestionControlError, IngestionController


class TestConsumerRegistry:
    """Tests for ConsumerRegistry"""

    def test_registration_order(self, unit_factory):
        registry = ConsumerRegistry([unit_factory("b"), unit_factory("a")])
        assert registry.unit_ids() == ["b", "a"]
        assert len(registry) == 2

    def test_duplicate_rejected(self, unit_factory):
        registry = ConsumerRegistry([unit_factory("movements")])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(unit_factory("movements"))

    def test_get_and_unregister(self, unit_factory):
        unit = unit_factory("movements")
        registry = ConsumerRegistry([unit])

        assert registry.get("movements") is unit
        assert registry.unregister("movements") is unit
        assert registry.get("movements") is None
        assert registry.unregister("movements") is None


class TestPauseResume:
    """Tests for pause_all / resume_all"""

    def test_pause_all(self, controller, fake_units):
        controller.pause_all()

        assert all(u.paused for u in fake_units)
        assert controller.listeners_active is False
        assert controller.status().paused == 2

    def test_resume_all(self, controller, fake_units):
        controller.pause_all()
        controller.resume_all()

        assert not any(u.paused for u in fake_units)
        assert controller.listeners_active is True
        assert controller.status().all_active is True

    def test_pause_all_is_idempotent(self, controller, fake_units):
        controller.pause_all()
        controller.pause_all()

        assert all(u.calls == ["pause"] for u in fake_units)

    def test_resume_all_without_pause_is_safe(self, controller, fake_units):
        controller.resume_all()
        assert controller.status().all_active is True

    def test_pause_skips_stopped_units(self, unit_factory):
        stopped = unit_factory("stopped", running=False)
        controller = IngestionController(ConsumerRegistry([stopped, unit_factory("live")]))

        controller.pause_all()

        assert stopped.calls == []

    def test_pause_failure_raises_control_error(self, unit_factory):
        good = unit_factory("good")
        bad = unit_factory("bad", fail_on={"pause"})
        controller = IngestionController(ConsumerRegistry([good, bad]))

        with pytest.raises(IngestionControlError) as exc_info:
            controller.pause_all()

        assert exc_info.value.operation == "pause"
        assert exc_info.value.unit_id == "bad"
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        # Partial state: units before the failing one stay paused
        assert good.paused is True
        assert controller.listeners_active is True

    def test_resume_failure_raises_control_error(self, unit_factory):
        bad = unit_factory("bad", fail_on={"resume"})
        controller = IngestionController(ConsumerRegistry([bad]))

        with pytest.raises(IngestionControlError, match="Failed to resume unit 'bad'"):
            controller.resume_all()

    def test_single_unit_control(self, controller, fake_units):
        controller.pause("movements")

        assert controller.unit_info("movements").paused is True
        assert controller.unit_info("movements-replay").paused is False

        controller.resume("movements")
        assert controller.unit_info("movements").paused is False

    def test_unknown_unit_is_ignored(self, controller):
        controller.pause("missing")
        controller.resume("missing")


class TestStatus:
    """Tests for status and unit info"""

    def test_status_counts(self, controller):
        controller.pause("movements")
        status = controller.status()

        assert status.total == 2
        assert status.running == 1
        assert status.paused == 1
        assert status.all_active is False

    def test_empty_registry_is_all_active(self):
        status = IngestionController(ConsumerRegistry()).status()
        assert status.total == 0
        assert status.all_active is True

    def test_unit_info_missing(self, controller):
        info = controller.unit_info("missing")
        assert info.exists is False
        assert info.running is False

    def test_unit_info_present(self, controller):
        info = controller.unit_info("movements")
        assert info.exists is True
        assert info.running is True
        assert info.paused is False


class TestEmergencyStop:
    """Tests for emergency_stop_all"""

    def test_stops_running_units(self, controller, fake_units):
        controller.emergency_stop_all()

        assert all(u.calls == ["stop"] for u in fake_units)
        assert controller.status().running == 0
        assert controller.listeners_active is False

    def test_stop_failure_raises(self, unit_factory):
        controller = IngestionController(ConsumerRegistry([unit_factory("bad", fail_on={"stop"})]))
        with pytest.raises(IngestionControlError):
            controller.emergency_stop_all()
