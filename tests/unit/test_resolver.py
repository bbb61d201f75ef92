"""
Unit tests for movement direction resolution.
"""

from hypothesis import given
from hypothesis import strategies as st

from src.core.locations import LocationClassifier
from src.core.models import FlowDirection, MovementType, RawMovement
from src.core.movements import MovementResolver

location_ids = st.one_of(st.none(), st.text(alphabet="0123456789ABC ", max_size=5))


class TestDetectMovementType:
    """Tests for MovementResolver.detect_movement_type"""

    def test_store_to_dc_is_reverse(self, resolver, raw_factory):
        raw = raw_factory(source_location="2352", destination_location="960", destination="960")
        assert resolver.detect_movement_type(raw) == MovementType.REVERSE

    def test_dc_to_store_is_normal(self, resolver, raw_factory):
        assert resolver.detect_movement_type(raw_factory()) == MovementType.NORMAL

    def test_servicing_node_fallback(self, resolver, raw_factory):
        """Test unclassifiable endpoints fall back to the servicing node rule"""
        raw = raw_factory(
            source_location="5555",
            destination_location="6666",
            destination="6666",
            servicing_nodes=["6666", "7777"],
        )
        assert resolver.detect_movement_type(raw) == MovementType.REVERSE

    def test_destination_outside_nodes_is_normal(self, resolver, raw_factory):
        raw = raw_factory(source_location="5555", destination_location="6666", destination="6666")
        assert resolver.detect_movement_type(raw) == MovementType.NORMAL

    def test_missing_fields_default_to_normal(self, resolver):
        assert resolver.detect_movement_type(RawMovement()) == MovementType.NORMAL


class TestResolve:
    """Tests for MovementResolver.resolve"""

    def test_reverse_swaps_endpoints(self, resolver, raw_factory, fixed_now):
        """Test a reported 2352 -> 960 movement resolves to 960 -> 2352 STORE_TO_DC"""
        raw = raw_factory(source_location="2352", destination_location="960", destination="960")

        resolved = resolver.resolve(raw)

        assert resolved.movement_type == MovementType.REVERSE
        assert resolved.actual_origin == "960"
        assert resolved.actual_destination == "2352"
        assert resolved.flow_direction == FlowDirection.STORE_TO_DC
        assert resolved.is_reverse is True
        assert resolved.raw is raw
        assert resolved.processed_at == fixed_now

    def test_normal_keeps_endpoints(self, resolver, raw_factory):
        resolved = resolver.resolve(raw_factory())

        assert resolved.movement_type == MovementType.NORMAL
        assert resolved.actual_origin == "960"
        assert resolved.actual_destination == "2352"
        assert resolved.flow_direction == FlowDirection.DC_TO_STORE
        assert resolved.is_reverse is False

    def test_resolve_is_idempotent(self, resolver, raw_factory):
        """Test resolving the same movement twice with a fixed clock gives equal results"""
        raw = raw_factory(source_location="2352", destination_location="960", destination="960")

        assert resolver.resolve(raw) == resolver.resolve(raw)

    def test_default_clock_only_changes_processed_at(self, classifier, raw_factory):
        resolver = MovementResolver(classifier)
        raw = raw_factory(source_location="2352", destination_location="960", destination="960")

        first = resolver.resolve(raw)
        second = resolver.resolve(raw)

        assert first.model_dump(exclude={"processed_at"}) == second.model_dump(exclude={"processed_at"})

    def test_empty_movement_resolves(self, resolver):
        resolved = resolver.resolve(RawMovement())

        assert resolved.movement_type == MovementType.NORMAL
        assert resolved.actual_origin is None
        assert resolved.actual_destination is None

    @given(
        source=location_ids,
        destination_location=location_ids,
        destination=location_ids,
        nodes=st.lists(st.sampled_from(["960", "1001", "2352", "6666"]), max_size=4),
    )
    def test_property_endpoints_are_a_permutation(self, source, destination_location, destination, nodes):
        """Property test: resolution is total and only ever swaps the reported endpoints"""
        resolver = MovementResolver(LocationClassifier(cache_enabled=False))
        raw = RawMovement(
            source_location=source,
            destination_location=destination_location,
            destination=destination,
            servicing_nodes=nodes,
        )

        resolved = resolver.resolve(raw)

        if resolved.movement_type == MovementType.REVERSE:
            assert (resolved.actual_origin, resolved.actual_destination) == (destination_location, source)
            assert resolved.flow_direction == FlowDirection.STORE_TO_DC
        else:
            assert (resolved.actual_origin, resolved.actual_destination) == (source, destination_location)
            assert resolved.flow_direction == FlowDirection.DC_TO_STORE
