"""Tests for the bike read models."""

from decimal import Decimal

from workshop_modules.bikes.models import WorkflowStatus


class TestLookups:

    def test_search_by_frame_and_table(self, bike_service, bikes, awaiting_bike, brake_pad, mechanic_id):
        other = bike_service.register_intake(
            "XYZ4", "S5", mechanic_id, repair_type_ids=[brake_pad.id], table_number="9",
        )

        assert [b.id for b in bikes.search("abc")] == [awaiting_bike.id]
        # "4" matches other's frame number and awaiting_bike's table.
        assert {b.id for b in bikes.search("4")} == {awaiting_bike.id, other.id}
        assert bikes.search("  ") == []

    def test_find_by_frame_number(self, bikes, awaiting_bike):
        assert bikes.find_by_frame_number(" ABC123").id == awaiting_bike.id
        assert bikes.find_by_frame_number("nope") is None

    def test_table_overview(self, bikes, awaiting_bike, shop_config):
        slots = bikes.table_overview(shop_config.tables)

        assert [s.table_number for s in slots] == list(shop_config.tables)
        by_table = {s.table_number: s for s in slots}
        assert [b.id for b in by_table["4"].bikes] == [awaiting_bike.id]
        assert not by_table["4"].is_free
        assert by_table["A"].is_free

    def test_by_status(self, bikes, awaiting_bike):
        assert [b.id for b in bikes.by_status("wacht_op_akkoord")] == [awaiting_bike.id]
        assert bikes.by_status(WorkflowStatus.IN_REPAIR) == []


class TestMechanicQueue:

    def test_my_bike_tasks_order(self, bike_service, bikes, in_repair_bike, brake_pad, foh_id, mechanic_id):
        second = bike_service.register_intake(
            "QUEUE2", "S3", mechanic_id, repair_type_ids=[brake_pad.id], table_number="2",
        )
        bike_service.approve(second.id, foh_id)
        bike_service.assign_mechanic(second.id, mechanic_id, foh_id)

        assert [b.id for b in bikes.my_bike_tasks(mechanic_id)] == [in_repair_bike.id, second.id]

    def test_waiting_for_customer_excluded(self, bike_service, bikes, awaiting_bike, foh_id, mechanic_id):
        bike_service.assign_mechanic(awaiting_bike.id, mechanic_id, foh_id)
        assert bikes.my_bike_tasks(mechanic_id) == []


class TestAnalytics:

    def test_mechanic_stats_include_diagnosis_bonus(
        self, bike_service, bikes, in_repair_bike, brake_pad, mechanic_id,
    ):
        bike_service.complete_repairs(in_repair_bike.id, [brake_pad.id], mechanic_id)

        [score] = bikes.mechanic_stats()
        assert score.mechanic_id == mechanic_id
        assert score.repair_count == 2
        assert score.points == Decimal("1.5")

    def test_completed_repairs_since(self, bikes, clock, awaiting_bike):
        assert len(bikes.completed_repairs()) == 1
        clock.advance(days=1)
        assert bikes.completed_repairs(since=clock.now()) == []

    def test_warranty_stats_empty(self, bikes, awaiting_bike):
        assert bikes.warranty_stats() == ([], [])
