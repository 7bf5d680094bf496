import asyncio

import pytest
from fastapi import HTTPException

from fakes import FakeCollection
from models.pricing import DistanceTier, PricingPolicy, PricingPolicyUpdate
from services.settings_service import AdminSettingsService


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def service(collection):
    return AdminSettingsService(collection)


class TestInitialize:
    def test_creates_document_with_defaults(self, service, collection):
        policy = run(service.initialize())
        assert policy.stop_price == 25
        assert len(collection.docs) == 1
        doc = collection.docs[0]
        assert doc["key"] == "admin_settings"
        assert doc["bookings_enabled"] is True

    def test_is_idempotent_and_keeps_admin_changes(self, service, collection):
        run(service.initialize())
        run(service.update_pricing_policy(PricingPolicyUpdate(stop_price=30)))
        policy = run(service.initialize())
        assert policy.stop_price == 30
        assert len(collection.docs) == 1


class TestGetPricingPolicy:
    def test_missing_document_returns_defaults_without_writing(self, service, collection):
        policy = run(service.get_pricing_policy())
        assert policy.model_dump(exclude={"updated_at"}) == PricingPolicy().model_dump(exclude={"updated_at"})
        assert collection.docs == []

    def test_invalid_stored_policy_falls_back_to_defaults(self, service, collection):
        collection.docs.append({
            "type": "settings",
            "key": "admin_settings",
            "pricing": {"distance_tiers": [
                {"min_distance": 0, "max_distance": 50, "fee": 0},
                {"min_distance": 10, "max_distance": 60, "fee": 5},
            ]},
        })
        policy = run(service.get_pricing_policy())
        assert len(policy.distance_tiers) == 3


class TestUpdatePricingPolicy:
    def test_partial_update_keeps_other_fields(self, service):
        run(service.initialize())
        saved = run(service.update_pricing_policy(PricingPolicyUpdate(per_mile_fee_enabled=True, per_mile_fee=3.5)))
        assert saved.per_mile_fee == 3.5
        assert saved.updated_at is not None
        reloaded = run(service.get_pricing_policy())
        assert reloaded.per_mile_fee_enabled is True
        assert reloaded.stop_price == 25
        assert len(reloaded.distance_tiers) == 3

    def test_invalid_merge_rejected_and_nothing_written(self, service):
        run(service.initialize())
        update = PricingPolicyUpdate(distance_tiers=[
            DistanceTier(min_distance=0, max_distance=50, fee=0),
            DistanceTier(min_distance=30, max_distance=70, fee=20),
        ])
        with pytest.raises(HTTPException) as exc_info:
            run(service.update_pricing_policy(update))
        assert exc_info.value.status_code == 422
        assert [t.fee for t in run(service.get_pricing_policy()).distance_tiers] == [0, 49, 99]

    def test_negative_value_rejected(self, service):
        with pytest.raises(HTTPException) as exc_info:
            run(service.update_pricing_policy(PricingPolicyUpdate(stop_price=-5)))
        assert exc_info.value.status_code == 422

    def test_replace_stores_whole_policy(self, service):
        run(service.replace_pricing_policy(PricingPolicy(distance_tiers=[], max_fee=0)))
        policy = run(service.get_pricing_policy())
        assert policy.distance_tiers == []
        assert policy.max_fee == 0


class TestBookingsToggle:
    def test_enabled_by_default(self, service):
        assert run(service.bookings_enabled()) is True

    def test_toggle(self, service):
        run(service.initialize())
        run(service.set_bookings_enabled(False))
        assert run(service.bookings_enabled()) is False
        run(service.set_bookings_enabled(True))
        assert run(service.bookings_enabled()) is True

    def test_toggle_does_not_touch_pricing(self, service):
        run(service.initialize())
        run(service.update_pricing_policy(PricingPolicyUpdate(car_seat_price=20)))
        run(service.set_bookings_enabled(False))
        assert run(service.get_pricing_policy()).car_seat_price == 20

    def test_public_settings(self, service):
        run(service.initialize())
        run(service.set_bookings_enabled(False))
        public = run(service.public_settings())
        assert public.bookings_enabled is False
        assert public.model_dump(by_alias=True)["stopPrice"] == 25
