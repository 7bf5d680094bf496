from datetime import datetime

import pytest
from pydantic import ValidationError

from models.booking import BookingCreate, TripQuoteRequest
from models.user import DriverCreate, LoginRequest, UserRegister
from models.pricing import DistanceTier, FeeRule, PricingPolicy, TimeSurcharge, parse_clock


class TestParseClock:
    @pytest.mark.parametrize("value,minutes", [("00:00", 0), ("17:00", 1020), ("23:59", 1439), (" 7:05 ", 425)])
    def test_valid(self, value, minutes):
        assert parse_clock(value) == minutes

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "12", "", "1:2:3"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_clock(value)


class TestPricingPolicyValidation:
    def test_defaults(self):
        policy = PricingPolicy()
        assert policy.distance_fee_enabled is True
        assert [t.fee for t in policy.distance_tiers] == [0, 49, 99]
        assert policy.time_surcharges[0].surcharge == 20
        assert policy.max_fee == 1000

    def test_accepts_camel_case_payload(self):
        policy = PricingPolicy.model_validate({"perMileFeeEnabled": True, "perMileFee": 3, "distanceTiers": []})
        assert policy.per_mile_fee_enabled is True
        assert policy.per_mile_fee == 3
        dumped = policy.model_dump(by_alias=True)
        assert "distanceTiers" in dumped
        assert "perMileFee" in dumped

    def test_overlapping_tiers_rejected(self):
        with pytest.raises(ValidationError, match="overlap"):
            PricingPolicy(distance_tiers=[
                {"minDistance": 0, "maxDistance": 50, "fee": 0},
                {"minDistance": 40, "maxDistance": 60, "fee": 49},
            ])

    def test_unsorted_contiguous_tiers_accepted(self):
        policy = PricingPolicy(distance_tiers=[
            {"minDistance": 40, "maxDistance": 60, "fee": 49},
            {"minDistance": 0, "maxDistance": 40, "fee": 0},
        ])
        assert len(policy.distance_tiers) == 2

    def test_open_ended_tier_must_be_last(self):
        with pytest.raises(ValidationError, match="open-ended"):
            PricingPolicy(distance_tiers=[
                {"minDistance": 0, "fee": 0},
                {"minDistance": 40, "maxDistance": 60, "fee": 49},
            ])

    def test_tier_max_must_exceed_min(self):
        with pytest.raises(ValidationError):
            DistanceTier(min_distance=40, max_distance=40, fee=10)

    def test_negative_amounts_rejected(self):
        with pytest.raises(ValidationError):
            PricingPolicy(stop_price=-1)
        with pytest.raises(ValidationError):
            DistanceTier(min_distance=0, max_distance=10, fee=-5)

    def test_min_fee_above_max_fee_rejected(self):
        with pytest.raises(ValidationError, match="minFee"):
            PricingPolicy(min_fee=200, max_fee=100)

    def test_min_fee_allowed_without_cap(self):
        assert PricingPolicy(min_fee=200, max_fee=0).min_fee == 200

    @pytest.mark.parametrize("start,end", [("25:00", "05:00"), ("17:00", "7pm"), ("18:00", "18:00")])
    def test_invalid_surcharge_windows(self, start, end):
        with pytest.raises(ValidationError):
            TimeSurcharge(start_time=start, end_time=end, surcharge=10)

    def test_fee_rule_condition_checked(self):
        with pytest.raises(ValidationError):
            FeeRule(condition="open('/etc/passwd')", fee=10)
        with pytest.raises(ValidationError):
            FeeRule(condition='"x" * 100000000000000 == "y"', fee=1)
        assert FeeRule(condition=" distance > 10 ", fee=5).condition == "distance > 10"


class TestTripQuoteRequest:
    BASE = {"pickupLocation": "LAX", "dropoffLocation": "Anaheim", "pickupTime": "2026-03-10T12:00:00"}

    def test_camel_case_payload(self):
        request = TripQuoteRequest.model_validate({**self.BASE, "distanceMiles": 12.5, "carSeats": 1})
        assert request.distance_miles == 12.5
        assert request.car_seats == 1
        assert request.pickup_time == datetime(2026, 3, 10, 12, 0)

    @pytest.mark.parametrize("field,value", [
        ("distanceMiles", -1),
        ("hours", -2),
        ("carSeats", -1),
        ("boosterSeats", -1),
        ("passengers", 0),
    ])
    def test_negative_inputs_rejected(self, field, value):
        with pytest.raises(ValidationError):
            TripQuoteRequest.model_validate({**self.BASE, field: value})

    def test_stops_numbered_and_sorted(self):
        request = TripQuoteRequest.model_validate({
            **self.BASE,
            "stops": [{"location": "B", "order": 2}, {"location": "A", "order": 1}, {"location": "C"}],
        })
        assert [s.location for s in request.stops] == ["A", "B", "C"]
        assert request.stops[2].order == 3

    def test_explicit_orders_keep_their_slot(self):
        request = TripQuoteRequest.model_validate({
            **self.BASE,
            "stops": [{"location": "S1"}, {"location": "S2", "order": 1}],
        })
        assert [(s.location, s.order) for s in request.stops] == [("S2", 1), ("S1", 2)]

    def test_duplicate_stop_orders_rejected(self):
        with pytest.raises(ValidationError):
            TripQuoteRequest.model_validate({
                **self.BASE,
                "stops": [{"location": "S1", "order": 1}, {"location": "S2", "order": 1}],
            })

    def test_booking_email_normalized(self):
        booking = BookingCreate.model_validate({
            **self.BASE,
            "customerName": "Jane Doe",
            "customerEmail": "  Jane@Example.COM ",
            "customerPhone": "+1 714 555 0100",
        })
        assert booking.customer_email == "jane@example.com"

    def test_booking_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            BookingCreate.model_validate({
                **self.BASE,
                "customerName": "Jane Doe",
                "customerEmail": "not-an-email",
                "customerPhone": "+1 714 555 0100",
            })

    @pytest.mark.parametrize("email", ["a@.com", "a@b.", "a b@c.d", "a@@b.c"])
    def test_booking_malformed_email_rejected(self, email):
        with pytest.raises(ValidationError):
            BookingCreate.model_validate({
                **self.BASE,
                "customerName": "Jane Doe",
                "customerEmail": email,
                "customerPhone": "+1 714 555 0100",
            })


class TestAccountModels:
    @pytest.mark.parametrize("email", ["a@.com", "a@b.", "a b@c.d", "a@@b.c", "plainaddress"])
    def test_register_malformed_email_rejected(self, email):
        with pytest.raises(ValidationError):
            UserRegister(email=email, password="secret123", first_name="Jane", last_name="Doe")

    def test_register_email_lowercased(self):
        body = UserRegister(email=" Jane.Doe@Example.com", password="secret123", first_name="Jane", last_name="Doe")
        assert body.email == "jane.doe@example.com"

    def test_login_email_lowercased(self):
        assert LoginRequest(email="ADMIN@Example.com", password="x").email == "admin@example.com"

    def test_driver_requires_phone(self):
        with pytest.raises(ValidationError):
            DriverCreate(email="d@example.com", password="secret123", first_name="Dan", last_name="Roe")
        driver = DriverCreate.model_validate({
            "email": "d@example.com", "password": "secret123", "firstName": "Dan",
            "lastName": "Roe", "phone": "+1 714 555 0199", "licenseNumber": "CA-123",
        })
        assert driver.license_number == "CA-123"
