"""
Catalog and reference data services: activities, companies, guides,
transports and system configuration.
"""

from decimal import Decimal

import pytest

from tourops.core import ConflictError, NotFoundError, ValidationError
from tourops.infrastructure.repositories import TransportRepository
from tourops.services import (
    ActivityService, ActivityTypeService, BookingService, CompanyService,
    ConfigurationService, GuideService, LanguageService, TransportService,
)

from conftest import booking_payload


class TestActivities:

    @pytest.mark.asyncio
    async def test_create_and_list(self, session, make_activity):
        await make_activity(title="Walk")
        await make_activity(title="Boat")
        items, total = await ActivityService(session).list_activities(skip=0, limit=1)
        assert total == 2
        assert len(items) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("changes", [
        {"party_size": 0},
        {"title": " "},
        {"adult_price": Decimal("-1")},
    ])
    async def test_invalid_updates(self, session, make_activity, changes):
        activity = await make_activity()
        with pytest.raises(ValidationError):
            await ActivityService(session).update_activity(activity.id, changes)

    @pytest.mark.asyncio
    async def test_unknown_type(self, session):
        with pytest.raises(NotFoundError):
            await ActivityService(session).create_activity("missing", "Walk", 10)

    @pytest.mark.asyncio
    async def test_delete_denied_with_bookings(self, session, make_activity, make_schedule):
        activity = await make_activity()
        schedule = await make_schedule(activity)
        bookings = BookingService(session)
        result = await bookings.create_booking(booking_payload(schedule.id))
        service = ActivityService(session)

        with pytest.raises(ConflictError):
            await service.delete_activity(activity.id)

        await bookings.cancel_booking(result.booking.id)
        await service.delete_activity(activity.id)
        with pytest.raises(NotFoundError):
            await service.get_activity(activity.id)

    @pytest.mark.asyncio
    async def test_type_in_use_cannot_be_deleted(self, session, make_activity):
        activity = await make_activity()
        with pytest.raises(ConflictError):
            await ActivityTypeService(session).delete_type(activity.activity_type_id)

    @pytest.mark.asyncio
    async def test_duplicate_type_code(self, session):
        service = ActivityTypeService(session)
        await service.create_type("tour", "Tour")
        with pytest.raises(ConflictError):
            await service.create_type("tour", "Another tour")


class TestCompanies:

    @pytest.mark.asyncio
    async def test_default_commission_from_settings(self, session):
        await ConfigurationService(session).set_value("default_commission_percentage", 7)
        company = await CompanyService(session).create_company("Sunny Travel")
        assert company.commission_percentage == Decimal("7")

    @pytest.mark.asyncio
    async def test_duplicate_name(self, session):
        service = CompanyService(session)
        await service.create_company("Sunny Travel")
        with pytest.raises(ConflictError):
            await service.create_company("Sunny Travel")

    @pytest.mark.asyncio
    async def test_commission_range(self, session):
        with pytest.raises(ValidationError):
            await CompanyService(session).create_company("Greedy", commission_percentage=150)

    @pytest.mark.asyncio
    async def test_delete_denied_when_referenced(self, session, make_activity, make_schedule):
        schedule = await make_schedule(await make_activity())
        service = CompanyService(session)
        company = await service.create_company("Sunny Travel")
        await BookingService(session).create_booking(booking_payload(schedule.id, company_id=company.id))

        with pytest.raises(ConflictError):
            await service.delete_company(company.id)

    @pytest.mark.asyncio
    async def test_toggle_status(self, session):
        service = CompanyService(session)
        company = await service.create_company("Sunny Travel")
        company = await service.set_status(company.id, False)
        assert company.status is False


class TestGuides:

    @pytest.mark.asyncio
    async def test_guide_with_languages(self, session):
        languages = LanguageService(session)
        es = await languages.create_language("ES", "Spanish")
        en = await languages.create_language("en", "English")
        assert es.code == "es"

        guide = await GuideService(session).create_guide(
            name="Maria", phone="+1 650-253-0000", language_ids=[es.id, en.id]
        )
        assert guide.phone == "+16502530000"
        assert {lang.code for lang in guide.languages} == {"es", "en"}

        guide = await GuideService(session).update_guide(guide.id, {"language_ids": [en.id]})
        assert [lang.code for lang in guide.languages] == ["en"]

    @pytest.mark.asyncio
    async def test_unknown_language(self, session):
        with pytest.raises(NotFoundError):
            await GuideService(session).create_guide(name="Maria", language_ids=["missing"])

    @pytest.mark.asyncio
    async def test_invalid_party_size(self, session):
        with pytest.raises(ValidationError):
            await GuideService(session).create_guide(name="Maria", max_party_size=0)


class TestTransports:

    @pytest.mark.asyncio
    async def test_available_filters_by_capacity_and_state(self, session):
        service = TransportService(session)
        van = await service.create_transport("Van", 8)
        bus = await service.create_transport("Bus", 40)
        await service.create_transport("Broken bus", 40, operational_status=False)
        await service.create_transport("Retired van", 8, status=False)

        assert [t.id for t in await service.list_available(6)] == [van.id, bus.id]
        assert [t.id for t in await service.list_available(10)] == [bus.id]

    @pytest.mark.asyncio
    async def test_capacity_must_be_positive(self, session):
        with pytest.raises(ValidationError):
            await TransportService(session).create_transport("Van", 0)


class TestConfiguration:

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, session):
        service = ConfigurationService(session)
        assert await service.seed_defaults() == 2
        assert await service.seed_defaults() == 0

    @pytest.mark.asyncio
    async def test_set_and_get_by_keys(self, session):
        service = ConfigurationService(session)
        await service.seed_defaults()
        await service.set_value("currency", "EUR")

        settings = await service.get_by_keys(["currency", "unknown"])
        assert [(s.key, s.value) for s in settings] == [("currency", "EUR")]

    @pytest.mark.asyncio
    async def test_missing_key(self, session):
        with pytest.raises(NotFoundError):
            await ConfigurationService(session).get_setting("nope")


class TestBaseRepository:

    @pytest.mark.asyncio
    async def test_filters_ignore_none_and_unknown_columns(self, session):
        service = TransportService(session)
        await service.create_transport("Van", 8)
        await service.create_transport("Bus", 40, status=False)
        repo = TransportRepository(session)

        assert await repo.count() == 2
        assert await repo.count(filters={"status": False}) == 1
        assert await repo.count(filters={"status": None, "colour": "red"}) == 2
        assert [t.model for t in await repo.get_multi(filters={"status": True})] == ["Van"]
