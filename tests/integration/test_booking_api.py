"""Integration tests for the booking and notification API endpoints.

The application runs against the in-memory storage backend and real bearer
tokens signed with the configured secret.
"""

import pytest
import pytest_asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4
from httpx import ASGITransport, AsyncClient
from jose import jwt

from src.rental_booking.domain.entities.item import Item
from src.rental_booking.domain.entities.notification import NotificationType
from src.rental_booking.domain.entities.user import User
from src.rental_booking.infrastructure.services import InMemoryServiceFactory, get_service_factory
from src.rental_booking.presentation.api.config import get_settings
from src.rental_booking.presentation.api.main import app


def make_token(user_id, expires_in=timedelta(minutes=5)):
    settings = get_settings()
    claims = {"sub": str(user_id), "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def auth(user):
    return {"Authorization": f"Bearer {make_token(user.id)}"}


BOOKINGS = f"{get_settings().api_prefix}/bookings"
NOTIFICATIONS = f"{get_settings().api_prefix}/notifications"


class TestBookingAPI:
    """Integration tests for booking API endpoints."""

    @pytest_asyncio.fixture
    async def factory(self):
        factory = InMemoryServiceFactory()
        app.dependency_overrides[get_service_factory] = lambda: factory
        yield factory
        app.dependency_overrides.clear()

    @pytest_asyncio.fixture
    async def client(self, factory):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client

    @pytest_asyncio.fixture
    async def owner(self, factory):
        return await factory.user_repository.save(User("owner@example.com", "Olivia", "Owner"))

    @pytest_asyncio.fixture
    async def renter(self, factory):
        return await factory.user_repository.save(User("renter@example.com", "Rene", "Renter"))

    @pytest_asyncio.fixture
    async def item(self, factory, owner):
        return await factory.item_repository.save(
            Item(owner.id, "DSLR Camera", Decimal("40.00"), image_url="camera.jpg")
        )

    async def create(self, client, user, item, start="2025-07-01", end="2025-07-03", **extra):
        return await client.post(
            f"{BOOKINGS}/",
            json={"item_id": str(item.id), "start_date": start, "end_date": end, **extra},
            headers=auth(user)
        )

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_create_booking(self, client, renter, item):
        response = await self.create(client, renter, item)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PENDING"
        assert data["rental_days"] == 3
        assert Decimal(str(data["total_price"])) == Decimal("120.00")
        assert data["item_name"] == "DSLR Camera"
        assert data["item_image"] == "camera.jpg"
        assert data["user_name"] == "Rene Renter"
        assert data["payment_status"] == "pending"

    @pytest.mark.asyncio
    async def test_missing_token(self, client, item):
        response = await client.post(
            f"{BOOKINGS}/",
            json={"item_id": str(item.id), "start_date": "2025-07-01", "end_date": "2025-07-02"}
        )

        assert response.status_code == 401
        assert response.json()["type"] == "authentication_error"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_expired_token(self, client, renter):
        token = make_token(renter.id, expires_in=timedelta(minutes=-5))

        response = await client.get(f"{BOOKINGS}/my-bookings", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Token has expired"

    @pytest.mark.asyncio
    async def test_conflicting_booking(self, client, owner, renter, item):
        await self.create(client, renter, item, "2025-07-01", "2025-07-03")

        response = await self.create(client, owner, item, "2025-07-03", "2025-07-04")

        assert response.status_code == 409
        assert response.json()["type"] == "booking_conflict"

    @pytest.mark.asyncio
    async def test_invalid_date_range(self, client, renter, item):
        response = await self.create(client, renter, item, "2025-07-05", "2025-07-01")

        assert response.status_code == 400
        assert response.json()["type"] == "invalid_date_range"

    @pytest.mark.asyncio
    async def test_unknown_item(self, client, renter):
        response = await client.post(
            f"{BOOKINGS}/",
            json={"item_id": str(uuid4()), "start_date": "2025-07-01", "end_date": "2025-07-02"},
            headers=auth(renter)
        )

        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    @pytest.mark.asyncio
    async def test_unavailable_item(self, client, renter, item):
        item.mark_unavailable()

        response = await self.create(client, renter, item)

        assert response.status_code == 409
        assert response.json()["type"] == "item_unavailable"

    @pytest.mark.asyncio
    async def test_status_update_by_owner(self, client, owner, renter, item):
        booking_id = (await self.create(client, renter, item)).json()["id"]

        response = await client.patch(
            f"{BOOKINGS}/{booking_id}/status", params={"status": "CONFIRMED"}, headers=auth(owner)
        )

        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"

    @pytest.mark.asyncio
    async def test_status_update_by_stranger(self, client, renter, item, factory):
        booking_id = (await self.create(client, renter, item)).json()["id"]
        stranger = await factory.user_repository.save(User("x@example.com", "X", "Y"))

        response = await client.patch(
            f"{BOOKINGS}/{booking_id}/status", params={"status": "CONFIRMED"}, headers=auth(stranger)
        )

        assert response.status_code == 403
        assert response.json()["type"] == "forbidden"

    @pytest.mark.asyncio
    async def test_invalid_transition(self, client, renter, item):
        booking_id = (await self.create(client, renter, item)).json()["id"]

        response = await client.patch(
            f"{BOOKINGS}/{booking_id}/status", params={"status": "COMPLETED"}, headers=auth(renter)
        )

        assert response.status_code == 409
        assert response.json()["type"] == "invalid_transition"

    @pytest.mark.asyncio
    async def test_listings(self, client, owner, renter, item, factory):
        other_renter = await factory.user_repository.save(User("other@example.com", "Otto", "Other"))
        await self.create(client, renter, item, "2025-07-01", "2025-07-02")
        await self.create(client, renter, item, "2025-08-01", "2025-08-02")
        await self.create(client, other_renter, item, "2025-09-01", "2025-09-02")

        mine = await client.get(f"{BOOKINGS}/my-bookings", headers=auth(renter))
        page = await client.get(
            f"{BOOKINGS}/my-bookings/paginated", params={"page": 0, "size": 1}, headers=auth(renter)
        )
        owned = await client.get(f"{BOOKINGS}/owner", headers=auth(owner))
        by_item = await client.get(f"{BOOKINGS}/item/{item.id}", headers=auth(owner))

        assert [b["start_date"] for b in mine.json()] == ["2025-08-01", "2025-07-01"]
        assert {b["user_id"] for b in mine.json()} == {str(renter.id)}
        assert page.json()["total_elements"] == 2
        assert page.json()["total_pages"] == 2
        assert page.json()["content"][0]["start_date"] == "2025-08-01"
        assert len(owned.json()) == 3
        assert [b["start_date"] for b in by_item.json()] == ["2025-07-01", "2025-08-01", "2025-09-01"]

        others = await client.get(f"{BOOKINGS}/my-bookings", headers=auth(other_renter))
        assert [b["start_date"] for b in others.json()] == ["2025-09-01"]

    @pytest.mark.asyncio
    async def test_get_booking_not_found(self, client, renter):
        response = await client.get(f"{BOOKINGS}/{uuid4()}", headers=auth(renter))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_get_booking_by_participants_only(self, client, owner, renter, item, factory):
        booking_id = (await self.create(client, renter, item, delivery_address="1 Main St")).json()["id"]
        stranger = await factory.user_repository.save(User("x@example.com", "X", "Y"))

        as_renter = await client.get(f"{BOOKINGS}/{booking_id}", headers=auth(renter))
        as_owner = await client.get(f"{BOOKINGS}/{booking_id}", headers=auth(owner))
        as_stranger = await client.get(f"{BOOKINGS}/{booking_id}", headers=auth(stranger))

        assert as_renter.json()["delivery_address"] == "1 Main St"
        assert as_owner.json()["delivery_address"] == "1 Main St"
        assert as_stranger.status_code == 403
        assert as_stranger.json()["type"] == "forbidden"

    @pytest.mark.asyncio
    async def test_item_listing_hides_other_renters_details(self, client, owner, renter, item, factory):
        await self.create(
            client, renter, item, delivery_address="1 Main St", special_instructions="Ring twice"
        )
        stranger = await factory.user_repository.save(User("x@example.com", "X", "Y"))

        as_stranger = (await client.get(f"{BOOKINGS}/item/{item.id}", headers=auth(stranger))).json()
        as_owner = (await client.get(f"{BOOKINGS}/item/{item.id}", headers=auth(owner))).json()

        assert as_stranger[0]["start_date"] == "2025-07-01"
        assert as_stranger[0]["delivery_address"] is None
        assert as_stranger[0]["special_instructions"] is None
        assert as_owner[0]["delivery_address"] == "1 Main St"
        assert as_owner[0]["special_instructions"] == "Ring twice"

    def test_error_model_documented(self):
        schema = app.openapi()

        assert "ErrorResponse" in schema["components"]["schemas"]
        responses = schema["paths"][f"{BOOKINGS}/{{booking_id}}"]["get"]["responses"]
        assert responses["403"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")


class TestNotificationAPI:
    """Integration tests for notification endpoints."""

    @pytest_asyncio.fixture
    async def factory(self):
        factory = InMemoryServiceFactory()
        app.dependency_overrides[get_service_factory] = lambda: factory
        yield factory
        app.dependency_overrides.clear()

    @pytest_asyncio.fixture
    async def client(self, factory):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client

    @pytest.mark.asyncio
    async def test_owner_inbox_after_booking(self, client, factory):
        owner = await factory.user_repository.save(User("owner@example.com", "Olivia", "Owner"))
        renter = await factory.user_repository.save(User("renter@example.com", "Rene", "Renter"))
        item = await factory.item_repository.save(Item(owner.id, "Kayak", Decimal("30")))

        await client.post(
            f"{BOOKINGS}/",
            json={"item_id": str(item.id), "start_date": "2025-07-01", "end_date": "2025-07-01"},
            headers=auth(renter)
        )

        count = await client.get(f"{NOTIFICATIONS}/unread/count", headers=auth(owner))
        inbox = await client.get(f"{NOTIFICATIONS}/", headers=auth(owner))
        assert count.json() == {"count": 1}
        notification = inbox.json()[0]
        assert notification["title"] == "New Booking Request"
        assert notification["message"] == "You have a new booking request for Kayak"

        read = await client.patch(f"{NOTIFICATIONS}/{notification['id']}/read", headers=auth(owner))
        assert read.json()["read"] is True

        forbidden = await client.delete(f"{NOTIFICATIONS}/{notification['id']}", headers=auth(renter))
        assert forbidden.status_code == 403

        deleted = await client.delete(f"{NOTIFICATIONS}/{notification['id']}", headers=auth(owner))
        assert deleted.json()["success"] is True

    @pytest.mark.asyncio
    async def test_mark_all_read(self, client, factory):
        user = await factory.user_repository.save(User("u@example.com", "U", "Ser"))
        async with factory.get_notification_service() as notification_service:
            for title in ("One", "Two"):
                await notification_service.create_notification(
                    user.id, title, "", NotificationType.SYSTEM_NOTIFICATION
                )

        response = await client.patch(f"{NOTIFICATIONS}/read-all", headers=auth(user))
        unread = await client.get(f"{NOTIFICATIONS}/unread", headers=auth(user))
        page = await client.get(f"{NOTIFICATIONS}/paginated", headers=auth(user))

        assert response.json()["message"] == "2 notification(s) marked as read"
        assert unread.json() == []
        assert page.json()["total_elements"] == 2
