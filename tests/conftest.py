import pytest
from mongomock_motor import AsyncMongoMockClient

from salon_booking.core.auth import create_access_token
from salon_booking.db.mongodb import db
from salon_booking.schemas.user import Caller, Role


@pytest.fixture(autouse=True)
def mongo():
    """Point the application at a fresh in-memory MongoDB for every test."""
    previous = (db.client, db.db)
    db.client = AsyncMongoMockClient()
    db.db = db.client["salon_booking_test"]
    yield db.db
    db.client, db.db = previous


@pytest.fixture
def specialist_factory(mongo):
    async def create(name="Anna", address="Main st. 1", vacation=None):
        result = await mongo.specialists.insert_one({
            "name": name,
            "address": address,
            "vacation": vacation,
        })
        return str(result.inserted_id)
    return create


@pytest.fixture
def slot_factory(mongo):
    async def create(specialist_id, date="2030-06-03", time="10:00", booked=False, user_id=None):
        document = {"specialistId": specialist_id, "date": date, "time": time, "booked": booked}
        if user_id:
            document["userId"] = user_id
        result = await mongo.slots.insert_one(document)
        return str(result.inserted_id)
    return create


def make_caller(user_id="user-1", role=Role.CUSTOMER, name="Test User"):
    return Caller(id=user_id, name=name, email=f"{user_id}@example.com", phone="+70000000000", role=role)


@pytest.fixture
def caller_factory():
    return make_caller


@pytest.fixture
def customer():
    return make_caller("customer-1")


@pytest.fixture
def other_customer():
    return make_caller("customer-2", name="Other User")


@pytest.fixture
def admin():
    return make_caller("admin-1", role=Role.ADMIN, name="Admin")


@pytest.fixture
def auth_headers():
    def headers(caller: Caller):
        token = create_access_token({
            "sub": caller.id,
            "role": caller.role.value,
            "name": caller.name,
            "email": caller.email,
            "phone": caller.phone,
        })
        return {"Authorization": f"Bearer {token}"}
    return headers
