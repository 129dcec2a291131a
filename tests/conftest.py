import os

# Settings are read at import time; point them at SQLite before fleetlink loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DATABASE_ISOLATION_LEVEL"] = "SERIALIZABLE"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["APP_ENV"] = "test"

import uuid

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fleetlink.config import settings
from fleetlink.database import Base, get_db
from fleetlink.models import Account, Driver, Vehicle, VehicleGroup


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = Session()
    yield session
    session.close()


# ─── Seed factories ──────────────────────────────────────────────────────────
@pytest.fixture
def make_account(db):
    def factory(company_name: str = None) -> Account:
        account = Account(companyName=company_name or f"Company {uuid.uuid4().hex[:6]}")
        db.add(account)
        db.commit()
        return account
    return factory


@pytest.fixture
def make_driver(db):
    counter = {"n": 0}

    def factory(full_name: str = None, cpf: str = None, cnh_number: str = None) -> Driver:
        counter["n"] += 1
        n = counter["n"]
        driver = Driver(
            cpf=cpf or f"{n:011d}",
            fullName=full_name or f"Driver {n}",
            cnhNumber=cnh_number or f"{90000000000 + n}",
        )
        db.add(driver)
        db.commit()
        return driver
    return factory


@pytest.fixture
def make_vehicle(db):
    counter = {"n": 0}

    def factory(plate: str = None, brand: str = "Volvo", model: str = "FH", year: int = 2022) -> Vehicle:
        counter["n"] += 1
        vehicle = Vehicle(plate=plate or f"ABC{counter['n']:04d}", brand=brand, model=model, year=year)
        db.add(vehicle)
        db.commit()
        return vehicle
    return factory


@pytest.fixture
def make_group(db):
    def factory(account: Account, name: str = "Default") -> VehicleGroup:
        group = VehicleGroup(accountId=account.id, name=name)
        db.add(group)
        db.commit()
        return group
    return factory


# ─── HTTP ────────────────────────────────────────────────────────────────────
def make_token(account_id: str, role: str = "ADMIN", user_id: str = None, token_type: str = "access") -> str:
    payload = {
        "sub":       user_id or str(uuid.uuid4()),
        "accountId": account_id,
        "role":      role,
        "type":      token_type,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


@pytest.fixture
def auth_headers():
    def factory(account_id: str, role: str = "ADMIN") -> dict:
        return {"Authorization": f"Bearer {make_token(account_id, role)}"}
    return factory


@pytest.fixture
def client(db):
    from fleetlink.main import app

    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()
