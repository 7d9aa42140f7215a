"""
Test configuration for the MedTracker backend.
"""
import os

# Keep the application's own engine in memory during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medtracker.database import Base, get_db
from medtracker.main import app
from medtracker.medications.models import PrescriptionMedication, NonPrescriptionMedication

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    # Create tables
    Base.metadata.create_all(bind=engine)
    
    # Create session
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        
    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """
    Create a test client with a test database session.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass
    
    # Override the get_db dependency
    app.dependency_overrides[get_db] = override_get_db
    
    # Create test client
    with TestClient(app) as client:
        yield client
    
    # Remove dependency override
    app.dependency_overrides = {}


@pytest.fixture
def prescription(db):
    """
    A stored prescription: 20mg pills, 600mg left, 30 pills per fill, 3 refills.
    """
    medication = PrescriptionMedication(
        name="Sertraline",
        total_mg_remaining=600.0,
        mg_per_pill=20.0,
        initial_pill_count=30.0,
        refills_remaining=3,
    )
    db.add(medication)
    db.commit()
    db.refresh(medication)
    return medication


@pytest.fixture
def supplement(db):
    """
    A stored non-prescription product: 1000 IU counted as 1mg per softgel, 100 left.
    """
    medication = NonPrescriptionMedication(
        name="Vitamin D",
        total_mg_remaining=100.0,
        mg_per_pill=1.0,
        initial_pill_count=100.0,
        brand_name="NatureMade",
    )
    db.add(medication)
    db.commit()
    db.refresh(medication)
    return medication

