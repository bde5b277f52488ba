import pytest
from fastapi.testclient import TestClient

from journey_fsm.app.journey_id import JourneyIdSupport, journey_key_resolver
from journey_fsm.services.journey import JourneyService

from dummy_journey import DummyJourneyController, DummyJourneyModel, DummyJourneyRepository, create_app

JOURNEY_KEY = "journeyId"


@pytest.fixture
def model():
    return DummyJourneyModel()


@pytest.fixture
def repository():
    return DummyJourneyRepository()


@pytest.fixture
def service(model, repository):
    return JourneyService(model=model, repository=repository, journey_key=JOURNEY_KEY)


@pytest.fixture
def controller(service):
    return DummyJourneyController(service)


@pytest.fixture
def client(controller):
    with TestClient(create_app(controller), follow_redirects=False) as client:
        yield client


@pytest.fixture
def id_controller(model, repository):
    service = JourneyService(
        model=model,
        repository=repository,
        journey_key=JOURNEY_KEY,
        key_resolver=journey_key_resolver(JOURNEY_KEY),
    )
    return DummyJourneyController(service, journey_id_support=JourneyIdSupport(JOURNEY_KEY))


@pytest.fixture
def id_client(id_controller):
    with TestClient(create_app(id_controller), follow_redirects=False) as client:
        yield client
