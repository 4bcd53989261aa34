import pytest

from annotation_dashboard.db import make_engine, make_session_factory, migrate
from annotation_dashboard.services import workflows


@pytest.fixture
def db(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'annotate.db'}")
    migrate(engine)
    session = make_session_factory(engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def admin(db):
    return workflows.sign_up(db, "ada", "ada@example.com", "Admin")


@pytest.fixture
def manager(db):
    return workflows.sign_up(db, "max", "max@example.com", "Manager")


@pytest.fixture
def annotator(db):
    return workflows.sign_up(db, "ann", "ann@example.com", "Annotator")


@pytest.fixture
def reviewer(db):
    return workflows.sign_up(db, "rita", "rita@example.com", "Reviewer")


@pytest.fixture
def project(db, manager):
    return workflows.create_project(db, manager, "Support tickets", "Q3 triage")


@pytest.fixture
def dataset(db, manager):
    data = b"The team won the game\n\nGreat software release\n   \nMarket is down\n"
    return workflows.upload_dataset(db, manager, "Tickets", "raw export", "TXT", "tickets.txt", data)
