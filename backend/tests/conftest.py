import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from backend.app.main import app
from backend.app.core.config import Settings
from backend.app.core.dependencies import get_settings
from backend.app.db.session import get_session
from backend.app.services.genai_generator import TextGenerator

NEWSLETTER = """Here is your weekly newsletter for Des Moines!

### LIVE MUSIC

**Jazz in July**
* Date: Friday, June 27
* Time: 7:00 PM
* Venue: Hoyt Sherman Place
* Tickets: $25 - $40
* Ticket Link: [Tickets](https://hoytsherman.org/jazz)
* Description: An evening of swing and bebop standards.

**Indie Night**
* Date: Saturday, June 28
* Time: 8:30 PM
* Venue: Wooly's
* Tickets: $15
* Ticket Link: https://woolys.com
* Description: Three local bands on one bill.

### FESTIVALS & EVENTS

**Downtown Farmers' Market**
* Date: Saturday, June 28
* Time: 7:00 AM - 12:00 PM
* Venue: Court Avenue
* Admission: Free
* Website: https://desmoinesfarmersmarket.com
* Description: Over 300 vendors with local produce and crafts.

### PLANNING TIPS

* **Parking**: Arrive early for the farmers' market, garages fill by 9 AM.
* **Weather**: Bring sunscreen and water.
"""

ONE_EVENT_NEWSLETTER = """### LIVE MUSIC

**Jazz in July**
* Date: Friday, June 27
* Time: 7:00 PM
* Venue: Hoyt Sherman Place
* Tickets: $25
"""


@pytest.fixture(name="newsletter_text")
def newsletter_text_fixture():
    return NEWSLETTER


@pytest.fixture(name="one_event_text")
def one_event_text_fixture():
    return ONE_EVENT_NEWSLETTER


@pytest.fixture(name="make_generator")
def make_generator_fixture():
    """Build a TextGenerator mock that returns the given text(s)."""
    def _make(*responses):
        generator = MagicMock(spec=TextGenerator)
        if len(responses) == 1:
            generator.generate.return_value = responses[0]
        else:
            generator.generate.side_effect = list(responses)
        return generator
    return _make


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="live_data_path")
def live_data_path_fixture(tmp_path):
    return str(tmp_path / "live-activities-data.json")


@pytest.fixture(name="client")
def client_fixture(session: Session, live_data_path: str):
    def get_session_override():
        return session

    def get_settings_override():
        return Settings(LIVE_DATA_PATH=live_data_path)

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_settings] = get_settings_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
