import os
import sys
import tempfile
import uuid
from pathlib import Path
from typing import Any

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

TEST_DB_PATH = Path(tempfile.gettempdir()) / f"campaign_pipeline_test_{uuid.uuid4().hex}.db"
os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ.setdefault("AI_GATEWAY_API_KEY", "test-gateway-key")

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from campaign_pipeline.db.base import Base, SessionLocal, engine  # noqa: E402
from campaign_pipeline.db.deps import get_session  # noqa: E402
from campaign_pipeline.db.enums import CampaignPageStatusEnum  # noqa: E402
from campaign_pipeline.db.models import Campaign, CampaignPage  # noqa: E402
from campaign_pipeline.main import app  # noqa: E402
from campaign_pipeline.routers import campaigns as campaigns_router  # noqa: E402
from campaign_pipeline.schemas.generation import SeoMetadata  # noqa: E402

TEST_SUBACCOUNT_ID = "subaccount-test"


@pytest.fixture(scope="session", autouse=True)
def apply_migrations():
    alembic_cfg = Config(str(ROOT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(ROOT_DIR / "alembic"))
    alembic_cfg.attributes["configure_logger"] = False
    command.upgrade(alembic_cfg, "head")
    yield
    engine.dispose()
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


@pytest.fixture()
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        session.close()


@pytest.fixture()
def override_dependencies(db_session):
    def get_session_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_session] = get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def api_client(override_dependencies):
    with TestClient(app) as client:
        yield client


class FakeTemporalHandle:
    def __init__(self, workflow_id: str):
        self.id = workflow_id
        self.first_execution_run_id = f"{workflow_id}-run"


class FakeTemporalClient:
    def __init__(self) -> None:
        self.started: list[dict[str, Any]] = []
        self.start_error: Exception | None = None

    async def start_workflow(self, *args, **kwargs) -> FakeTemporalHandle:
        workflow_id = kwargs.get("id") or "test-workflow"
        if self.start_error is not None:
            raise self.start_error
        self.started.append({"id": workflow_id, "args": args, "task_queue": kwargs.get("task_queue")})
        return FakeTemporalHandle(workflow_id)


@pytest.fixture()
def fake_temporal(monkeypatch):
    client = FakeTemporalClient()

    async def _get_temporal_client():
        return client

    monkeypatch.setattr(campaigns_router, "get_temporal_client", _get_temporal_client)
    return client


class FakeContentGenerator:
    """Stands in for ContentGenerator; records every prompt it receives."""

    def __init__(self, *, fail_on: str | None = None, error: Exception | None = None) -> None:
        self.text_prompts: list[str] = []
        self.image_prompts: list[str] = []
        self.seo_titles: list[str] = []
        self.fail_on = fail_on
        self.error = error

    async def generate_text(self, prompt: str, context) -> str:
        self.text_prompts.append(prompt)
        if self.fail_on is not None and self.fail_on in prompt:
            raise self.error
        return f"Generated: {prompt}"

    async def generate_image(self, prompt: str) -> str:
        self.image_prompts.append(prompt)
        return "data:image/png;base64,AAAA"

    async def generate_seo_metadata(self, page_title: str, context) -> SeoMetadata:
        self.seo_titles.append(page_title)
        return SeoMetadata(meta_title=f"SEO {page_title}"[:60], meta_description=f"About {page_title}")


@pytest.fixture()
def fake_generator() -> FakeContentGenerator:
    return FakeContentGenerator()


@pytest.fixture()
def generator_factory():
    return FakeContentGenerator


def build_config() -> dict[str, Any]:
    return {
        "dynamicColumns": [
            {"id": "col-service", "variableName": "service", "displayName": "Service", "values": ["Plumbing", "Roofing"]},
            {"id": "col-city", "variableName": "city", "displayName": "City", "values": ["Austin"]},
        ],
        "titlePatterns": [
            {"id": "pattern-1", "pattern": "Best {{service}} Services in {{city}}", "entityId": "entity-1"},
        ],
        "entities": [{"id": "entity-1", "name": "Services", "urlPrefix": "/"}],
        "entityTemplates": {
            "entity-1": {
                "sections": [
                    {
                        "id": "hero",
                        "type": "hero",
                        "name": "Hero",
                        "content": {
                            "headline": "Best {{service}} in {{city}}",
                            "subheadline": 'prompt("Write an intro about {{service}} in {{city}}")',
                        },
                    },
                    {
                        "id": "faq",
                        "type": "faq",
                        "name": "FAQ",
                        "content": {
                            "items": [
                                'How much does {{service}} cost?|prompt("Answer pricing for {{service}}")',
                                "Do you serve {{city}}?|Yes, all of {{city}}.",
                            ]
                        },
                    },
                ]
            }
        },
    }


@pytest.fixture()
def campaign_config() -> dict[str, Any]:
    return build_config()


@pytest.fixture()
def seed_campaign(db_session) -> Campaign:
    campaign = Campaign(
        subaccount_id=TEST_SUBACCOUNT_ID,
        name="Seed Campaign",
        business_name="Acme Home",
        business_type="local",
        tone_of_voice="Warm",
        template_config=build_config(),
    )
    db_session.add(campaign)
    db_session.commit()
    db_session.refresh(campaign)
    return campaign


@pytest.fixture()
def seed_page(db_session, seed_campaign) -> CampaignPage:
    page = CampaignPage(
        campaign_id=seed_campaign.id,
        subaccount_id=TEST_SUBACCOUNT_ID,
        title="Best Plumbing Services in Austin",
        slug="best-plumbing-services-in-austin",
        data_values={"service": "Plumbing", "city": "Austin", "patternId": "pattern-1", "entityId": "entity-1"},
        status=CampaignPageStatusEnum.draft,
        sections_content=[],
    )
    db_session.add(page)
    db_session.commit()
    db_session.refresh(page)
    return page
