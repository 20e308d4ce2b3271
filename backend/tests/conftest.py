"""Pytest configuration for MODO backend tests."""
import sys
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

# Ensure the backend package is importable
backend_root = Path(__file__).resolve().parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from modo.config import settings  # noqa: E402
from modo.database import Database, set_database  # noqa: E402
from modo.llm_gateway import AIGateway, set_gateway  # noqa: E402
from modo.llm_gateway.providers import BaseLLMProvider, BaseMediaProvider  # noqa: E402
from modo.storage.ai_registry import AIRegistryStorage  # noqa: E402
from modo.storage.projects import ProjectStorage  # noqa: E402
from modo.storage.users import UserStorage  # noqa: E402


class FakeVendor:
    """
    Scripted stand-in for vendor adapters.

    `responses` maps a model id to a list of outcomes consumed in order; an
    outcome is either a string (text reply / media url) or an exception.
    Once a list runs out its last outcome repeats.
    """

    def __init__(self):
        self.responses = {}
        self.calls = []

    def script(self, model_id, *outcomes):
        self.responses[model_id] = list(outcomes)

    def _next(self, model_id):
        outcomes = self.responses.get(model_id) or ["ok"]
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def factory(self, slug, api_key, model, base_url=None, kind="text"):
        vendor = self

        if kind == "text":
            class _Text(BaseLLMProvider):
                async def chat(self, messages, temperature=None, max_tokens=None):
                    vendor.calls.append((slug, model, messages[-1]["content"]))
                    content = vendor._next(model)
                    return {
                        "content": content,
                        "usage": {"prompt_tokens": 10, "completion_tokens": 20},
                        "model": model,
                        "finish_reason": "stop",
                    }

                def get_provider_name(self):
                    return slug

            return _Text(api_key=api_key, model=model)

        class _Media(BaseMediaProvider):
            async def generate(self, prompt, **params):
                vendor.calls.append((slug, model, prompt))
                return {"url": vendor._next(model), "metadata": {"params": params}}

            def get_provider_name(self):
                return slug

        return _Media(api_key=api_key, model=model, base_url=base_url)


@pytest.fixture
async def database(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "export_dir", str(tmp_path / "exports"))
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'modo-test.db'}")
    await db.create_all()
    set_database(db)
    yield db
    set_database(None)
    await db.dispose()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def vendor():
    return FakeVendor()


@pytest.fixture
def gateway(database, vendor, sleeps):
    async def fake_sleep(seconds):
        sleeps.append(seconds)

    gw = AIGateway(registry=AIRegistryStorage(), provider_factory=vendor.factory, sleep=fake_sleep)
    set_gateway(gw)
    yield gw
    set_gateway(None)


@pytest.fixture
async def registry(database):
    """Registry with one text and one image model, both keyed."""
    reg = AIRegistryStorage()
    await reg.create_provider("openai", "OpenAI", "multi", "https://api.openai.com/v1")
    await reg.create_provider("anthropic", "Anthropic", "text")
    await reg.create_model("openai", "gpt-4o-mini", "GPT-4o Mini", "text", credit_cost=2, is_default=True)
    await reg.create_model("anthropic", "claude-3-5-haiku", "Claude Haiku", "text", credit_cost=3)
    await reg.create_model("openai", "dall-e-3", "DALL-E 3", "image", credit_cost=12, is_default=True)
    await reg.add_api_key("openai", "sk-openai-test-key-0001", "primary")
    await reg.add_api_key("anthropic", "sk-ant-test-key-0001", "primary")
    return reg


@pytest.fixture
async def user(database):
    return await UserStorage().create_user("writer@example.com", "Writer", tier="studio")


@pytest.fixture
async def project(user):
    return await ProjectStorage().create_project(user.id, {"title": "Neon Harbor", "genre": "noir"})


@pytest.fixture
async def client(database):
    from modo.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
