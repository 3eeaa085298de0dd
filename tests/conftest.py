import os, sys
import warnings
from pathlib import Path

import pytest

# Add the src tree to sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

# Keep the repo's config.toml and any .env values out of the test run
os.environ["DRAFT_BOT_CONFIG"] = str(Path(__file__).resolve().parent / "missing-config.toml")
os.environ.setdefault("DISCORD_API_TOKEN", "test-token")

# Silence deprecation warnings surfaced from third-party dependencies during tests
warnings.filterwarnings(
    "ignore", category=DeprecationWarning, module=r"^discord\\.player$"
)
warnings.filterwarnings("ignore", "'audioop' is deprecated", DeprecationWarning)

from draft_bot.config.sessions import Sessions  # noqa: E402
from draft_bot.database import InMemoryDriver, default_parameters  # noqa: E402
from draft_bot.models import DraftServer, Resolver  # noqa: E402

SERVER_ID = "guild-1"


class FakeNotifier:
    """Records every outbound call instead of talking to Discord."""

    def __init__(self, names=None):
        self.names = dict(names or {})
        self.dms = []
        self.edits = {}
        self.deleted = []
        self.reactions = []
        self.posted = []
        self.missing = set()
        self.undeliverable = set()
        self.fail_post = False
        self.events = []
        self._next_id = 1000

    async def send_direct(self, user_id, text):
        if user_id in self.undeliverable:
            return False
        self.dms.append((user_id, text))
        self.events.append(("dm", user_id, text))
        return True

    async def edit_announcement(self, session_id, content):
        self.edits[session_id] = content
        return True

    async def delete_announcement(self, session_id):
        self.deleted.append(session_id)
        self.events.append(("delete", session_id))
        return True

    async def react_to_announcement(self, session_id, emoji):
        self.reactions.append((session_id, emoji))
        return True

    async def post_announcement(self, content):
        if self.fail_post:
            return None
        session_id = str(self._next_id)
        self._next_id += 1
        self.posted.append(session_id)
        self.events.append(("post", session_id))
        return session_id

    async def announcement_exists(self, session_id):
        return session_id not in self.missing

    def display_name(self, user_id):
        return self.names.get(user_id)

    def dms_to(self, user_id):
        return [text for uid, text in self.dms if uid == user_id]


@pytest.fixture
def notifier():
    return FakeNotifier({"owner": "Olivia", "alice": "Alice", "bob": "Bob"})


@pytest.fixture
def sessions_cfg():
    return Sessions({})


@pytest.fixture
def driver():
    return InMemoryDriver()


@pytest.fixture
def resolver(driver, notifier):
    return Resolver(SERVER_ID, driver, notifier)


@pytest.fixture
def server(resolver, sessions_cfg):
    return DraftServer(resolver, sessions_cfg)


@pytest.fixture
def make_session(driver, resolver, sessions_cfg):
    """Create a stored session directly through the driver and resolve it."""

    async def _make(session_id="s1", owner_id=None, **overrides):
        await driver.create_session(
            SERVER_ID, session_id, default_parameters(sessions_cfg), overrides, owner_id=owner_id
        )
        return await resolver.resolve_session(session_id)

    return _make
