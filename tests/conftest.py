import random

import pytest

from quizroom.schemas import Player
from quizroom.services.runtime import RuntimeController
from quizroom.services.state import GameSession
from quizroom.services.store import MemoryStore

HOST_PASSWORD = "secret"


class FakeSocket:
    """Collects everything the runtime sends to one client."""

    def __init__(self):
        self.messages = []

    async def send_json(self, message):
        self.messages.append(message)

    def events(self, name):
        return [m["data"] for m in self.messages if m["event"] == name]

    def last(self, name):
        found = self.events(name)
        return found[-1] if found else None

    def names(self):
        return [m["event"] for m in self.messages]


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def game():
    return GameSession("test-session")


@pytest.fixture
def add_player(game):
    def _add(name, lives=3, verified=True, connected=True, code="1234"):
        player = Player(name=name, code=code, lives=lives, verified=verified, connected=connected)
        game.roster[name] = player
        return player

    return _add


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
async def runtime(store):
    controller = RuntimeController(
        store,
        host_password=HOST_PASSWORD,
        lives_range=(0, 5),
        initial_lives=3,
        rng=random.Random(42),
    )
    await controller.bootstrap()
    yield controller
    await controller.flush_writes()


@pytest.fixture
def host(runtime):
    async def _host():
        socket = FakeSocket()
        connection = await runtime.connect(socket)
        await runtime.handle(connection, "hostLogin", HOST_PASSWORD)
        return socket, connection

    return _host


@pytest.fixture
def player(runtime):
    async def _player(name, login=True):
        socket = FakeSocket()
        connection = await runtime.connect(socket)
        await runtime.handle(connection, "playerAnnounce", name)
        if login:
            code = runtime.game.roster[name].code
            await runtime.handle(connection, "playerLogin", {"name": name, "code": code})
        return socket, connection

    return _player
