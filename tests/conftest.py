import pytest

from api.config import load_config
from models.db_storage import DBStorage
from services.auth import AuthService
from services.tokens import TokenService
from tests.helpers import ALICE_PASSWORD, BOB_PASSWORD, CountingVerifier


@pytest.fixture
def config():
    return load_config("testing")


@pytest.fixture
def storage():
    store = DBStorage("sqlite://")
    store.reload()
    yield store
    store.close()
    store.engine.dispose()


@pytest.fixture
def passwords():
    return CountingVerifier(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def tokens(config, storage):
    return TokenService(config, storage)


@pytest.fixture
def auth_service(storage, tokens, passwords, sleeps):
    return AuthService(storage, tokens, passwords, sleep=sleeps.append)


@pytest.fixture
def alice(auth_service, passwords):
    user = auth_service.register("alice", "alice@x.com", ALICE_PASSWORD, f_name="Alice", l_name="Liddell")
    passwords.calls = 0
    return user


@pytest.fixture
def bob(auth_service, passwords):
    user = auth_service.register("bob", "Bob@Example.com", BOB_PASSWORD)
    passwords.calls = 0
    return user


@pytest.fixture
def deactivate(storage):
    def _deactivate(user):
        with storage.transaction():
            user.is_active = False
    return _deactivate
