import pytest

from app.services.otp_service import OtpService
from app.services.otp_store import OtpStore
from app.whatsapp.events import Authorized
from app.whatsapp.manager import ConnectionManager

from fakes import FakeClock, FakeTransport, FixedRandom, IDENTITY


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def ready_transport():
    return FakeTransport(script=[Authorized(identity=IDENTITY)])


@pytest.fixture
def store(clock):
    return OtpStore(clock=clock, schedule_expiry=False)


@pytest.fixture
async def manager(transport):
    manager = ConnectionManager(transport, credential_handle="test-client", connect_timeout=1.0)
    yield manager
    await manager.disconnect()


@pytest.fixture
async def ready_manager(ready_transport):
    manager = ConnectionManager(ready_transport, credential_handle="test-client", connect_timeout=1.0)
    await manager.connect_and_wait()
    yield manager
    await manager.disconnect()


@pytest.fixture
def otp_service(store, ready_manager, clock):
    return OtpService(store, ready_manager, clock=clock, rng=FixedRandom(123456), expiry_seconds=300)
