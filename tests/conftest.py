import os
import pathlib
import sys
import pytest


# Ensure repo root is on PYTHONPATH for direct package imports (e.g. `import group_approval`).
_REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from group_approval.contract.claims import ClaimValueKind, ExternalClaim, encode_int_value  # noqa: E402
from group_approval.contract.config import BuildInfo, ConfigManager  # noqa: E402
from group_approval.contract.context import Deps, Env, MessageInfo  # noqa: E402
from group_approval.contract.host import InMemoryClaimStore, LocalHost  # noqa: E402
from group_approval.contract.msg import InstantiateMsg  # noqa: E402
from group_approval.contract.storage import ContractState, MemoryStorage, set_contract_state  # noqa: E402


ADMIN = "tp1admin"
MEMBER = "tp1member"
CONTRACT_ADDRESS = "tp1contract"
CLAIM_TAG = "groupapproval.pb"
LABEL = "Group Member Approval"


def _env_flag(name: str) -> bool:
    v = (os.environ.get(name) or '').strip().lower()
    return v in {'1', 'true', 'yes', 'y', 'on'}


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "slow: slow correctness tests (skipped unless GROUP_APPROVAL_RUN_SLOW=1)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_slow = _env_flag('GROUP_APPROVAL_RUN_SLOW')

    for item in items:
        if 'slow' in item.keywords and not run_slow:
            item.add_marker(pytest.mark.skip(reason='slow tests skipped; set GROUP_APPROVAL_RUN_SLOW=1 to enable'))


@pytest.fixture(autouse=True)
def fresh_config():
    """Every test starts from default settings."""
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.fixture
def build() -> BuildInfo:
    return BuildInfo.current()


@pytest.fixture
def claim_store() -> InMemoryClaimStore:
    return InMemoryClaimStore()


@pytest.fixture
def deps(claim_store, build) -> Deps:
    return Deps(storage=MemoryStorage(), claims=claim_store, build=build)


@pytest.fixture
def instantiated_deps(deps, build) -> Deps:
    """Deps whose storage already holds a contract state record."""
    state = ContractState.new(admin=ADMIN, claim_tag=CLAIM_TAG, label=LABEL, build=build)
    set_contract_state(deps.storage, state)
    return deps


@pytest.fixture
def env() -> Env:
    return Env(contract_address=CONTRACT_ADDRESS)


@pytest.fixture
def admin_info() -> MessageInfo:
    return MessageInfo(sender=ADMIN)


@pytest.fixture
def member_info() -> MessageInfo:
    return MessageInfo(sender=MEMBER)


@pytest.fixture
def host() -> LocalHost:
    return LocalHost(contract_address=CONTRACT_ADDRESS)


@pytest.fixture
def instantiated_host(host) -> LocalHost:
    host.instantiate(ADMIN, InstantiateMsg(label=LABEL, claim_tag=CLAIM_TAG, bind_namespace=False))
    return host


def int_claim(holder: str, name: str, value: int) -> ExternalClaim:
    """An integer claim as the claim store would return it."""
    return ExternalClaim(holder=holder, name=name, value=encode_int_value(value), kind=ClaimValueKind.INT)
