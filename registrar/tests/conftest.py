from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

import registrar.fees
import registrar.ledger.ownership
import registrar.metrics
import registrar.protocols.commit_reveal
import registrar.protocols.immediate
from registrar.config import RegistrarConfig
from registrar.constants import PRICE, TOKEN_UNIT
from registrar.deploy import Deployment, deploy_registrar
from registrar.utils.hash import keccak256

ADMIN = b"\xad" * 20
ALICE = b"A" * 20
BOB = b"B" * 20
MALLORY = b"M" * 20

STARTING_BALANCE = 1_000 * TOKEN_UNIT


def fund(env: Deployment, *accounts: bytes) -> None:
    """Mint a starting balance and approve both controllers for ten names."""
    for who in accounts:
        env.token.mint(who, STARTING_BALANCE, caller=env.deployer)
        for ctl in (env.commit_reveal, env.immediate):
            if ctl is not None:
                env.token.approve(ctl.address, 10 * PRICE, caller=who)


@pytest.fixture(autouse=True)
def fresh_metrics(monkeypatch):
    """Give every test its own Prometheus registry."""
    m = registrar.metrics.Metrics(registry=CollectorRegistry())
    for mod in (
        registrar.metrics,
        registrar.fees,
        registrar.ledger.ownership,
        registrar.protocols.commit_reveal,
        registrar.protocols.immediate,
    ):
        monkeypatch.setattr(mod, "METRICS", m)
    return m


@pytest.fixture
def admin() -> bytes:
    return ADMIN


@pytest.fixture
def alice() -> bytes:
    return ALICE


@pytest.fixture
def bob() -> bytes:
    return BOB


@pytest.fixture
def mallory() -> bytes:
    return MALLORY


@pytest.fixture
def salt() -> bytes:
    return keccak256(b"salt")


@pytest.fixture
def env() -> Deployment:
    e = deploy_registrar(RegistrarConfig(), deployer=ADMIN)
    fund(e, ALICE, BOB, MALLORY)
    return e


@pytest.fixture
def migrating_env() -> Deployment:
    """Ledger with the migration gate still open."""
    return deploy_registrar(RegistrarConfig(), deployer=ADMIN, finish_migration=False)


@pytest.fixture
def ledger_env(env: Deployment) -> Deployment:
    """`env` with the administrator also whitelisted as a controller."""
    env.ledger.add_controller(ADMIN, caller=ADMIN)
    return env
