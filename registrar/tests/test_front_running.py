"""
Adversarial interleavings through the public pending pool.

Each scenario submits the victim's transaction, lets the attacker inspect
`Sequencer.pending()` and react with any transactions at any gas price, and
then mines the block in fee-auction order. The attacker must never end up
owning a name whose commit it did not originate.
"""

from __future__ import annotations

from typing import Callable, List

import pytest

from registrar.config import ImmediateParams, RegistrarConfig
from registrar.constants import GWEI, PRICE, TOKEN_UNIT
from registrar.deploy import Deployment, deploy_registrar
from registrar.sequencer import Receipt, Sequencer, Tx
from registrar.utils.hash import keccak256

ADMIN = b"\xad" * 20
VICTIM = b"V" * 20
ATTACKER = b"X" * 20
DELAY = 60

Attacker = Callable[[Sequencer, Tx], List[Tx]]


def _deploy(immediate: bool) -> Deployment:
    cfg = RegistrarConfig(immediate=ImmediateParams(enabled=immediate))
    env = deploy_registrar(cfg, deployer=ADMIN)
    for who in (VICTIM, ATTACKER):
        env.token.mint(who, 1_000 * TOKEN_UNIT, caller=ADMIN)
        for ctl in (env.commit_reveal, env.immediate):
            if ctl is not None:
                env.token.approve(ctl.address, 10 * PRICE, caller=who)
    return env


def _step(seq: Sequencer, victim_tx: Tx, attacker: Attacker) -> List[Receipt]:
    submitted = seq.submit(victim_tx)
    for tx in attacker(seq, submitted):
        seq.submit(tx)
    return seq.mine()


def _victim_receipt(receipts: List[Receipt]) -> Receipt:
    return next(r for r in receipts if r.tx.sender == VICTIM)


# -------------------------
# attacker strategies
# -------------------------


def copy_with_higher_gas(seq: Sequencer, observed: Tx) -> List[Tx]:
    """Replay the observed call verbatim from the attacker's account, outbidding it."""
    kwargs = dict(observed.kwargs)
    if "beneficiary" in kwargs:
        kwargs["beneficiary"] = ATTACKER
    return [
        Tx(ATTACKER, observed.target, observed.method, dict(observed.kwargs), observed.gas_price + GWEI),
        Tx(ATTACKER, observed.target, observed.method, kwargs, observed.gas_price + 2 * GWEI),
    ]


def make_immediate_sniper(env: Deployment) -> Attacker:
    def attack(seq: Sequencer, observed: Tx) -> List[Tx]:
        if observed.method != "reveal" or env.immediate is None:
            return []
        return [
            Tx(
                ATTACKER,
                env.immediate.address,
                "register",
                {"name": observed.kwargs["name"], "beneficiary": ATTACKER},
                env.immediate.max_gas_price,
            )
        ]

    return attack


def make_late_committer(env: Deployment, salt: bytes) -> Attacker:
    """Learn the name from a pending reveal and start an own commit right away."""

    def attack(seq: Sequencer, observed: Tx) -> List[Tx]:
        if observed.method != "reveal":
            return []
        name = observed.kwargs["name"]
        h = env.commit_reveal.get_hash(name, ATTACKER, salt, caller=ATTACKER)
        return [Tx(ATTACKER, env.commit_reveal.address, "commit", {"hash": h}, observed.gas_price * 10)]

    return attack


# -------------------------
# scenarios
# -------------------------


def _run_commit_reveal(env: Deployment, attacker: Attacker, *, gas_price: int = GWEI) -> Receipt:
    seq, ctl = env.sequencer, env.commit_reveal
    salt = keccak256(b"victim salt")
    h = ctl.get_hash("nacho", VICTIM, salt, caller=VICTIM)

    commit_receipts = _step(seq, Tx(VICTIM, ctl.address, "commit", {"hash": h}, gas_price), attacker)
    if not _victim_receipt(commit_receipts).ok:
        # the copied hash got in first; the victim recommits under a fresh salt
        salt = keccak256(b"victim salt 2")
        h = ctl.get_hash("nacho", VICTIM, salt, caller=VICTIM)
        assert seq.execute(Tx(VICTIM, ctl.address, "commit", {"hash": h}, gas_price)).ok

    seq.advance(DELAY)
    reveal = Tx(VICTIM, ctl.address, "reveal", {"name": "nacho", "beneficiary": VICTIM, "salt": salt}, gas_price)
    return _victim_receipt(_step(seq, reveal, attacker))


@pytest.mark.parametrize("strategy", ["copy", "late_commit"])
def test_commit_reveal_attacker_never_wins(strategy):
    env = _deploy(immediate=False)
    if strategy == "copy":
        attacker = copy_with_higher_gas
    else:
        attacker = make_late_committer(env, keccak256(b"attacker salt"))

    receipt = _run_commit_reveal(env, attacker)
    assert receipt.ok, receipt.error
    assert env.ledger.get_owner_of("nacho") == VICTIM

    # even finishing its own commit later does not help
    env.sequencer.advance(DELAY)
    late = env.sequencer.execute(
        Tx(ATTACKER, env.commit_reveal.address, "reveal",
           {"name": "nacho", "beneficiary": ATTACKER, "salt": keccak256(b"attacker salt")})
    )
    assert not late.ok
    assert env.ledger.get_owner_of("nacho") == VICTIM


def test_copied_commit_cannot_be_revealed_by_attacker():
    env = _deploy(immediate=False)
    seq, ctl = env.sequencer, env.commit_reveal
    salt = keccak256(b"victim salt")
    h = ctl.get_hash("nacho", VICTIM, salt, caller=VICTIM)

    receipts = _step(seq, Tx(VICTIM, ctl.address, "commit", {"hash": h}, GWEI), copy_with_higher_gas)
    assert ctl.get_commit(ATTACKER).hash == h  # the attacker's copy landed first
    assert not _victim_receipt(receipts).ok
    seq.advance(DELAY)

    for beneficiary in (VICTIM, ATTACKER):
        r = seq.execute(Tx(ATTACKER, ctl.address, "reveal", {"name": "nacho", "beneficiary": beneficiary, "salt": salt}))
        assert r.error_code == "HASH_MISMATCH"
    assert env.ledger.available("nacho")


def test_immediate_ceiling_stops_outbidding():
    env = _deploy(immediate=True)
    seq, ctl = env.sequencer, env.immediate
    victim = Tx(VICTIM, ctl.address, "register", {"name": "nacho", "beneficiary": VICTIM}, ctl.max_gas_price)

    def outbid(seq: Sequencer, observed: Tx) -> List[Tx]:
        return [
            Tx(ATTACKER, ctl.address, "register", {"name": "nacho", "beneficiary": ATTACKER}, observed.gas_price + 1),
            Tx(ATTACKER, ctl.address, "register", {"name": "nacho", "beneficiary": ATTACKER}, observed.gas_price),
        ]

    receipts = _step(seq, victim, outbid)
    codes = [r.error_code for r in receipts if r.tx.sender == ATTACKER]
    assert sorted(codes) == ["GAS_PRICE_TOO_HIGH", "NAME_TAKEN"]
    assert _victim_receipt(receipts).ok
    assert env.ledger.get_owner_of("nacho") == VICTIM


def test_immediate_controller_can_snipe_a_pending_reveal():
    # Both paths on one ledger: a revealed name is exposed to the immediate
    # path, so deployments pick one controller per ledger.
    env = _deploy(immediate=True)
    receipt = _run_commit_reveal(env, make_immediate_sniper(env))
    assert receipt.error_code == "NAME_TAKEN"
    assert env.ledger.get_owner_of("nacho") == ATTACKER


def test_mine_orders_by_gas_then_fifo(env, alice, bob):
    seq = env.sequencer
    low = seq.submit(Tx(alice, env.token.address, "transfer", {"to": bob, "amount": 1}, GWEI))
    high = seq.submit(Tx(bob, env.token.address, "transfer", {"to": alice, "amount": 1}, 3 * GWEI))
    tie = seq.submit(Tx(alice, env.token.address, "transfer", {"to": bob, "amount": 2}, GWEI))
    assert seq.pending() == (low, high, tie)

    height = seq.height
    receipts = seq.mine()
    assert [r.tx.nonce for r in receipts] == [high.nonce, low.nonce, tie.nonce]
    assert all(r.ok for r in receipts)
    assert seq.pending() == ()
    assert seq.height == height + 1


def test_malformed_outbid_does_not_censor_the_block():
    env = _deploy(immediate=False)
    seq, ctl = env.sequencer, env.commit_reveal
    seq.execute(Tx(ATTACKER, ctl.address, "commit", {"hash": keccak256(b"attacker commit")}))
    seq.advance(DELAY)

    h = ctl.get_hash("nacho", VICTIM, keccak256(b"victim salt"), caller=VICTIM)
    victim = Tx(VICTIM, ctl.address, "commit", {"hash": h}, GWEI)

    def junk(seq: Sequencer, observed: Tx) -> List[Tx]:
        return [
            Tx(ATTACKER, ctl.address, "reveal",
               {"name": "nacho", "beneficiary": ATTACKER, "salt": b"\x00" * 31}, 5 * GWEI),
            Tx(ATTACKER, ctl.address, "no_such_method", {}, 4 * GWEI),
        ]

    height = seq.height
    receipts = _step(seq, victim, junk)
    assert [r.error_code for r in receipts if r.tx.sender == ATTACKER] == ["INVALID_ARGUMENT", "INVALID_ARGUMENT"]
    assert _victim_receipt(receipts).ok
    assert ctl.get_commit(VICTIM).hash == h
    assert seq.pending() == ()
    assert seq.height == height + 1
