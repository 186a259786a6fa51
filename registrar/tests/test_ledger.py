from __future__ import annotations

import itertools

import pytest

from registrar.constants import ZERO_ADDRESS
from registrar.errors import (
    AlreadyFinished,
    DomainNotOwned,
    InvalidArgument,
    InvalidTarget,
    MigrationFinished,
    MigrationNotFinished,
    NameTaken,
    NonexistentToken,
    NotAdmin,
    NotAuthorized,
    NotController,
    NotOwnerOrApproved,
    NotRegistered,
    SameValue,
)
from registrar.types.core import MigrationGate
from registrar.utils.hash import child_node, keccak256, label_hash, namehash, token_id_of


def _node(name: str) -> bytes:
    return child_node(namehash("dcl.eth"), keccak256(name.lower().encode()))


def _events(env, name: str):
    return [e for e in env.sequencer.state.events() if e.name == name]


# -------------------------
# register
# -------------------------


def test_register_mints_and_delegates(ledger_env, admin, alice):
    ledger, registry = ledger_env.ledger, ledger_env.registry
    tid = ledger.register("Nacho", alice, caller=admin)

    assert tid == token_id_of(keccak256(b"nacho"))
    assert ledger.owner_of(tid) == alice
    assert ledger.name_of(tid) == "Nacho"
    assert ledger.created_at_of(tid) == ledger_env.sequencer.now
    assert ledger.balance_of(alice) == 1
    assert ledger.token_of_owner_by_index(alice, 0) == tid
    assert registry.owner(_node("nacho")) == alice

    ev = _events(ledger_env, "NameRegistered")[-1]
    assert ev["caller"] == admin
    assert ev["beneficiary"] == alice
    assert ev["label_hash"] == keccak256(b"nacho")
    assert ev["name"] == "Nacho"


def test_available_for_every_case_permutation(ledger_env, admin, alice):
    ledger = ledger_env.ledger
    assert ledger.available("nacho")
    ledger.register("nacho", alice, caller=admin)
    for chars in itertools.product(*[(c.lower(), c.upper()) for c in "nacho"]):
        assert not ledger.available("".join(chars))


def test_get_token_id_and_owner(ledger_env, admin, alice):
    ledger = ledger_env.ledger
    ledger.register("Nacho", alice, caller=admin)
    assert ledger.get_token_id("nacho") == int.from_bytes(keccak256(b"nacho"), "big")
    assert ledger.get_owner_of("NACHO") == alice
    with pytest.raises(NotRegistered):
        ledger.get_token_id("other")
    with pytest.raises(NotRegistered):
        ledger.get_owner_of("other")


def test_register_rejects_taken_name_any_case(ledger_env, admin, alice, bob):
    ledger = ledger_env.ledger
    ledger.register("nacho", alice, caller=admin)
    with pytest.raises(NameTaken):
        ledger.register("NaCHO", bob, caller=admin)
    assert ledger.get_owner_of("nacho") == alice


def test_register_requires_controller(env, alice):
    with pytest.raises(NotController) as ei:
        env.ledger.register("nacho", alice, caller=alice)
    assert ei.value.reason == "Only a controller can call this method"


def test_register_blocked_until_migration_finished(migrating_env, admin, alice):
    migrating_env.ledger.add_controller(admin, caller=admin)
    with pytest.raises(MigrationNotFinished):
        migrating_env.ledger.register("nacho", alice, caller=admin)


def test_register_requires_parent_domain(ledger_env, admin, alice):
    ledger, registry = ledger_env.ledger, ledger_env.registry
    registry.set_owner(ledger.parent_node, admin, caller=ledger.address)
    with pytest.raises(DomainNotOwned):
        ledger.register("nacho", alice, caller=admin)


def test_register_rejects_zero_beneficiary(ledger_env, admin):
    with pytest.raises(InvalidTarget):
        ledger_env.ledger.register("nacho", ZERO_ADDRESS, caller=admin)


# -------------------------
# migration
# -------------------------


def test_migrate_imports_legacy_words(migrating_env, admin, alice, bob):
    ledger = migrating_env.ledger
    words = [b"nacho".ljust(32, b"\x00"), b"Ignacio".ljust(32, b"\x00")]
    tids = ledger.migrate(words, [alice, bob], [1_500_000_000, 1_500_000_100], caller=admin)

    assert ledger.get_owner_of("nacho") == alice
    assert ledger.name_of(tids[1]) == "Ignacio"
    assert ledger.created_at_of(tids[0]) == 1_500_000_000
    assert ledger.created_at_of(tids[1]) == 1_500_000_100
    assert migrating_env.registry.owner(_node("ignacio")) == bob


def test_migrate_does_not_need_controller_but_needs_admin(migrating_env, alice):
    with pytest.raises(NotAdmin):
        migrating_env.ledger.migrate([b"nacho"], [alice], [1], caller=alice)


def test_migrate_length_mismatch(migrating_env, admin, alice):
    with pytest.raises(InvalidArgument):
        migrating_env.ledger.migrate([b"a", b"b"], [alice], [1, 2], caller=admin)


def test_migrate_duplicate_aborts_whole_batch(migrating_env, admin, alice, bob):
    ledger = migrating_env.ledger
    with pytest.raises(NameTaken):
        ledger.migrate([b"nacho", b"other", b"NACHO"], [alice, alice, bob], [1, 2, 3], caller=admin)
    assert ledger.available("nacho")
    assert ledger.available("other")


def test_finish_migration_is_one_way(migrating_env, admin, alice):
    ledger = migrating_env.ledger
    assert ledger.migration_gate is MigrationGate.NOT_FINISHED
    ledger.finish_migration(caller=admin)
    assert ledger.migration_gate.is_finished
    assert len(_events(migrating_env, "MigrationFinished")) == 1

    with pytest.raises(AlreadyFinished):
        ledger.finish_migration(caller=admin)
    with pytest.raises(MigrationFinished):
        ledger.migrate([b"nacho"], [alice], [1], caller=admin)


def test_finish_migration_admin_only(migrating_env, alice):
    with pytest.raises(NotAdmin):
        migrating_env.ledger.finish_migration(caller=alice)


# -------------------------
# transfers & approvals
# -------------------------


def test_transfer_moves_token_but_not_node(ledger_env, admin, alice, bob):
    ledger, registry = ledger_env.ledger, ledger_env.registry
    tid = ledger.register("nacho", alice, caller=admin)
    ledger.transfer(tid, alice, bob, caller=alice)

    assert ledger.owner_of(tid) == bob
    assert ledger.balance_of(alice) == 0
    assert ledger.balance_of(bob) == 1
    assert registry.owner(_node("nacho")) == alice  # diverged on purpose

    with pytest.raises(InvalidArgument):
        ledger.token_of_owner_by_index(alice, 0)


def test_transfer_authorization(ledger_env, admin, alice, bob, mallory):
    ledger = ledger_env.ledger
    tid = ledger.register("nacho", alice, caller=admin)
    with pytest.raises(NotOwnerOrApproved):
        ledger.transfer(tid, alice, mallory, caller=mallory)
    with pytest.raises(NotOwnerOrApproved):
        ledger.transfer(tid, bob, mallory, caller=alice)
    with pytest.raises(InvalidTarget):
        ledger.transfer(tid, alice, ZERO_ADDRESS, caller=alice)


def test_approved_account_can_transfer_once(ledger_env, admin, alice, bob):
    ledger = ledger_env.ledger
    tid = ledger.register("nacho", alice, caller=admin)
    ledger.approve(bob, tid, caller=alice)
    assert ledger.get_approved(tid) == bob

    ledger.transfer(tid, alice, bob, caller=bob)
    assert ledger.get_approved(tid) == ZERO_ADDRESS


def test_operator_can_transfer(ledger_env, admin, alice, bob, mallory):
    ledger = ledger_env.ledger
    tid = ledger.register("nacho", alice, caller=admin)
    ledger.set_approval_for_all(bob, True, caller=alice)
    assert ledger.is_approved_for_all(alice, bob)
    ledger.transfer(tid, alice, mallory, caller=bob)
    assert ledger.owner_of(tid) == mallory


def test_approve_rules(ledger_env, admin, alice, bob):
    ledger = ledger_env.ledger
    tid = ledger.register("nacho", alice, caller=admin)
    with pytest.raises(InvalidArgument):
        ledger.approve(alice, tid, caller=alice)
    with pytest.raises(NotOwnerOrApproved):
        ledger.approve(bob, tid, caller=bob)
    with pytest.raises(InvalidArgument):
        ledger.set_approval_for_all(alice, True, caller=alice)


def test_unknown_token_queries(env):
    with pytest.raises(NonexistentToken):
        env.ledger.owner_of(123)
    with pytest.raises(NonexistentToken):
        env.ledger.token_uri(123)
    with pytest.raises(NonexistentToken):
        env.ledger.get_approved(123)


# -------------------------
# reclaim
# -------------------------


def test_reclaim_resyncs_node_after_transfer(ledger_env, admin, alice, bob):
    ledger, registry = ledger_env.ledger, ledger_env.registry
    tid = ledger.register("nacho", alice, caller=admin)
    ledger.transfer(tid, alice, bob, caller=alice)

    ledger.reclaim(tid, bob, caller=bob)
    assert registry.owner(_node("nacho")) == bob
    ev = _events(ledger_env, "Reclaimed")[-1]
    assert (ev["caller"], ev["owner"], ev["token_id"]) == (bob, bob, tid)


def test_reclaim_authorization(ledger_env, admin, alice, mallory):
    ledger = ledger_env.ledger
    tid = ledger.register("nacho", alice, caller=admin)
    with pytest.raises(NotAuthorized):
        ledger.reclaim(tid, mallory, caller=mallory)
    with pytest.raises(NonexistentToken):
        ledger.reclaim(tid + 1, mallory, caller=mallory)


def test_reclaim_lets_owner_point_node_elsewhere(ledger_env, admin, alice, bob):
    ledger, registry, resolver = ledger_env.ledger, ledger_env.registry, ledger_env.resolver
    tid = ledger.register("nacho", alice, caller=admin)
    ledger.reclaim(tid, bob, caller=alice)
    assert registry.owner(_node("nacho")) == bob
    resolver.set_addr(_node("nacho"), bob, caller=bob)
    assert resolver.addr(_node("nacho")) == bob


def test_reclaim_by_controller(ledger_env, admin, alice, bob):
    ledger, registry = ledger_env.ledger, ledger_env.registry
    tid = ledger.register("nacho", alice, caller=admin)
    ledger.transfer(tid, alice, bob, caller=alice)
    with pytest.raises(NotController):
        ledger.reclaim_by_controller(tid, caller=bob)
    ledger.reclaim_by_controller(tid, caller=admin)
    assert registry.owner(_node("nacho")) == bob


# -------------------------
# parent domain housekeeping
# -------------------------


def test_reclaim_parent_domain(ledger_env, admin, alice):
    ledger, registry = ledger_env.ledger, ledger_env.registry
    registry.set_owner(ledger.parent_node, admin, caller=ledger.address)
    with pytest.raises(NotAdmin):
        ledger.reclaim_parent_domain("dcl", caller=alice)

    ledger.reclaim_parent_domain("dcl", caller=admin)
    assert registry.owner(ledger.parent_node) == ledger.address
    ev = _events(ledger_env, "DomainReclaimed")[-1]
    assert ev["token_id"] == token_id_of(label_hash("dcl"))


def test_transfer_parent_domain_ownership(ledger_env, admin, bob):
    ledger, base = ledger_env.ledger, ledger_env.base
    tid = token_id_of(label_hash("dcl"))
    ledger.transfer_parent_domain_ownership(bob, "dcl", caller=admin)
    assert base.owner_of(tid) == bob
    ev = _events(ledger_env, "DomainTransferred")[-1]
    assert ev["new_owner"] == bob


def test_only_base_can_send_tokens(env, alice):
    with pytest.raises(NotAuthorized) as ei:
        env.ledger.on_token_received(alice, alice, 1, caller=alice)
    assert "Only base" in ei.value.message
    assert env.ledger.on_token_received(alice, alice, 1, caller=env.base.address) is True


# -------------------------
# configuration
# -------------------------


def test_token_uri_and_base_uri_update(ledger_env, admin, alice):
    ledger = ledger_env.ledger
    tid = ledger.register("Nacho", alice, caller=admin)
    assert ledger.token_uri(tid) == "https://api.example.org/v1/names/Nacho"

    with pytest.raises(SameValue):
        ledger.update_base_uri(ledger.base_uri, caller=admin)
    with pytest.raises(NotAdmin):
        ledger.update_base_uri("https://x/", caller=alice)

    ledger.update_base_uri("", caller=admin)
    assert ledger.token_uri(tid) == ""
    ev = _events(ledger_env, "BaseURI")[-1]
    assert ev["old"] == "https://api.example.org/v1/names/"
    assert ev["new"] == ""


def test_update_registry_and_base(env, admin, alice):
    from registrar.adapters.naming import InMemoryNamingRegistry

    ledger = env.ledger
    with pytest.raises(SameValue):
        ledger.update_registry(env.registry.address, caller=admin)
    with pytest.raises(InvalidTarget):
        ledger.update_registry(alice, caller=admin)
    with pytest.raises(InvalidTarget):
        ledger.update_base(alice, caller=admin)

    other = InMemoryNamingRegistry(env.sequencer, root_owner=admin)
    ledger.update_registry(other.address, caller=admin)
    assert ledger.registry_address == other.address
    assert _events(env, "RegistryUpdated")[-1]["new"] == other.address


def test_set_resolver(env, admin):
    ledger = env.ledger
    for bad in (env.registry.address, env.base.address, ledger.address, b"\x01" * 20):
        with pytest.raises(InvalidTarget):
            ledger.set_resolver(bad, caller=admin)

    ledger.set_resolver(env.resolver.address, caller=admin)
    assert env.registry.resolver(ledger.parent_node) == env.resolver.address
    with pytest.raises(SameValue):
        ledger.set_resolver(env.resolver.address, caller=admin)
    ev = _events(env, "ResolverUpdated")[-1]
    assert ev["old"] == ZERO_ADDRESS and ev["new"] == env.resolver.address


def test_constructor_requires_deployed_collaborators(env, admin):
    from registrar.ledger.ownership import OwnershipLedger

    with pytest.raises(InvalidTarget):
        OwnershipLedger(env.sequencer, registry=b"\x01" * 20, base=env.base.address, admin=admin)
    with pytest.raises(InvalidArgument):
        OwnershipLedger(env.sequencer, registry=env.registry.address, base=env.base.address, admin=admin, domain="")
