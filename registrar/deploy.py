"""
Wire a complete in-memory registrar environment from a `RegistrarConfig`.

    env = deploy_registrar(RegistrarConfig(), deployer=admin)
    env.token.mint(alice, 1_000 * TOKEN_UNIT, caller=admin)
    env.token.approve(env.commit_reveal.address, PRICE, caller=alice)

Deployment order:
  1. payment token, naming registry (root owned by the deployer)
  2. base registrar, handed the top-level node (``eth``)
  3. ownership ledger, then the parent domain (``dcl``) is registered on the
     base registrar to the ledger, which makes the ledger owner of both the
     parent-domain token and the ``dcl.eth`` node
  4. a resolver, and the enabled controllers, each added to the ledger's
     controller set
  5. optionally, the migration gate is closed so live registration opens

The default config enables both controllers on the same ledger. A reveal
sitting in the public pool exposes its name, and the immediate controller
lets any observer buy that name first at the gas ceiling. Production
deployments should enable one controller per ledger; a warning is logged
when both are on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from registrar.adapters.naming import BaseRegistrar, InMemoryNamingRegistry, Resolver
from registrar.adapters.token import InMemoryToken
from registrar.config import RegistrarConfig
from registrar.constants import ZERO_HASH
from registrar.ledger.ownership import OwnershipLedger
from registrar.protocols.commit_reveal import CommitRevealController
from registrar.protocols.immediate import ImmediateController
from registrar.sequencer import Sequencer
from registrar.utils.hash import label_hash

log = logging.getLogger(__name__)


@dataclass
class Deployment:
    sequencer: Sequencer
    deployer: bytes
    token: InMemoryToken
    registry: InMemoryNamingRegistry
    base: BaseRegistrar
    ledger: OwnershipLedger
    resolver: Resolver
    commit_reveal: Optional[CommitRevealController] = None
    immediate: Optional[ImmediateController] = None


def deploy_registrar(
    config: Optional[RegistrarConfig] = None,
    *,
    deployer: bytes,
    sequencer: Optional[Sequencer] = None,
    finish_migration: bool = True,
) -> Deployment:
    cfg = config or RegistrarConfig()
    cfg.validate()
    seq = sequencer or Sequencer()
    if cfg.commit_reveal.enabled and cfg.immediate.enabled:
        log.warning("both controllers share one ledger; pending reveals can be sniped via the immediate path")

    token = InMemoryToken(seq, admin=deployer)
    registry = InMemoryNamingRegistry(seq, root_owner=deployer)
    base = BaseRegistrar(seq, registry=registry, top_domain=cfg.top_domain, admin=deployer)
    registry.set_subnode_owner(ZERO_HASH, label_hash(cfg.top_domain), base.address, caller=deployer)

    ledger = OwnershipLedger(
        seq,
        registry=registry.address,
        base=base.address,
        admin=deployer,
        top_domain=cfg.top_domain,
        domain=cfg.domain,
        base_uri=cfg.base_uri,
    )
    base.add_controller(deployer, caller=deployer)
    base.register(cfg.domain, ledger.address, caller=deployer)
    resolver = Resolver(seq, registry=registry)

    env = Deployment(
        sequencer=seq,
        deployer=deployer,
        token=token,
        registry=registry,
        base=base,
        ledger=ledger,
        resolver=resolver,
    )

    cr = cfg.commit_reveal
    if cr.enabled:
        env.commit_reveal = CommitRevealController(
            seq,
            token=token,
            registrar=ledger,
            admin=deployer,
            price=cr.price,
            reveal_delay=cr.reveal_delay_s,
            min_length=cr.rules.min_length,
            max_length=cr.rules.max_length,
        )
        ledger.add_controller(env.commit_reveal.address, caller=deployer)

    imm = cfg.immediate
    if imm.enabled:
        env.immediate = ImmediateController(
            seq,
            token=token,
            registrar=ledger,
            admin=deployer,
            price=imm.price,
            max_gas_price=imm.max_gas_price,
            fee_collector=imm.fee_collector_bytes(),
            min_length=imm.rules.min_length,
            max_length=imm.rules.max_length,
        )
        ledger.add_controller(env.immediate.address, caller=deployer)

    if finish_migration:
        ledger.finish_migration(caller=deployer)

    log.info(
        "registrar deployed",
        extra={"domain": f"{cfg.domain}.{cfg.top_domain}", "ledger": ledger.address.hex()},
    )
    return env


__all__ = ["Deployment", "deploy_registrar"]
