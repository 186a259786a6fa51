"""
Prometheus metrics for the name registrar.

Counters cover the registration pipeline:
  • registrations_total{path}     : names minted by the ledger
  • commits_total{outcome}        : commit attempts per outcome
  • reveals_total{outcome}        : reveal attempts per outcome
  • fees_charged_total{strategy}  : fees settled (burned or collected)
  • gas_price_rejections_total    : immediate registrations refused by the ceiling

Label vocabularies are small and fixed; unknown outcomes collapse to
"invalid". Counters record attempts as they happen and are not rolled back
when an enclosing operation later aborts.

Usage
-----
    from registrar.metrics import METRICS

    METRICS.record_commit("accepted")
    METRICS.record_registration("controller")

Tests and embedders that need isolation construct their own `Metrics` with a
fresh `CollectorRegistry`.
"""

from __future__ import annotations

from prometheus_client import REGISTRY, Counter

_REGISTRATION_PATHS = (
    "controller",  # minted by a whitelisted controller
    "migration",   # imported legacy name
)

_COMMIT_OUTCOMES = (
    "accepted",
    "duplicate",   # another account holds the same pending hash
    "invalid",
)

_REVEAL_OUTCOMES = (
    "accepted",
    "no_commit",
    "too_early",
    "bad_reveal",  # hash mismatch
    "replayed",    # commit already revealed
    "invalid",     # validation, payment or ledger refusal
)

_FEE_STRATEGIES = ("burn", "collector")


class Metrics:
    """
    Container for all registrar Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(self, *, namespace: str = "names", subsystem: str = "registrar", registry=REGISTRY) -> None:
        self.registrations_total = Counter(
            "registrations_total",
            "Names registered in the ownership ledger, labeled by path.",
            labelnames=("path",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.commits_total = Counter(
            "commits_total",
            "Commit submissions processed, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.reveals_total = Counter(
            "reveals_total",
            "Reveal attempts processed, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.fees_charged_total = Counter(
            "fees_charged_total",
            "Registration fees settled, labeled by strategy.",
            labelnames=("strategy",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.gas_price_rejections_total = Counter(
            "gas_price_rejections_total",
            "Immediate registrations rejected for exceeding the gas price ceiling.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    def record_registration(self, path: str) -> None:
        if path not in _REGISTRATION_PATHS:
            path = "controller"
        self.registrations_total.labels(path=path).inc()

    def record_commit(self, outcome: str) -> None:
        if outcome not in _COMMIT_OUTCOMES:
            outcome = "invalid"
        self.commits_total.labels(outcome=outcome).inc()

    def record_reveal(self, outcome: str) -> None:
        if outcome not in _REVEAL_OUTCOMES:
            outcome = "invalid"
        self.reveals_total.labels(outcome=outcome).inc()

    def record_fee(self, strategy: str) -> None:
        if strategy not in _FEE_STRATEGIES:
            raise ValueError(f"unknown fee strategy: {strategy!r}")
        self.fees_charged_total.labels(strategy=strategy).inc()

    def record_gas_price_rejection(self) -> None:
        self.gas_price_rejections_total.inc()


# Singleton used by most components
METRICS = Metrics()

__all__ = [
    "Metrics",
    "METRICS",
    "_COMMIT_OUTCOMES",
    "_REVEAL_OUTCOMES",
]
