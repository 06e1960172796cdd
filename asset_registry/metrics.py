from __future__ import annotations

"""
Prometheus metrics for registry lifecycle operations.

Each `AssetRegistry` owns one `RegistryMetrics` holder with its own
`CollectorRegistry`, so independent registries (tests, multiple stores in one
process) never collide on metric names. The HTTP layer re-uses the same
collector registry when it mounts /metrics (see asset_registry.api.metrics).

Metrics
-------
- asset_registry_operations_total{operation,outcome}
      outcome is "ok" or the rejecting error kind (e.g. "AssetMissing").
- asset_registry_minted_total
- asset_registry_transfers_total
- asset_registry_destroyed_total{path}           path: "owner" | "admin"
- asset_registry_bulk_items_skipped_total
- asset_registry_live_assets                     gauge

Metrics are informational: nothing in the lifecycle reads them back.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

OUTCOME_OK = "ok"


class RegistryMetrics:
    """
    Holder for the collector registry and metric objects.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.operations_total = Counter(
            "asset_registry_operations_total",
            "Lifecycle operations by outcome",
            ["operation", "outcome"],
            registry=self.registry,
        )
        self.minted_total = Counter(
            "asset_registry_minted_total",
            "Assets minted (single and bulk)",
            registry=self.registry,
        )
        self.transfers_total = Counter(
            "asset_registry_transfers_total",
            "Successful ownership transfers",
            registry=self.registry,
        )
        self.destroyed_total = Counter(
            "asset_registry_destroyed_total",
            "Assets destroyed",
            ["path"],
            registry=self.registry,
        )
        self.bulk_items_skipped_total = Counter(
            "asset_registry_bulk_items_skipped_total",
            "Bulk-mint items skipped for invalid metadata",
            registry=self.registry,
        )
        self.live_assets = Gauge(
            "asset_registry_live_assets",
            "Assets minted and not destroyed",
            registry=self.registry,
        )

    # --- recording helpers -------------------------------------------------

    def ok(self, operation: str) -> None:
        self.operations_total.labels(operation, OUTCOME_OK).inc()

    def rejected(self, operation: str, kind: str) -> None:
        self.operations_total.labels(operation, kind).inc()

    def minted(self, n: int = 1) -> None:
        if n > 0:
            self.minted_total.inc(n)
            self.live_assets.inc(n)

    def transferred(self) -> None:
        self.transfers_total.inc()

    def destroyed(self, path: str) -> None:
        self.destroyed_total.labels(path).inc()
        self.live_assets.dec()

    def skipped(self, n: int) -> None:
        if n > 0:
            self.bulk_items_skipped_total.inc(n)

    def sample(self, name: str, labels: Optional[dict] = None) -> float:
        """Return the current value of a sample (0.0 when absent)."""
        v = self.registry.get_sample_value(name, labels or {})
        return float(v) if v is not None else 0.0

    def render_latest(self) -> bytes:
        return generate_latest(self.registry)


__all__ = ["RegistryMetrics", "OUTCOME_OK"]
