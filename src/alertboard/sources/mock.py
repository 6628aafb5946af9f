"""Seeded mock alert sets for demos and load testing.

The generator is created per call from an explicit seed, so two callers
never share random state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

import numpy as np

from ..models import Alert


@dataclass(frozen=True)
class MockDistribution:
    """Relative weights for each generated attribute."""

    alert_types: Mapping[str, float] = field(
        default_factory=lambda: {"Grafana": 0.5, "GCP": 0.3, "Custom": 0.2}
    )
    statuses: Mapping[str, float] = field(
        default_factory=lambda: {
            "firing": 0.6,
            "resolved": 0.25,
            "pending": 0.1,
            "suppressed": 0.04,
            "inhibited": 0.01,
        }
    )
    tags: Mapping[str, float] = field(
        default_factory=lambda: {
            "production": 0.35,
            "backend": 0.15,
            "critical": 0.12,
            "api": 0.1,
            "staging": 0.08,
            "database": 0.06,
            "frontend": 0.05,
            "infrastructure": 0.04,
            "development": 0.03,
            "warning": 0.02,
        }
    )
    environments: Mapping[str, float] = field(
        default_factory=lambda: {"prod": 0.55, "staging": 0.3, "dev": 0.15}
    )
    teams: Mapping[str, float] = field(
        default_factory=lambda: {"platform": 0.3, "payments": 0.25, "search": 0.2, "identity": 0.15, "": 0.1}
    )
    dismissed_ratio: float = 0.1


_ALERT_NAMES = (
    "HighCPUUsage",
    "HighMemoryUsage",
    "DiskSpaceLow",
    "PodCrashLooping",
    "ServiceDown",
    "HighErrorRate",
    "SlowResponseTime",
    "CertificateExpiring",
    "QueueBacklog",
    "ReplicationLag",
)

_SERVICES = ("api-gateway", "checkout", "search", "auth", "billing", "inventory", "notifications")


def generate_mock_alerts(
    count: int = 5000,
    seed: int = 12345,
    distribution: Optional[MockDistribution] = None,
    now: Optional[datetime] = None,
) -> list[Alert]:
    """Generate *count* alerts with weighted types, statuses and tags.

    The same ``(count, seed, distribution, now)`` always yields the same list.
    """
    distribution = distribution or MockDistribution()
    now = now or datetime.now(timezone.utc)
    rng = np.random.default_rng(seed)

    types = _draw(rng, distribution.alert_types, count)
    statuses = _draw(rng, distribution.statuses, count)
    tags = _draw(rng, distribution.tags, count)
    envs = _draw(rng, distribution.environments, count)
    teams = _draw(rng, distribution.teams, count)
    names = rng.choice(len(_ALERT_NAMES), size=count)
    services = rng.choice(len(_SERVICES), size=count)
    dismissed = rng.random(count) < distribution.dismissed_ratio
    # Mostly recent, with a long tail into the past days
    minutes_ago = rng.exponential(scale=180.0, size=count)

    alerts = []
    for i in range(count):
        service = _SERVICES[services[i]]
        started = now - timedelta(minutes=float(minutes_ago[i]))
        alert_tags = {"env": envs[i], "service": service}
        if teams[i]:
            alert_tags["team"] = teams[i]
        alerts.append(
            Alert(
                id=f"mock-{seed}-{i}",
                name=f"{_ALERT_NAMES[names[i]]} {service}",
                status=statuses[i],
                is_dismissed=bool(dismissed[i]),
                tags=alert_tags,
                starts_at=started.isoformat(),
                summary=f"{_ALERT_NAMES[names[i]]} detected on {service} ({envs[i]})",
                type=types[i],
                tag=tags[i],
                updated_at=started.isoformat(),
            )
        )
    return alerts


def _draw(rng: np.random.Generator, weights: Mapping[str, float], size: int) -> list[str]:
    labels = list(weights)
    p = np.asarray([weights[label] for label in labels], dtype=np.float64)
    p = p / p.sum()
    return [labels[i] for i in rng.choice(len(labels), size=size, p=p)]
