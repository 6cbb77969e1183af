"""Deterministic placeholder charts for OCI references that cannot be pulled.

When no chart tool is available the resolver still needs a directory that
looks like an extracted chart. The values below depend only on the chart
name, so the same reference always produces the same files.
"""

from __future__ import annotations

from pathlib import Path

import yaml

OLLAMA_VALUES = """\
# Ollama Configuration
replicaCount: 1

image:
  repository: ollama/ollama
  tag: "latest"
  pullPolicy: IfNotPresent

service:
  type: LoadBalancer
  port: 11434

resources:
  requests:
    memory: 2Gi
    cpu: 1000m
  limits:
    memory: 8Gi
    cpu: 4000m

persistence:
  enabled: true
  size: 20Gi
  storageClass: ""

ollama:
  models:
    - llama2
    - mistral
  gpu:
    enabled: false
    count: 1

autoscaling:
  enabled: false
  minReplicas: 1
  maxReplicas: 3
  targetCPUUtilizationPercentage: 80
"""

PROMETHEUS_VALUES = """\
# Prometheus Configuration
replicaCount: 1

image:
  repository: prom/prometheus
  tag: "latest"
  pullPolicy: IfNotPresent

service:
  type: LoadBalancer
  port: 9090

persistence:
  enabled: true
  size: 50Gi
  storageClass: ""

resources:
  requests:
    memory: 1Gi
    cpu: 500m
  limits:
    memory: 4Gi
    cpu: 2000m

retention: "30d"
scrapeInterval: "30s"
"""

GRAFANA_VALUES = """\
# Grafana Configuration
replicaCount: 1

image:
  repository: grafana/grafana
  tag: "latest"
  pullPolicy: IfNotPresent

service:
  type: LoadBalancer
  port: 3000

adminUser: admin
adminPassword: admin

persistence:
  enabled: true
  size: 10Gi
  storageClass: ""

resources:
  requests:
    memory: 256Mi
    cpu: 100m
  limits:
    memory: 1Gi
    cpu: 500m
"""

GENERIC_VALUES = """\
# {title} Configuration
replicaCount: 3

image:
  repository: {name}
  tag: "latest"
  pullPolicy: IfNotPresent

service:
  type: LoadBalancer
  port: 8080

resources:
  requests:
    memory: 256Mi
    cpu: 100m
  limits:
    memory: 512Mi
    cpu: 500m

persistence:
  enabled: true
  size: 10Gi
  storageClass: ""

autoscaling:
  enabled: false
  minReplicas: 2
  maxReplicas: 10
  targetCPUUtilizationPercentage: 80

ingress:
  enabled: false
  className: nginx
  host: ""
  tls:
    enabled: false
    secretName: ""
"""

KNOWN_CHART_VALUES: dict[str, str] = {
    "ollama": OLLAMA_VALUES,
    "prometheus": PROMETHEUS_VALUES,
    "grafana": GRAFANA_VALUES,
}


def chart_name_from_reference(reference: str) -> str:
    """Derive a chart name from the last path segment of a reference.

    ``oci://dp.apps.rancher.io/charts/ollama:1.16.0`` -> ``ollama``
    """
    last_segment: str = reference.rstrip("/").rsplit("/", 1)[-1]
    return last_segment.split(":", 1)[0] or "unknown"


def version_from_reference(reference: str) -> str | None:
    """Return the ``:version`` suffix of the last path segment, if any."""
    last_segment: str = reference.rstrip("/").rsplit("/", 1)[-1]
    if ":" not in last_segment:
        return None
    version: str = last_segment.split(":", 1)[1]
    return version or None


def generate_values(chart_name: str) -> str:
    """Return the synthetic values.yaml content for a chart name."""
    known: str | None = KNOWN_CHART_VALUES.get(chart_name.lower())
    if known is not None:
        return known
    return GENERIC_VALUES.format(title=chart_name.title(), name=chart_name)


def write_synthetic_chart(reference: str, dest_dir: Path) -> Path:
    """Materialize a synthetic chart for ``reference`` under ``dest_dir``.

    Writes ``<dest_dir>/<chart>/Chart.yaml`` and ``values.yaml`` and returns
    the chart directory.
    """
    chart_name: str = chart_name_from_reference(reference)
    chart_dir: Path = dest_dir / chart_name
    chart_dir.mkdir(parents=True, exist_ok=True)

    chart_yaml = {
        "apiVersion": "v2",
        "name": chart_name,
        "description": f"Synthetic placeholder for {chart_name}",
        "version": version_from_reference(reference) or "0.0.0",
    }
    with (chart_dir / "Chart.yaml").open("w", encoding="utf-8") as f:
        yaml.safe_dump(chart_yaml, f, default_flow_style=False, sort_keys=False)

    (chart_dir / "values.yaml").write_text(generate_values(chart_name), encoding="utf-8")
    return chart_dir
