"""Prometheus metrics for contextrail.

Stage-level latency and outcome counters, run-level counters, and synthesis
health. Labels are bounded: pipeline names come from configuration presets
and stage names from pipeline definitions.
"""

from prometheus_client import Counter, Histogram

# Stage metrics
STAGE_LATENCY = Histogram(
    "contextrail_stage_latency_seconds",
    "Latency of individual pipeline stages",
    labelnames=["pipeline", "stage", "outcome"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

STAGE_OUTCOMES = Counter(
    "contextrail_stage_outcomes_total",
    "Stage attempts by outcome (success, failed, timeout)",
    labelnames=["pipeline", "stage", "outcome"],
)

# Run metrics
PIPELINE_RUNS = Counter(
    "contextrail_pipeline_runs_total",
    "Pipeline runs by scheduling mode and status",
    labelnames=["pipeline", "mode", "status"],
)

PIPELINE_LATENCY = Histogram(
    "contextrail_pipeline_latency_seconds",
    "End-to-end pipeline run latency",
    labelnames=["pipeline", "mode"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# Synthesis metrics
SYNTHESIS_FALLBACKS = Counter(
    "contextrail_synthesis_fallbacks_total",
    "Number of runs that fell back to the default profile",
    labelnames=["pipeline"],
)

SYNTHESIS_CONFIDENCE = Histogram(
    "contextrail_synthesis_confidence",
    "Distribution of synthesis confidence values",
    labelnames=["pipeline"],
    buckets=(0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0),
)


def observe_stage(pipeline: str, stage: str, outcome: str, duration_seconds: float) -> None:
    """Record one stage attempt."""
    STAGE_LATENCY.labels(pipeline=pipeline, stage=stage, outcome=outcome).observe(
        duration_seconds
    )
    STAGE_OUTCOMES.labels(pipeline=pipeline, stage=stage, outcome=outcome).inc()


def observe_run(pipeline: str, mode: str, success: bool, duration_seconds: float) -> None:
    """Record one completed pipeline run."""
    status = "success" if success else "failed"
    PIPELINE_RUNS.labels(pipeline=pipeline, mode=mode, status=status).inc()
    PIPELINE_LATENCY.labels(pipeline=pipeline, mode=mode).observe(duration_seconds)
