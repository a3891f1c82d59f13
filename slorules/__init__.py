"""SLO alert windows and burn-rate alerts, SLO spec loading and PrometheusRule output."""

__version__ = "0.1.0"

__all__ = [
    "alert",
    "availability",
    "discovery",
    "durations",
    "generate",
    "handler",
    "info",
    "k8sspec",
    "k8sstorage",
    "log",
    "model",
]