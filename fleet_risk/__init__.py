"""
Fleet Risk Copilot

Explainable per-vehicle risk scoring, maintenance status, fuel anomaly
detection and dispatch prioritisation over GPS telemetry.
"""

__version__ = "1.0.0"
