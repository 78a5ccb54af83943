"""
Anomaly detection over historical test results.
"""
from .models import Anomaly, AnomalySeverity, AnomalyType
from .detector import AnomalyDetector, SuiteAnomalyDetector, newest_first, rank_anomalies

__all__ = [
    "Anomaly", "AnomalySeverity", "AnomalyType",
    "AnomalyDetector", "SuiteAnomalyDetector", "newest_first", "rank_anomalies",
]
