# kuflow_samples/temporal/activities/__init__.py
# Temporal Activities 包

from kuflow_samples.temporal.activities.kuflow import KuFlowActivities
from kuflow_samples.temporal.activities.currency import CurrencyConversionActivities
from kuflow_samples.temporal.activities.datasource import DataSourceActivities
from kuflow_samples.temporal.activities.email import EmailActivities
from kuflow_samples.temporal.activities.uivision import UIVisionActivities

__all__ = [
    "KuFlowActivities",
    "CurrencyConversionActivities",
    "DataSourceActivities",
    "EmailActivities",
    "UIVisionActivities",
]
