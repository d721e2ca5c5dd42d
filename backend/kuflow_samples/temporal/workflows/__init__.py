# kuflow_samples/temporal/workflows/__init__.py
# Temporal Workflows 包

from kuflow_samples.temporal.workflows.loan import LoanWorkflow
from kuflow_samples.temporal.workflows.email import EmailWorkflow
from kuflow_samples.temporal.workflows.uivision import UIVisionSampleWorkflow

__all__ = [
    "LoanWorkflow",
    "EmailWorkflow",
    "UIVisionSampleWorkflow",
]
