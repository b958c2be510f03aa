# Services module - session, claim state, workbench, wizard and reports
from .auth import AuthSession
from .claims_store import ClaimsStore, Pagination, TRANSITION_DENIED_MESSAGE
from .reports import ReportsService, sla_report_csv, summarize_sla
from .wizard import ClaimWizard, STEPS
from .workbench import build_queues, workbench_filters, summarize_claims

__all__ = [
    "AuthSession",
    "ClaimsStore",
    "Pagination",
    "TRANSITION_DENIED_MESSAGE",
    "ReportsService",
    "sla_report_csv",
    "summarize_sla",
    "ClaimWizard",
    "STEPS",
    "build_queues",
    "workbench_filters",
    "summarize_claims",
]
