"""
Reports

SLA and dashboard figures fetched from the backend, plus the metrics and CSV
export derived from them.
"""
import csv
import io
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from claims_portal.api.client import ApiClient
from claims_portal.core.models import DashboardStats, SLAReport

logger = logging.getLogger(__name__)


def on_time_percentage(report: SLAReport) -> float:
    """Share of claims closed within SLA, 0 when there are no claims."""
    if report.total_claims == 0:
        return 0.0
    return round(report.on_time / report.total_claims * 100, 1)


def average_cycle_time(report: SLAReport) -> float:
    return round(report.average_cycle_time, 1)


def breaches_by_product(report: SLAReport) -> List[Tuple[str, int]]:
    """Products with SLA breaches, most breaches first."""
    return sorted(report.breaches_by_product.items(), key=lambda kv: (-kv[1], kv[0]))


@dataclass
class SLASummary:
    total_claims: int
    on_time: int
    overdue: int
    on_time_percentage: float
    average_cycle_time: float
    breaches: List[Tuple[str, int]]


def summarize_sla(report: SLAReport) -> SLASummary:
    return SLASummary(
        total_claims=report.total_claims,
        on_time=report.on_time,
        overdue=report.overdue,
        on_time_percentage=on_time_percentage(report),
        average_cycle_time=average_cycle_time(report),
        breaches=breaches_by_product(report),
    )


def sla_report_csv(
    report: SLAReport,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None
) -> str:
    """Render an SLA report as CSV text (metrics first, then breaches per product)."""
    summary = summarize_sla(report)
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    writer.writerow(["Metric", "Value"])
    if date_from:
        writer.writerow(["From", date_from.isoformat()])
    if date_to:
        writer.writerow(["To", date_to.isoformat()])
    writer.writerow(["Total claims", summary.total_claims])
    writer.writerow(["On time", summary.on_time])
    writer.writerow(["Overdue", summary.overdue])
    writer.writerow(["On-time %", f"{summary.on_time_percentage:.1f}"])
    writer.writerow(["Average cycle time (days)", f"{summary.average_cycle_time:.1f}"])

    writer.writerow([])
    writer.writerow(["Product", "Breaches"])
    for product, breaches in summary.breaches:
        writer.writerow([product, breaches])

    return buffer.getvalue()


class ReportsService:
    """Fetches reports for the reports page."""

    def __init__(self, client: ApiClient):
        self.client = client

    def sla_summary(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> Tuple[SLAReport, SLASummary]:
        report = self.client.reports.get_sla_report(date_from, date_to)
        logger.info(f"Fetched SLA report: {report.total_claims} claims")
        return report, summarize_sla(report)

    def dashboard_stats(self) -> DashboardStats:
        return self.client.reports.get_dashboard_stats()

    def export_sla_csv(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> str:
        report = self.client.reports.get_sla_report(date_from, date_to)
        return sla_report_csv(report, date_from, date_to)
