"""
Reports page: SLA performance with CSV export.
"""
from datetime import date, timedelta

import streamlit as st

from claims_portal.core.exceptions import ApiError
from claims_portal.services.reports import ReportsService, sla_report_csv
from claims_portal.ui.components import render_header, show_error
from claims_portal.ui.session import get_client


def render():
    render_header("📊 Reports", "SLA performance and processing times")

    col1, col2 = st.columns(2)
    with col1:
        date_from = st.date_input("From", value=date.today() - timedelta(days=30))
    with col2:
        date_to = st.date_input("To", value=date.today())

    service = ReportsService(get_client())
    try:
        report, summary = service.sla_summary(date_from, date_to)
    except ApiError as e:
        show_error(e)
        return

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Claims", summary.total_claims)
    with col2:
        st.metric("On Time", f"{summary.on_time_percentage:.1f}%")
    with col3:
        st.metric("Overdue", summary.overdue)
    with col4:
        st.metric("Avg Cycle Time", f"{summary.average_cycle_time:.1f} days")

    st.subheader("🚨 SLA breaches by product")
    if summary.breaches:
        rows = [{"Product": product, "Breaches": count} for product, count in summary.breaches]
        st.bar_chart(rows, x="Product", y="Breaches")
        st.dataframe(
            rows,
            use_container_width=True,
            hide_index=True
        )
    else:
        st.success("No SLA breaches in this period")

    st.download_button(
        "⬇️ Export CSV",
        data=sla_report_csv(report, date_from, date_to),
        file_name=f"sla-report-{date_from.isoformat()}-{date_to.isoformat()}.csv",
        mime="text/csv"
    )
