from .sanitizer import sanitize, sanitize_with_report, SanitizeReport, FieldIssue
from .forecast import project, classify_stock, calculate_daily_rates, incoming_by_date
from .analytics import (
    analyze_product, classify_risk, coverage_summary,
    first_stockout_index, next_inbound_index,
    ANALYSIS_HORIZON_DAYS, SAFE_COVERAGE_DAYS
)

__all__ = [
    'sanitize',
    'sanitize_with_report',
    'SanitizeReport',
    'FieldIssue',
    'project',
    'classify_stock',
    'calculate_daily_rates',
    'incoming_by_date',
    'analyze_product',
    'classify_risk',
    'coverage_summary',
    'first_stockout_index',
    'next_inbound_index',
    'ANALYSIS_HORIZON_DAYS',
    'SAFE_COVERAGE_DAYS'
]
