"""
Command line entry point for the Stock Forecast system.

Provides access to the product store, the per-product projection and the
reorder dashboard.
"""
import argparse
import sys
from datetime import date
from pathlib import Path

from tabulate import tabulate

from stock_forecast.config import config
from stock_forecast.core.analytics import next_inbound_index
from stock_forecast.db import db, session_scope
from stock_forecast.exceptions import StockForecastError
from stock_forecast.logging_setup import logger, get_logger, log_exception
from stock_forecast.models import RiskTier, StockStatus
from stock_forecast.services.catalog import bootstrap_products
from stock_forecast.services.dashboard import DashboardService
from stock_forecast.services.exchange import pos_to_csv, pos_to_json, products_from_json
from stock_forecast.services.product_store import ProductStore
from stock_forecast.utils.date_utils import parse_iso_date

log = get_logger('cli')

RISK_LABELS = {
    RiskTier.SAFE: 'safe',
    RiskTier.WARNING: 'warning',
    RiskTier.CRITICAL: 'CRITICAL',
}

def _parse_date_arg(value):
    parsed = parse_iso_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"Invalid date: {value} (expected YYYY-MM-DD)")
    return parsed

def _availability_strip(flags):
    return ''.join('#' if available else '.' for available in flags)

def _format_date(value):
    return value.isoformat() if value else 'safe'

def _build_service(args):
    return DashboardService(
        warning_days=args.warning_days,
        horizon_days=getattr(args, 'days', None),
        today=args.as_of
    )

def setup_database(drop=False):
    """Create the product tables, optionally dropping existing ones first."""
    if drop:
        log.info("Dropping existing tables")
        db.drop_all_tables()
    db.create_all_tables()
    log.info(f"Database ready at {config.get_db_url()}")

def seed_products(args):
    """Store the bootstrap collection when the store is empty."""
    with session_scope() as session:
        store = ProductStore(session)
        if not store.is_empty() and not args.force:
            log.warning("Product store is not empty, use --force to overwrite")
            return False
        store.save_products(bootstrap_products(args.as_of))
    return True

def show_dashboard(args):
    """Print the reorder dashboard for every stored product."""
    job = logger.job_start_log('dashboard', {'warning_days': args.warning_days, 'as_of': args.as_of})

    with session_scope() as session:
        products = ProductStore(session).load_products(args.as_of)

    if not products:
        log.warning("No products found")
        logger.job_end_log(job, success=True, result_info={'products': 0})
        return True

    service = _build_service(args)
    rows = []
    for analysis in service.analyze_all(products):
        rows.append([
            analysis.product.id,
            analysis.product.name,
            f"{analysis.product.current_stock:,.0f}",
            f"{analysis.projection.current_month_daily_rate:,.1f}",
            f"{analysis.months_until_stockout:.1f}",
            RISK_LABELS[analysis.risk_tier],
            _format_date(analysis.stockout_date),
            _format_date(analysis.reorder_date),
            analysis.urgency.value,
            f"{analysis.suggested_qty:,.0f}",
            _availability_strip(analysis.monthly_availability)
        ])

    print("\nReorder Dashboard:")
    print(tabulate(rows, headers=[
        'ID', 'Product', 'Stock', 'Daily Rate', 'Months', 'Risk',
        'Stockout', 'Reorder By', 'Urgency', 'Suggest Qty', 'Next 12 Months'
    ]))

    kpi = service.fleet_kpi(products)
    pipeline = service.po_summary(products)
    print(f"\nStocking out within a year: {kpi['stockout_within_horizon']}")
    print(f"Reorder due within {kpi['order_window_days']} days: {kpi['need_order_soon']}")
    print(f"Open purchase order units: {pipeline['open_qty']:,.0f} (value {pipeline['open_value']:,.2f})")

    if pipeline['next_arrivals']:
        print("\nArrivals in the next 30 days:")
        print(tabulate(
            [[a['arrival_date'].isoformat(), a['product_name'], a['po_number'], f"{a['qty']:,.0f}"]
             for a in pipeline['next_arrivals']],
            headers=['Arrival', 'Product', 'PO Number', 'Qty']
        ))

    logger.job_end_log(job, success=True, result_info={'products': len(products)})
    return True

def show_projection(args):
    """Print the daily projection of one product."""
    with session_scope() as session:
        product = ProductStore(session).get_product(args.product_id, args.as_of)

    service = _build_service(args)
    projection = service.project(product)
    points = projection.series
    if args.only_inbound:
        points = [point for point in points if point.incoming_qty > 0]

    print(f"\nProjection for {product.name} (daily rate this month {projection.current_month_daily_rate:,.2f}):")
    print(tabulate(
        [[point.date.isoformat(), f"{point.stock:,.0f}", point.status.value,
          f"{point.incoming_qty:,.0f}" if point.incoming_qty else '']
         for point in points],
        headers=['Date', 'Stock', 'Status', 'Incoming']
    ))

    inbound_index = next_inbound_index(projection.series)
    if inbound_index >= 0:
        print(f"\nNext arrival: {projection.series[inbound_index].date.isoformat()}")

    summary = service.coverage(product)
    if summary and not summary['safe']:
        print(f"\nFirst stockout: {summary['stockout_date'].isoformat()} ({summary['months']} months)")
    elif summary:
        print(f"\nCovered for the whole horizon ({summary['months']} months)")

    month_ends = [
        [f"{m.year}-{m.month:02d}", f"{m.stock:,.0f}", m.status.value]
        for m in projection.month_end_stocks
        if m.status is not StockStatus.OK or args.verbose
    ]
    if month_ends:
        print("\nMonth-end stock:")
        print(tabulate(month_ends, headers=['Month', 'Stock', 'Status']))
    return True

def import_products(args):
    """Load a JSON product collection into the store."""
    text = Path(args.file).read_text(encoding='utf-8')
    products, report = products_from_json(text, args.as_of)

    for issue in report.issues:
        log.info(f"Defaulted {issue.path} ({issue.reason})")

    with session_scope() as session:
        ProductStore(session).save_products(products)

    print(f"Imported {len(products)} products ({len(report.issues)} fields defaulted)")
    return True

def export_pos(args):
    """Write the purchase orders of one product as JSON or CSV."""
    with session_scope() as session:
        product = ProductStore(session).get_product(args.product_id, args.as_of)

    content = pos_to_csv(product.pos) if args.format == 'csv' else pos_to_json(product.pos)
    if args.output:
        Path(args.output).write_text(content, encoding='utf-8')
        log.info(f"Wrote {len(product.pos)} purchase orders to {args.output}")
    else:
        print(content)
    return True

COMMANDS = {
    'seed': seed_products,
    'dashboard': show_dashboard,
    'project': show_projection,
    'import-products': import_products,
    'export-pos': export_pos,
}

def build_parser():
    forecast_settings = config.forecast_config
    parser = argparse.ArgumentParser(description='Stock Forecast')

    parser.add_argument('--setup-db', action='store_true',
                      help='Set up the database schema')
    parser.add_argument('--drop-db', action='store_true',
                      help='Drop existing tables before setup')
    parser.add_argument('--db-url', type=str,
                      help='Database URL overriding the configuration')

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--as-of', type=_parse_date_arg, default=date.today(),
                        help='Analysis date (YYYY-MM-DD), defaults to today')
    common.add_argument('--warning-days', type=int, default=forecast_settings['warning_days'],
                        help='Days of cover below which stock is flagged low')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    seed_parser = subparsers.add_parser('seed', parents=[common], help='Store the default products')
    seed_parser.add_argument('--force', action='store_true', help='Overwrite existing products')

    subparsers.add_parser('dashboard', parents=[common], help='Show the reorder dashboard')

    project_parser = subparsers.add_parser('project', parents=[common], help='Show the daily projection of a product')
    project_parser.add_argument('--product-id', type=int, required=True, help='Product to project')
    project_parser.add_argument('--days', type=int, default=forecast_settings['horizon_days'],
                                help='Projection horizon in days')
    project_parser.add_argument('--only-inbound', action='store_true', help='Only show days with arrivals')
    project_parser.add_argument('--verbose', '-v', action='store_true', help='Show every month-end snapshot')

    import_parser = subparsers.add_parser('import-products', parents=[common], help='Import products from JSON')
    import_parser.add_argument('file', help='JSON file with a product array')

    export_parser = subparsers.add_parser('export-pos', parents=[common], help='Export purchase orders of a product')
    export_parser.add_argument('--product-id', type=int, required=True, help='Product to export')
    export_parser.add_argument('--format', choices=['json', 'csv'], default='json', help='Output format')
    export_parser.add_argument('--output', '-o', type=str, help='Output file, defaults to stdout')

    return parser

def main(argv=None):
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    db.initialize(args.db_url)

    try:
        if args.setup_db:
            setup_database(args.drop_db)
            if not args.command:
                return 0

        if not args.command:
            parser.print_help()
            return 0

        return 0 if COMMANDS[args.command](args) else 1

    except StockForecastError as e:
        log_exception('cli', e, f"Command '{args.command or 'setup-db'}' failed")
        return 1

if __name__ == "__main__":
    sys.exit(main())
