# product_management/services/reporting_service.py
from typing import Dict, List, Optional, Sequence, Union
import csv
import io
import os
from pathlib import Path

from tabulate import tabulate

from product_management.config import config
from product_management.exceptions import ReportingError
from product_management.logging_setup import get_logger
from product_management.services.datastore import DataStore
from product_management.utils.date_utils import current_timestamp

logger = get_logger('reporting')

OUT_OF_STOCK = 'OUT_OF_STOCK'
LOW_STOCK = 'LOW_STOCK'
IN_STOCK = 'OK'

INVENTORY_COLUMNS = [
    'product_id', 'code', 'name', 'category', 'subgroup',
    'price', 'quantity', 'value', 'status'
]
CATEGORY_COLUMNS = [
    'category_id', 'category', 'subgroups', 'products', 'quantity', 'value'
]


def stock_status(quantity: int, threshold: int) -> str:
    """Classify a quantity on hand against the low stock threshold."""
    if quantity <= 0:
        return OUT_OF_STOCK
    if quantity < threshold:
        return LOW_STOCK
    return IN_STOCK


class ReportingService:
    """Service for generating catalog reports."""

    def __init__(self, store: DataStore):
        """Initialize the reporting service.

        Args:
            store: Data store to report on
        """
        self.store = store

    @property
    def low_stock_threshold(self) -> int:
        return config.catalog_config['low_stock_threshold']

    def inventory_report(self, category_id: Optional[int] = None) -> Dict:
        """Generate the inventory listing.

        Args:
            category_id: Optional category filter

        Returns:
            Dictionary with report data and summary
        """
        threshold = self.low_stock_threshold
        rows = []

        for category, subgroup, product in self.store.iter_products():
            if category_id is not None and category.id != category_id:
                continue

            rows.append({
                'product_id': product.id,
                'code': product.code,
                'name': product.name,
                'category': category.name,
                'subgroup': subgroup.name,
                'price': round(product.price, 2),
                'quantity': product.quantity,
                'value': round(product.total_value, 2),
                'status': stock_status(product.quantity, threshold)
            })

        summary = {
            'total_products': len(rows),
            'total_quantity': sum(r['quantity'] for r in rows),
            'total_value': round(sum(r['value'] for r in rows), 2),
            'out_of_stock': sum(1 for r in rows if r['status'] == OUT_OF_STOCK),
            'low_stock': sum(1 for r in rows if r['status'] == LOW_STOCK),
            'low_stock_threshold': threshold
        }
        if category_id is not None:
            summary['category_id'] = category_id

        return {'data': rows, 'summary': summary}

    def category_summary(self) -> Dict:
        """Aggregate totals per category."""
        rows = []
        for category in self.store.categories:
            rows.append({
                'category_id': category.id,
                'category': category.name,
                'subgroups': category.subgroup_count,
                'products': category.total_product_count(),
                'quantity': category.total_quantity(),
                'value': round(category.total_value(), 2)
            })

        return {
            'data': rows,
            'summary': {
                'total_categories': len(rows),
                'total_value': round(sum(r['value'] for r in rows), 2)
            }
        }

    def low_stock_report(self, threshold: Optional[int] = None) -> Dict:
        """Products whose quantity is below the threshold.

        Args:
            threshold: Quantity threshold (defaults to configuration)

        Returns:
            Dictionary with report data and summary
        """
        if threshold is None:
            threshold = self.low_stock_threshold

        rows = []
        for product in self.store.low_stock_products(threshold):
            rows.append({
                'product_id': product.id,
                'code': product.code,
                'name': product.name,
                'subgroup_id': product.subgroup_id,
                'quantity': product.quantity,
                'shortfall': threshold - product.quantity
            })

        return {
            'data': rows,
            'summary': {
                'threshold': threshold,
                'total_items': len(rows),
                'out_of_stock': sum(1 for r in rows if r['quantity'] == 0)
            }
        }

    def export_report_to_csv(self, report: Dict) -> str:
        """Export a report to CSV.

        Args:
            report: Report dictionary

        Returns:
            CSV data as string
        """
        if 'data' not in report:
            raise ReportingError("Report has no data to export")

        data = report['data']
        if not data:
            return "No data to export"

        output = io.StringIO()
        writer = csv.writer(output)

        header = list(data[0].keys())
        writer.writerow(header)

        for row in data:
            writer.writerow([row.get(col, '') for col in header])

        return output.getvalue()

    def format_table(self, rows: List[Dict], columns: Sequence[str]) -> str:
        """Render report rows as a plain text table."""
        if not rows:
            return "(none)"
        return tabulate(
            [[row.get(col, '') for col in columns] for row in rows],
            headers=[col.replace('_', ' ').title() for col in columns],
            floatfmt='.2f'
        )

    def write_text_report(self, path: Optional[Union[str, os.PathLike]] = None) -> Path:
        """Write statistics, category summary and inventory to a text file.

        Args:
            path: Output path (defaults to configuration)

        Returns:
            Path of the written report
        """
        target = Path(path) if path is not None else Path(config.reporting_config['report_file'])
        stats = self.store.statistics()

        lines = [
            "PRODUCT INVENTORY REPORT",
            f"Generated: {current_timestamp()}",
            f"Last saved: {self.store.last_saved}",
            "",
            "Statistics",
            tabulate(
                [[key.replace('_', ' ').title(), value] for key, value in stats.to_dict().items()],
                floatfmt='.2f'
            ),
            "",
            "Categories",
            self.format_table(self.category_summary()['data'], CATEGORY_COLUMNS),
            "",
            "Inventory",
            self.format_table(self.inventory_report()['data'], INVENTORY_COLUMNS),
            ""
        ]

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text("\n".join(lines), encoding='utf-8')
        except OSError as e:
            raise ReportingError(f"Cannot write report to {target}: {str(e)}") from e

        logger.info(f"Report written to {target}")
        return target
