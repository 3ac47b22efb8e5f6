"""
Command line interface for the product catalog.

Each invocation loads the data file, runs one command and saves the store
again when the command changed it.
"""
import argparse
import sys
from typing import List, Optional

from tabulate import tabulate

from product_management.exceptions import PMSError, NotFoundError, ValidationError
from product_management.logging_setup import logger, get_logger
from product_management.models import Product
from product_management.services.datastore import DataStore
from product_management.services.reporting_service import ReportingService

log = get_logger('cli')

PRODUCT_HEADERS = ['ID', 'Subgroup', 'Code', 'Name', 'Price', 'Qty', 'Updated']


def print_products(products: List[Product]) -> None:
    table_data = [
        [p.id, p.subgroup_id, p.code, p.name, p.price, p.quantity, p.updated_at]
        for p in products
    ]
    print(tabulate(table_data, headers=PRODUCT_HEADERS, floatfmt='.2f'))
    print(f"\nTotal: {len(products)}")


def _require(entity, kind: str, entity_id: int):
    if entity is None:
        raise NotFoundError(f"{kind} {entity_id} not found", details={'id': entity_id})
    return entity


def list_categories(store: DataStore, args) -> bool:
    table_data = [
        [c.id, c.name, c.description, c.subgroup_count, c.total_product_count()]
        for c in store.categories
    ]
    print(tabulate(table_data, headers=['ID', 'Name', 'Description', 'Subgroups', 'Products']))
    return True


def list_subgroups(store: DataStore, args) -> bool:
    table_data = []
    for category in store.categories:
        if args.category_id is not None and category.id != args.category_id:
            continue
        for subgroup in category.subgroups:
            table_data.append([
                subgroup.id, category.id, subgroup.name, subgroup.description, subgroup.product_count
            ])
    print(tabulate(table_data, headers=['ID', 'Category', 'Name', 'Description', 'Products']))
    return True


def list_products(store: DataStore, args) -> bool:
    if args.subgroup_id is not None:
        subgroup = _require(store.find_subgroup_by_id(args.subgroup_id), 'Subgroup', args.subgroup_id)
        products = [p.snapshot() for p in subgroup.products]
    else:
        products = [p.snapshot() for _, _, p in store.iter_products()]
    print_products(products)
    return True


def show_statistics(store: DataStore, args) -> bool:
    stats = store.statistics()
    print("\nCatalog Statistics:")
    print(f"  Categories: {stats.total_categories}")
    print(f"  Subgroups: {stats.total_subgroups}")
    print(f"  Products: {stats.total_products}")
    print(f"  Total Quantity: {stats.total_quantity}")
    print(f"  Total Value: {stats.total_value:.2f}")
    print(f"  Average Price: {stats.average_price:.2f}")
    print(f"  Last Saved: {store.last_saved}")
    return True


def search_name(store: DataStore, args) -> bool:
    print_products(store.search_products_by_name(args.text))
    return True


def search_price(store: DataStore, args) -> bool:
    print_products(store.search_products_by_price(args.min, args.max))
    return True


def search_quantity(store: DataStore, args) -> bool:
    print_products(store.search_products_by_quantity(args.min, args.max))
    return True


def low_stock(store: DataStore, args) -> bool:
    reporting = ReportingService(store)
    report = reporting.low_stock_report(args.threshold)
    print(f"\nProducts below {report['summary']['threshold']} units:")
    print(reporting.format_table(
        report['data'], ['product_id', 'code', 'name', 'quantity', 'shortfall']
    ))
    return True


def write_report(store: DataStore, args) -> bool:
    reporting = ReportingService(store)
    if args.csv:
        print(reporting.export_report_to_csv(reporting.inventory_report(args.category_id)))
        return True

    path = reporting.write_text_report(args.output)
    print(f"Report written to {path}")
    return True


def add_category(store: DataStore, args) -> bool:
    category = store.create_category(args.name, args.description)
    if category is None:
        raise ValidationError(f"Could not add category '{args.name}'")
    print(f"Added category {category.id}: {category.name}")
    return True


def add_subgroup(store: DataStore, args) -> bool:
    _require(store.find_category_by_id(args.category_id), 'Category', args.category_id)
    subgroup = store.create_subgroup(args.category_id, args.name, args.description)
    if subgroup is None:
        raise ValidationError(f"Could not add subgroup '{args.name}'")
    print(f"Added subgroup {subgroup.id}: {subgroup.name}")
    return True


def add_product(store: DataStore, args) -> bool:
    _require(store.find_subgroup_by_id(args.subgroup_id), 'Subgroup', args.subgroup_id)
    product = store.create_product(
        args.subgroup_id, args.code, args.name, args.description, args.price, args.quantity
    )
    if product is None:
        raise ValidationError(f"Could not add product '{args.code}'")
    print(f"Added product {product.id}: {product.code} {product.name}")
    return True


def update_product(store: DataStore, args) -> bool:
    _require(store.find_product_by_id(args.id), 'Product', args.id)
    if not store.update_product(
        args.id,
        code=args.code,
        name=args.name,
        description=args.description,
        price=args.price,
        quantity=args.quantity
    ):
        raise ValidationError(f"Rejected update of product {args.id}")
    print(f"Updated product {args.id}")
    return True


def remove_category(store: DataStore, args) -> bool:
    _require(store.find_category_by_id(args.id), 'Category', args.id)
    return store.remove_category(args.id)


def remove_subgroup(store: DataStore, args) -> bool:
    _require(store.find_subgroup_by_id(args.id), 'Subgroup', args.id)
    return store.remove_subgroup(args.id)


def remove_product(store: DataStore, args) -> bool:
    _require(store.find_product_by_id(args.id), 'Product', args.id)
    return store.remove_product(args.id)


def check_store(store: DataStore, args) -> bool:
    problems = store.check_integrity()
    if not problems:
        print("No problems found")
        return True

    print("\nIntegrity problems:")
    for problem in problems:
        print(f"  - {problem}")
    return False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Product Management System')
    parser.add_argument('--data-file', help='Data file (defaults to configuration)')
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    categories_parser = subparsers.add_parser('categories', help='List categories')
    categories_parser.set_defaults(handler=list_categories)

    subgroups_parser = subparsers.add_parser('subgroups', help='List subgroups')
    subgroups_parser.add_argument('--category-id', type=int, help='Filter by category ID')
    subgroups_parser.set_defaults(handler=list_subgroups)

    products_parser = subparsers.add_parser('products', help='List products')
    products_parser.add_argument('--subgroup-id', type=int, help='Filter by subgroup ID')
    products_parser.set_defaults(handler=list_products)

    stats_parser = subparsers.add_parser('stats', help='Show catalog statistics')
    stats_parser.set_defaults(handler=show_statistics)

    name_parser = subparsers.add_parser('search-name', help='Search products by name')
    name_parser.add_argument('text', help='Case-insensitive substring')
    name_parser.set_defaults(handler=search_name)

    price_parser = subparsers.add_parser('search-price', help='Search products by price range')
    price_parser.add_argument('min', type=float, help='Minimum price')
    price_parser.add_argument('max', type=float, help='Maximum price')
    price_parser.set_defaults(handler=search_price)

    quantity_parser = subparsers.add_parser('search-quantity', help='Search products by quantity range')
    quantity_parser.add_argument('min', type=int, help='Minimum quantity')
    quantity_parser.add_argument('max', type=int, help='Maximum quantity')
    quantity_parser.set_defaults(handler=search_quantity)

    low_stock_parser = subparsers.add_parser('low-stock', help='List products below a quantity')
    low_stock_parser.add_argument('--threshold', type=int, help='Quantity threshold')
    low_stock_parser.set_defaults(handler=low_stock)

    report_parser = subparsers.add_parser('report', help='Write the inventory report')
    report_parser.add_argument('--output', help='Report file (defaults to configuration)')
    report_parser.add_argument('--csv', action='store_true', help='Print the inventory as CSV instead')
    report_parser.add_argument('--category-id', type=int, help='Filter CSV output by category ID')
    report_parser.set_defaults(handler=write_report)

    add_category_parser = subparsers.add_parser('add-category', help='Add a category')
    add_category_parser.add_argument('name', help='Category name')
    add_category_parser.add_argument('--description', default='', help='Description')
    add_category_parser.set_defaults(handler=add_category, mutates=True)

    add_subgroup_parser = subparsers.add_parser('add-subgroup', help='Add a subgroup')
    add_subgroup_parser.add_argument('category_id', type=int, help='Parent category ID')
    add_subgroup_parser.add_argument('name', help='Subgroup name')
    add_subgroup_parser.add_argument('--description', default='', help='Description')
    add_subgroup_parser.set_defaults(handler=add_subgroup, mutates=True)

    add_product_parser = subparsers.add_parser('add-product', help='Add a product')
    add_product_parser.add_argument('subgroup_id', type=int, help='Parent subgroup ID')
    add_product_parser.add_argument('code', help='Product code')
    add_product_parser.add_argument('name', help='Product name')
    add_product_parser.add_argument('price', type=float, help='Unit price')
    add_product_parser.add_argument('quantity', type=int, help='Quantity on hand')
    add_product_parser.add_argument('--description', default='', help='Description')
    add_product_parser.set_defaults(handler=add_product, mutates=True)

    update_parser = subparsers.add_parser('update-product', help='Update product fields')
    update_parser.add_argument('id', type=int, help='Product ID')
    update_parser.add_argument('--code', help='New code')
    update_parser.add_argument('--name', help='New name')
    update_parser.add_argument('--description', help='New description')
    update_parser.add_argument('--price', type=float, help='New unit price')
    update_parser.add_argument('--quantity', type=int, help='New quantity')
    update_parser.set_defaults(handler=update_product, mutates=True)

    for kind, handler in (
        ('category', remove_category),
        ('subgroup', remove_subgroup),
        ('product', remove_product)
    ):
        remove_parser = subparsers.add_parser(f'remove-{kind}', help=f'Remove a {kind}')
        remove_parser.add_argument('id', type=int, help=f'{kind.title()} ID')
        remove_parser.set_defaults(handler=handler, mutates=True)

    check_parser = subparsers.add_parser('check', help='Check catalog integrity')
    check_parser.set_defaults(handler=check_store)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line interface.

    Returns:
        Process exit status
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, 'handler', None):
        parser.print_help()
        return 1

    logger.app_logger.info(f"Running command '{args.command}'")

    store = DataStore()
    if not store.load(args.data_file):
        print("Error: could not load the data file, see logs/storage.log", file=sys.stderr)
        return 1

    try:
        success = args.handler(store, args)
    except PMSError as e:
        log.error(f"Command '{args.command}' failed: {str(e)}")
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if getattr(args, 'mutates', False) and store.is_modified:
        if not store.save(args.data_file):
            print("Error: could not save the data file, see logs/storage.log", file=sys.stderr)
            return 1

    return 0 if success else 1


if __name__ == '__main__':
    sys.exit(main())
