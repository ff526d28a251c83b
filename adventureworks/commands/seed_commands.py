import click
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError

from adventureworks.extensions import db
from adventureworks.models import Currency, Product
from adventureworks.utils.model_utils.base import count_instances, create_instance

SAMPLE_PRODUCTS = [
    {"name": "Mountain-200 Black, 38", "product_number": "BK-M68B-38", "color": "Black",
     "category": "Bikes", "size": "38", "weight": 11.6, "standard_cost": 1251.98, "list_price": 2294.99},
    {"name": "Road-650 Red, 44", "product_number": "BK-R50R-44", "color": "Red",
     "category": "Bikes", "size": "44", "weight": 8.8, "standard_cost": 486.71, "list_price": 782.99},
    {"name": "Touring-1000 Blue, 50", "product_number": "BK-T79U-50", "color": "Blue",
     "category": "Bikes", "size": "50", "weight": 11.3, "standard_cost": 1481.94, "list_price": 2384.07},
    {"name": "HL Road Frame - Red, 58", "product_number": "FR-R92R-58", "color": "Red",
     "category": "Components", "size": "58", "weight": 1.0, "standard_cost": 1059.31, "list_price": 1431.50},
    {"name": "Sport-100 Helmet, Red", "product_number": "HL-U509-R", "color": "Red",
     "category": "Accessories", "standard_cost": 13.09, "list_price": 34.99},
    {"name": "Long-Sleeve Logo Jersey, M", "product_number": "LJ-0192-M", "color": "Multi",
     "category": "Clothing", "size": "M", "standard_cost": 38.49, "list_price": 49.99},
]

SAMPLE_CURRENCIES = [
    {"currency_code": "USD", "name": "US Dollar"},
    {"currency_code": "EUR", "name": "EURO"},
    {"currency_code": "GBP", "name": "United Kingdom Pound"},
    {"currency_code": "JPY", "name": "Yen"},
]


def seed_database():
    """Insert the sample rows into empty tables; returns how many were added per table."""
    seeded = {}
    for model, rows in ((Product, SAMPLE_PRODUCTS), (Currency, SAMPLE_CURRENCIES)):
        if count_instances(model) > 0:
            seeded[model.__tablename__] = 0
            continue
        for row in rows:
            create_instance(model, commit=False, context={"command": "seed"}, **row)
        db.session.commit()
        seeded[model.__tablename__] = len(rows)
    return seeded


@click.command("seed")
@with_appcontext
def seed_command():
    """Seed the database with AdventureWorks sample products and currencies."""
    try:
        seeded = seed_database()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise click.ClickException(f"Seeding failed: {e}")
    for table, count in seeded.items():
        if count:
            click.echo(f"Seeded {count} rows into {table}.")
        else:
            click.echo(f"{table} already has data; skipped.")
