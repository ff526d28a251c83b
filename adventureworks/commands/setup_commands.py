import click
from flask.cli import with_appcontext

from adventureworks.extensions import db


@click.command("init-db")
@click.option("--drop", is_flag=True, help="Drop existing tables before creating them.")
@with_appcontext
def init_db_command(drop):
    """Create the tables for every registered model."""
    if drop:
        click.confirm("This will delete all data. Continue?", abort=True)
        db.drop_all()
        click.echo("Dropped all tables.")
    db.create_all()
    click.echo("Created tables: " + ", ".join(sorted(db.metadata.tables)))
