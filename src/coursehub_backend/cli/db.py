import click

from coursehub_backend.database import create_tables

@click.command()
def init():
    """Create all tables (development databases; production schemas are managed externally)."""
    create_tables()
    click.echo(click.style("Database tables created", fg="green"))

@click.group()
def db():
    pass

db.add_command(init,"init")
