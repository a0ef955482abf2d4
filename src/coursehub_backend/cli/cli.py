import os
import click
from dotenv import load_dotenv

# Settings are read on import, so the environment file goes first
load_dotenv(os.environ.get("COURSEHUB_ENV_FILE", ".env"))

from .admin import admin
from .db import db
from .seed import seed
from .serve import serve

@click.group()
def cli():
    pass

cli.add_command(admin,"admin")
cli.add_command(db,"db")
cli.add_command(seed,"seed")
cli.add_command(serve,"serve")

if __name__ == '__main__':
    cli()
