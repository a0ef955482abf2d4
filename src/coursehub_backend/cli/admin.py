import click
from pydantic import ValidationError

from coursehub_backend.api.exceptions import BadRequestException
from coursehub_backend.database import get_db
from coursehub_backend.interface.users import UserCreate
from coursehub_backend.model.auth import UserRole
from coursehub_backend.repositories import UserRepository
from coursehub_backend.services.users import UserService

@click.command()
@click.option("--email", "-e", "email", prompt=True)
@click.option("--given-name", "given_name", default=None)
@click.option("--family-name", "family_name", default=None)
@click.option("--force", is_flag=True, help="Create another super admin even if one exists")
def bootstrap(email, given_name, family_name, force):
    """Create a super admin. This is the only way one comes into existence."""

    try:
        payload = UserCreate(email=email, given_name=given_name, family_name=family_name)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint="--email")

    with next(get_db()) as db:
        if not force and UserRepository(db).exists_with_role(UserRole.super_admin):
            raise click.ClickException("A super admin already exists, use --force to add another")

        try:
            user = UserService(db).bootstrap_super_admin(payload)
        except BadRequestException as e:
            raise click.ClickException(str(e.detail))

    click.echo(click.style(f"Created super admin {user.email} ({user.id})", fg="green"))

@click.group()
def admin():
    pass

admin.add_command(bootstrap,"bootstrap")
