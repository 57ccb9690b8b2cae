import click

from .extensions import db
from .helpers.phone import normalize_phone
from .models import User


@click.command("create-admin")
@click.option("--phone", required=True)
@click.option("--name", required=True)
def create_admin(phone, name):
    phone = normalize_phone(phone)
    user = User.query.filter_by(phone=phone).first()
    if user:
        user.role = "admin"
        db.session.commit()
        click.echo(f"Promoted to admin: {user.id} {user.phone}")
        return
    user = User(name=name, phone=phone, role="admin")
    db.session.add(user)
    db.session.commit()
    click.echo(f"Admin created: {user.id} {user.phone}")


def register_cli(app):
    app.cli.add_command(create_admin)
