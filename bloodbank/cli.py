import click
from flask import current_app
from flask.cli import with_appcontext
from bloodbank.extensions import db
from bloodbank.errors import BloodBankError
from bloodbank.models import Facility, BloodStock, BLOOD_GROUPS, MAX_INTEGER
from bloodbank.utils import format_timestamp
from bloodbank import services


def init_cli(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(create_facility_command)
    app.cli.add_command(add_stock_command)
    app.cli.add_command(stock_report_command)


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Initialize database tables"""
    db.drop_all()
    db.create_all()
    click.echo("Database tables created fresh.")


@click.command("create-facility")
@click.option('--name', required=True, help='Facility name')
@click.option('--email', required=True, help='Login email')
@click.option('--password', required=True, help='Login password')
@click.option('--role', type=click.Choice(Facility.ROLES), required=True)
@click.option('--phone', default=None, help='Contact phone')
@click.option('--address', default=None, help='Street address')
@with_appcontext
def create_facility_command(name, email, password, role, phone, address):
    """Create a hospital or blood lab account"""
    if Facility.query.filter_by(email=email.strip().lower()).first():
        click.echo(f"Facility '{email}' already exists")
        return

    facility = Facility(
        name=name,
        email=email,
        role=role,
        phone=phone,
        address=address
    )
    facility.set_password(password)

    db.session.add(facility)
    try:
        db.session.commit()
        click.echo(f"Created {role} '{name}' with id {facility.id}")
    except Exception as e:
        db.session.rollback()
        click.echo(f"Error creating facility: {str(e)}", err=True)


@click.command("add-stock")
@click.option('--email', required=True, help='Facility email')
@click.option('--group', 'blood_group', type=click.Choice(BLOOD_GROUPS), required=True)
@click.option('--units', type=click.IntRange(min=1, max=MAX_INTEGER), required=True)
@with_appcontext
def add_stock_command(email, blood_group, units):
    """Add blood units to a facility's stock"""
    facility = Facility.query.filter_by(email=email.strip().lower()).first()
    if not facility:
        click.echo(f"No facility with email '{email}'", err=True)
        return

    try:
        record = services.add_stock(facility, blood_group, units)
    except BloodBankError as e:
        click.echo(f"Error adding stock: {e.message}", err=True)
        return
    click.echo(f"{facility.name}: {blood_group} now {record.quantity} units")


@click.command("stock-report")
@click.option('--email', required=True, help='Facility email')
@with_appcontext
def stock_report_command(email):
    """Print a facility's stock for every blood group"""
    facility = Facility.query.filter_by(email=email.strip().lower()).first()
    if not facility:
        click.echo(f"No facility with email '{email}'", err=True)
        return

    tz_name = current_app.config.get('TIMEZONE', 'UTC')
    records = {r.blood_group: r for r in facility.stock}

    click.echo(f"Stock report for {facility.name} ({facility.role})")
    for group in BLOOD_GROUPS:
        record = records.get(group)
        if record:
            updated = format_timestamp(record.updated_at, tz_name)
            click.echo(f"{group:>4}: {record.quantity:>5}  (updated {updated})")
        else:
            click.echo(f"{group:>4}: {0:>5}")
