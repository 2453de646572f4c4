"""
Flask CLI commands for operators and cron
"""

import json
import logging

import click
from flask.cli import with_appcontext

logger = logging.getLogger(__name__)


@click.command('sweep-expired-holds')
@click.option('--service-id', default=None, help='Only sweep soft holds of this service.')
@with_appcontext
def sweep_expired_holds_command(service_id):
    """Cancel soft holds whose expiry has passed."""
    from availability_service.services import ReservationService

    summary = ReservationService().sweep_expired_holds(service_id)
    click.echo(json.dumps(summary))
    if summary['error_count']:
        raise SystemExit(1)


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create all tables without running migrations."""
    from availability_service.database import db

    db.create_all()
    click.echo('Database tables created')


def register_commands(app):
    app.cli.add_command(sweep_expired_holds_command)
    app.cli.add_command(init_db_command)
