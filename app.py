import click
from flask import Flask
from flask_migrate import Migrate

from config import Config
from models import db
from services import api
from services.clock import now as clock_now
from services.errors import BookingError
from services.turfs import extend_horizon


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    register_cli(app)

    return app

#-------------------------

def register_cli(app):
    @app.cli.command("sweep-bookings")
    def sweep_bookings():
        """Expire elapsed CONFIRMED bookings and fail timed-out PENDING ones."""
        body, status = api.sweep()
        if status != 200:
            raise click.ClickException(body["error"])
        click.echo(f"expired={len(body['expired'])} failed={len(body['failed'])}")

    @app.cli.command("generate-slots")
    @click.option("--days", type=int, default=None, help="Horizon in days (defaults to SLOT_HORIZON_DAYS).")
    @click.option("--start", "start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
                  help="First date, YYYY-MM-DD (defaults to today).")
    def generate_slots(days, start):
        """Create missing slots for every approved turf over the rolling horizon."""
        first_day = start.date() if start else clock_now().date()
        try:
            created = extend_horizon(first_day, days)
        except BookingError as exc:
            db.session.rollback()
            raise click.ClickException(exc.message)
        click.echo(f"created={created}")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
