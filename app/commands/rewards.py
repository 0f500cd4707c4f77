"""
CLI Commands for provisioning.

# Demo data for a fresh database
flask rewards seed

# Mint coupons for an existing batch
flask rewards generate-coupons --batch-id=1 --quantity=500 --points=10 --prefix=CEM
"""

import click
from flask.cli import with_appcontext
from ..extensions import db
from ..models import User, Dealer
from ..services.coupon_service import CouponService
from ..utils.exceptions import RewardsError


@click.group('rewards')
def rewards_cli():
    """Coupon and demo data commands."""
    pass


@rewards_cli.command('seed')
@click.option('--coupons', default=10, show_default=True, help='Coupons to mint for the demo batch')
@click.option('--points', default=100, show_default=True, help='Points per demo coupon')
@with_appcontext
def seed(coupons, points):
    """
    Create a demo mason, dealer and batch with coupons.

    Does nothing if the database already has users.
    """
    if User.query.count() > 0:
        click.echo("Database already seeded.")
        return

    mason = User(phone='+919800000001', name='Test Mason', email='test@example.com')
    dealer = Dealer(name='Demo Hardware', phone='+919800000002', gst='27AAAAA0000A1Z5')
    db.session.add_all([mason, dealer])
    db.session.commit()
    click.echo(f"Created mason {mason.id} ({mason.phone})")
    click.echo(f"Created dealer {dealer.id} ({dealer.phone})")

    service = CouponService()
    batch = service.create_batch('Demo Batch', 'DEMO-001', points_per_coupon=points, quantity=coupons)
    minted = service.generate_coupons(batch.id, coupons, points, prefix='DEMO')
    click.echo(f"Created batch {batch.id} with {len(minted)} coupons")

    for coupon in minted:
        click.echo(f"  {coupon.token}")


@rewards_cli.command('generate-coupons')
@click.option('--batch-id', type=int, required=True, help='Batch to mint coupons for')
@click.option('--quantity', type=int, required=True, help='Number of coupons (1-10000)')
@click.option('--points', type=int, required=True, help='Points per coupon')
@click.option('--prefix', default=None, help='Token prefix')
@click.option('--output', type=click.File('w'), default=None, help='Write tokens to a file instead of stdout')
@with_appcontext
def generate_coupons(batch_id, quantity, points, prefix, output):
    """Mint coupons and print their tokens, one per line."""
    try:
        minted = CouponService().generate_coupons(batch_id, quantity, points, prefix=prefix)
    except RewardsError as e:
        raise click.ClickException(e.message)

    for coupon in minted:
        click.echo(coupon.token, file=output)

    click.echo(f"Generated {len(minted)} coupons for batch {batch_id}", err=True)


def init_app(app):
    """Register rewards commands with the Flask app."""
    app.cli.add_command(rewards_cli)
