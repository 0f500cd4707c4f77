"""
CLI Commands for the rewards backend.

Usage:
    flask rewards seed                      # Demo mason, dealer, batch and coupons
    flask rewards generate-coupons --batch-id 1 --quantity 100 --points 10

    flask db upgrade                        # Flask-Migrate
"""
from .rewards import init_app as init_rewards_commands


def init_app(app):
    """Register all CLI commands with the Flask app."""
    init_rewards_commands(app)
