"""
Gunicorn configuration.

Sync workers: each request holds one database connection and at most one
row lock for the duration of its transaction.
"""
import os

bind = f"0.0.0.0:{os.getenv('PORT', '3000')}"

# Worker configuration
workers = int(os.getenv('GUNICORN_WORKERS', '2'))
worker_class = 'sync'
timeout = 60
keepalive = 5

# Logging
accesslog = '-'  # stdout
errorlog = '-'   # stderr
loglevel = os.getenv('LOG_LEVEL', 'info')
capture_output = True

proc_name = 'caceasy-rewards'

# Don't fork with an open connection pool
preload_app = False

graceful_timeout = 30


def on_starting(server):
    server.log.info("Starting CacEasy rewards server...")


def on_exit(server):
    server.log.info("CacEasy rewards server shutting down...")
