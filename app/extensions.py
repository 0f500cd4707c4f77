"""
Flask extensions initialization.
"""
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Database
db = SQLAlchemy()

# Migrations
migrate = Migrate()

# Rate limiting (storage configured via RATELIMIT_STORAGE_URI)
limiter = Limiter(key_func=get_remote_address)
