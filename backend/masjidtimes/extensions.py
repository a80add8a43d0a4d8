# masjidtimes/extensions.py

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# SQLAlchemy extension
db = SQLAlchemy()

# Migrate extension (for DB migrations)
migrate = Migrate()

# Limiter extension (rate limiting); the default can be overridden per route
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"]
)
