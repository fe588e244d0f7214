from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()

# лимиты берутся из конфига (RATELIMIT_*) в create_app
limiter = Limiter(key_func=get_remote_address)
