import logging
import os
from pathlib import Path
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_mail import Mail
from sqlalchemy import inspect
from dotenv import load_dotenv

# Load .env (dev/local only)
load_dotenv()

# ----- Create the app -----
app = Flask(__name__)
app.secret_key = os.getenv("SECRET_KEY", "instaclean-dev-secret")

# ----- Extensions (no app yet) -----
db = SQLAlchemy()
bcrypt = Bcrypt()
mail = Mail()

logger = logging.getLogger("instaclean")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _normalize_db_url(url: str) -> str:
    """Turn 'postgres://' into 'postgresql+psycopg2://' (Render/Supabase)."""
    if not url:
        return url
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


def _compute_sqlalchemy_uri() -> str:
    """
    DATABASE_URL wins when present (PostgreSQL in production).
    Otherwise fall back to SQLite in ./instance/instaclean.db (dev/tests).
    """
    env_url = os.getenv("DATABASE_URL", "").strip()
    if env_url:
        return _normalize_db_url(env_url)

    Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    sqlite_path = Path(app.instance_path) / "instaclean.db"
    return f"sqlite:///{sqlite_path.as_posix()}"


def _configure_logging():
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logger.setLevel(level)


# ----- Configuration before init_app -----
# Database
app.config["SQLALCHEMY_DATABASE_URI"] = _compute_sqlalchemy_uri()
app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

# Passwords
app.config["BCRYPT_LOG_ROUNDS"] = int(os.getenv("BCRYPT_LOG_ROUNDS", "12"))

# Mail (from .env only; no hard-coded credentials)
app.config["MAIL_SERVER"] = os.getenv("MAIL_SERVER", "smtp.gmail.com")
app.config["MAIL_PORT"] = int(os.getenv("MAIL_PORT", "587"))
app.config["MAIL_USE_TLS"] = _env_flag("MAIL_USE_TLS", "True")
app.config["MAIL_USERNAME"] = os.getenv("MAIL_USERNAME")
app.config["MAIL_PASSWORD"] = os.getenv("MAIL_PASSWORD")
# Falls back to the username; None disables notifications
app.config["MAIL_DEFAULT_SENDER"] = os.getenv("MAIL_DEFAULT_SENDER") or app.config.get("MAIL_USERNAME")
app.config["MAIL_SUPPRESS_SEND"] = _env_flag("MAIL_SUPPRESS_SEND", "False")

# Bookings
app.config["BOOKING_NUMBER_PREFIX"] = os.getenv("BOOKING_NUMBER_PREFIX", "IC")
app.config["BOOKING_NUMBER_ATTEMPTS"] = int(os.getenv("BOOKING_NUMBER_ATTEMPTS", "5"))
app.config["SEED_DATA"] = _env_flag("SEED_DATA", "True")

_configure_logging()

# ----- Bind extensions to the app -----
db.init_app(app)
bcrypt.init_app(app)
mail.init_app(app)

# Models and routes must be imported BEFORE creating tables / seeding
from instaclean.models import PropertyType, Service, User  # noqa: E402
from instaclean import routes  # noqa: E402
from instaclean.auth import routes as auth_routes  # noqa: E402,F401


SERVICES_SEED = [
    (1, "Standard Cleaning", "Our regular cleaning service includes dusting, vacuuming, mopping, bathroom cleaning, and kitchen cleaning. Perfect for weekly or bi-weekly maintenance.", 99, 120),
    (2, "Deep Cleaning", "A thorough top-to-bottom clean including everything in standard cleaning plus inside appliances, baseboards, window sills, and detailed scrubbing.", 199, 240),
    (3, "Move In/Out Cleaning", "Comprehensive cleaning for empty properties. Includes everything in deep cleaning plus inside cabinets, closets, and garage cleaning.", 299, 360),
    (4, "Office Cleaning", "Professional cleaning for offices and commercial spaces. Includes desk cleaning, trash removal, restroom sanitization, and floor care.", 149, 180),
    (5, "Post-Construction Cleaning", "Specialized cleaning after renovations or construction. Removes dust, debris, and construction materials to make your space move-in ready.", 399, 480),
    (6, "Event Cleaning", "Pre and post-event cleaning services for parties, weddings, corporate events, and gatherings. Available on short notice.", 249, 240),
]

PROPERTY_TYPES_SEED = [
    ("House", "Single-family home", "house"),
    ("Apartment/Condo", "Apartment or condominium unit", "building"),
    ("Office", "Commercial office space", "briefcase"),
    ("Church", "Church or place of worship", "church"),
    ("Restaurant", "Restaurant or food service establishment", "utensils"),
    ("Event Venue", "Event space or banquet hall", "tent"),
    ("Retail Store", "Retail or shop space", "store"),
]

STAFF_SEED = [
    ("maria@instacleaning.com", "Maria Rodriguez", "(555) 111-1111"),
    ("james@instacleaning.com", "James Wilson", "(555) 222-2222"),
]


def create_tables_if_sqlite():
    """Create tables automatically ONLY when running on SQLite (dev/tests)."""
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:"):
        db.create_all()


def seed_initial_data():
    """
    Insert the base catalog and accounts when:
    - the 'services', 'property_types' and 'users' tables exist
    - and base rows are missing (idempotent)
    Works with SQLite / PostgreSQL.
    """
    insp = inspect(db.engine)

    # Tables not there yet (e.g. Postgres before migrating): nothing to do.
    if not all(insp.has_table(name) for name in ("services", "property_types", "users")):
        return

    need_commit = False

    # --- Services ---
    for sid, name, description, price, duration in SERVICES_SEED:
        if db.session.get(Service, sid) is None:
            db.session.add(Service(
                id=sid,
                name=name,
                description=description,
                base_price=price,
                price_unit="flat rate",
                duration=duration,
                is_active=True,
            ))
            need_commit = True

    # --- Property types ---
    for name, description, icon in PROPERTY_TYPES_SEED:
        if not PropertyType.query.filter_by(name=name).first():
            db.session.add(PropertyType(name=name, description=description, icon=icon))
            need_commit = True

    # --- Admin account ---
    admin_email = os.getenv("ADMIN_EMAIL", "admin@instacleaning.com")
    if not User.query.filter_by(email=admin_email).first():
        db.session.add(User(
            name=os.getenv("ADMIN_NAME", "Admin User"),
            email=admin_email,
            phone="(555) 000-0000",
            password=bcrypt.generate_password_hash(os.getenv("ADMIN_PASSWORD", "admin123")).decode(),
            role="ADMIN",
        ))
        need_commit = True

    # --- Sample staff ---
    staff_password = None
    for email, name, phone in STAFF_SEED:
        if not User.query.filter_by(email=email).first():
            if staff_password is None:
                staff_password = bcrypt.generate_password_hash(os.getenv("STAFF_PASSWORD", "staff123")).decode()
            db.session.add(User(name=name, email=email, phone=phone, password=staff_password, role="STAFF"))
            need_commit = True

    if need_commit:
        db.session.commit()
        logger.info("Seeded initial catalog and accounts")


with app.app_context():
    # 1) Create tables automatically on SQLite (dev)
    create_tables_if_sqlite()
    # 2) Seed initial data when the tables exist (SQLite or Postgres)
    if app.config["SEED_DATA"]:
        seed_initial_data()
