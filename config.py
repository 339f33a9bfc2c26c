import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored beside the code as turfslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "turfslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Slot inventory: days ahead that slots are generated for
    SLOT_HORIZON_DAYS = int(os.getenv("SLOT_HORIZON_DAYS", "7"))

    # Pricing / payment
    PLATFORM_FEE = int(os.getenv("PLATFORM_FEE", "20"))   # flat, once per batch
    CURRENCY = os.getenv("CURRENCY", "INR")

    # Cancellation policy: percent of price paid kept on cancel, rest refunded
    CANCELLATION_CHARGE_PERCENT = int(os.getenv("CANCELLATION_CHARGE_PERCENT", "20"))

    # Payment window for a PENDING batch (0 disables the timeout)
    PENDING_TTL_MINUTES = int(os.getenv("PENDING_TTL_MINUTES", "15"))

    # Basic app settings
    DEBUG = False
