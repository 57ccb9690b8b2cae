import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


def _flag(name, default="False"):
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "default-secret")
    FLASK_ENV = os.getenv("FLASK_ENV", "development")

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///academy.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Auth
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-secret")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv("JWT_ACCESS_TOKEN_HOURS", 24)))
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=int(os.getenv("JWT_REFRESH_TOKEN_DAYS", 30)))
    REGISTRATION_TOKEN_MINUTES = int(os.getenv("REGISTRATION_TOKEN_MINUTES", 15))

    # Payment Gateway
    RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
    RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")
    RAZORPAY_BASE_URL = os.getenv("RAZORPAY_BASE_URL", "https://api.razorpay.com/v1")
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR")

    # Refund the claimed coupon use when a later coupon check rejects the order
    COUPON_REFUND_ON_REJECT = _flag("COUPON_REFUND_ON_REJECT")

    # OTP (Twilio Verify)
    TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
    TWILIO_VERIFY_SERVICE_SID = os.getenv("TWILIO_VERIFY_SERVICE_SID")
    TWILIO_VERIFY_BASE_URL = os.getenv("TWILIO_VERIFY_BASE_URL", "https://verify.twilio.com/v2")
    PHONE_COUNTRY_CODE = os.getenv("PHONE_COUNTRY_CODE", "91")

    HTTP_TIMEOUT = int(os.getenv("HTTP_TIMEOUT", 10))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    RAZORPAY_KEY_ID = "rzp_test_key"
    RAZORPAY_KEY_SECRET = "rzp_test_secret"
    TWILIO_ACCOUNT_SID = "ACtest"
    TWILIO_AUTH_TOKEN = "twilio-test-token"
    TWILIO_VERIFY_SERVICE_SID = "VAtest"
    COUPON_REFUND_ON_REJECT = False
