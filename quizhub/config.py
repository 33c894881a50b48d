"""
Configuration module for the application.
All configuration values are read from environment variables
(a .env file is loaded by the package on import).
"""
import os
import secrets
import warnings


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name, "")
    return value.lower() == "true" if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "")
    return int(value) if value else default


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        # Flask Configuration
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "")
        self.FLASK_ENV: str = os.getenv("FLASK_ENV", "")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # Generate a development SECRET_KEY if not set and in development mode
        if not self.SECRET_KEY and self.FLASK_ENV != "production":
            self.SECRET_KEY = secrets.token_urlsafe(32)
            warnings.warn(
                "SECRET_KEY not set. Generated a temporary key for development. "
                "Set SECRET_KEY in your .env file for production!",
                UserWarning
            )

        # Database Configuration
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "")
        self.DB_USER: str = os.getenv("DB_USER", "")
        self.DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
        self.DB_HOST: str = os.getenv("DB_HOST", "")
        self.DB_PORT: str = os.getenv("DB_PORT", "3306")
        self.DB_NAME: str = os.getenv("DB_NAME", "")

        # API Configuration
        self.API_PREFIX: str = os.getenv("API_PREFIX", "/api")
        self.AUTH_API_PREFIX: str = os.getenv("AUTH_API_PREFIX", "/api/auth")

        # Password Validation
        self.MIN_PASSWORD_LENGTH: int = _env_int("MIN_PASSWORD_LENGTH", 8)
        self.BCRYPT_ROUNDS: int = _env_int("BCRYPT_ROUNDS", 12)

        # Quiz taking policy
        self.QUIZ_REQUIRE_PUBLISHED: bool = _env_bool("QUIZ_REQUIRE_PUBLISHED", False)

        # Listing
        self.DEFAULT_PAGE_SIZE: int = _env_int("DEFAULT_PAGE_SIZE", 20)
        self.MAX_PAGE_SIZE: int = _env_int("MAX_PAGE_SIZE", 100)

        # Session Configuration
        self.SESSION_COOKIE_SECURE: bool = _env_bool("SESSION_COOKIE_SECURE", False)
        self.SESSION_COOKIE_HTTPONLY: bool = _env_bool("SESSION_COOKIE_HTTPONLY", True)
        self.SESSION_COOKIE_SAMESITE: str = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")

        # SQLAlchemy Configuration
        self.SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
        self.SQLALCHEMY_ECHO: bool = _env_bool("SQLALCHEMY_ECHO", False)

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Construct database URI from environment variables."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_HOST and self.DB_NAME:
            return (
                f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
                f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset=utf8mb4"
            )
        return "sqlite:///quizhub.db"

    def validate(self) -> None:
        """
        Validate required configuration values.
        Only enforces SECRET_KEY in production environment.
        """
        if not self.SECRET_KEY and self.FLASK_ENV == "production":
            raise ValueError(
                "SECRET_KEY environment variable is required in production. "
                "Set it in your .env file or environment variables."
            )
        if self.MAX_PAGE_SIZE < 1 or self.DEFAULT_PAGE_SIZE < 1:
            raise ValueError("DEFAULT_PAGE_SIZE and MAX_PAGE_SIZE must be >= 1")


# Global config instance - will be re-initialized after load_dotenv()
config = Config()
