# worktrack/config/settings.py
# Runtime configuration for the work log backend

import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings read from the environment"""

    # "production" dispatches notification mail in a background thread
    ENVIRONMENT = os.getenv('ENVIRONMENT', 'development')

    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///./worktrack.db')

    # JWT settings
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me-in-production')
    ALGORITHM = os.getenv('ALGORITHM', 'HS256')
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv('ACCESS_TOKEN_EXPIRE_MINUTES', 60 * 24))

    # Outgoing notification mail
    MAIL = {
        'backend': os.getenv('MAIL_BACKEND', 'smtp'),  # smtp, console or memory
        'host': os.getenv('SMTP_HOST', 'localhost'),
        'port': int(os.getenv('SMTP_PORT', 25)),
        'username': os.getenv('SMTP_USERNAME', ''),
        'password': os.getenv('SMTP_PASSWORD', ''),
        'use_tls': os.getenv('SMTP_USE_TLS', 'false').lower() == 'true',
        'timeout': int(os.getenv('SMTP_TIMEOUT', 30)),
        'from_email': os.getenv('MAIL_FROM', 'notifications@worktrack.local'),
        'subject_prefix': os.getenv('MAIL_SUBJECT_PREFIX', '[Worktrack]'),
    }

    # uvicorn runner (start_server.py)
    SERVER = {
        'host': os.getenv('HOST', '0.0.0.0'),
        'port': int(os.getenv('PORT', 8000)),
        'reload': os.getenv('RELOAD', 'false').lower() == 'true',
        'log_level': os.getenv('LOG_LEVEL', 'info'),
    }

    # Periodic sweep of deliveries left queued by a failed batch
    SCHEDULER = {
        'enabled': os.getenv('SCHEDULER_ENABLED', 'true').lower() == 'true',
        'sweep_interval_minutes': int(os.getenv('DELIVERY_SWEEP_MINUTES', 10)),
        'stale_after_minutes': int(os.getenv('DELIVERY_STALE_MINUTES', 15)),
    }

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == 'production'


settings = Settings()
