"""
Django settings for the habit check-in backend.
"""
import os
from pathlib import Path
from dotenv import load_dotenv
import dj_database_url

# Load environment variables
load_dotenv()

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv('SECRET_KEY', 'django-insecure-change-me-in-production')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv('DEBUG', 'True') == 'True'

ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',')

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Third-party apps
    'django_q',  # Task queue
    'django_q2_email_backend',  # Email backend for Django Q

    # Local apps
    'core',
    'accounts',
    'habits',
    'checkins',
    'streaks',
    'health_check',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'core.middleware.ApiErrorMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'


# Database
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.getenv('PGDATABASE', 'habit_checkins_db'),
        'USER': os.getenv('PGUSER', 'postgres'),
        'PASSWORD': os.getenv('PGPASSWORD', 'postgres'),
        'HOST': os.getenv('PGHOST', 'localhost'),
        'PORT': os.getenv('PGPORT', '5432'),
    }
}

# Use DATABASE_URL if provided (for production)
if os.getenv('DATABASE_URL'):
    DATABASES['default'] = dj_database_url.parse(os.getenv('DATABASE_URL'))


# Internationalization
LANGUAGE_CODE = 'en-us'
# Day boundaries for check-ins and streaks are computed in this timezone.
TIME_ZONE = os.getenv('TIME_ZONE', 'UTC')
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# Media files (check-in photos when using the filesystem storage)
MEDIA_URL = os.getenv('MEDIA_URL', '/media/')
MEDIA_ROOT = BASE_DIR / 'media'

# Blob storage for check-in images. Swap the default backend for an
# S3/R2-compatible storage class in production.
STORAGES = {
    'default': {
        'BACKEND': os.getenv('DEFAULT_FILE_STORAGE_BACKEND', 'django.core.files.storage.FileSystemStorage'),
    },
    'staticfiles': {
        'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage',
    },
}

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'habit-checkins',
    }
}

# Identity provider (bearer token verification)
IDENTITY_TOKEN_ALGORITHMS = os.getenv('IDENTITY_TOKEN_ALGORITHMS', 'RS256').split(',')
IDENTITY_CERTS_URL = os.getenv(
    'IDENTITY_CERTS_URL',
    'https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com',
)
IDENTITY_PROJECT_ID = os.getenv('IDENTITY_PROJECT_ID', '')
IDENTITY_AUDIENCE = os.getenv('IDENTITY_AUDIENCE', IDENTITY_PROJECT_ID)
IDENTITY_ISSUER = os.getenv(
    'IDENTITY_ISSUER',
    f'https://securetoken.google.com/{IDENTITY_PROJECT_ID}' if IDENTITY_PROJECT_ID else '',
)
# Only used when IDENTITY_TOKEN_ALGORITHMS contains an HS* algorithm (local development).
IDENTITY_SHARED_SECRET = os.getenv('IDENTITY_SHARED_SECRET', '')
IDENTITY_CERTS_CACHE_SECONDS = int(os.getenv('IDENTITY_CERTS_CACHE_SECONDS', '3600'))

# AI provider (image verification and habit suggestions)
ANTHROPIC_API_KEY = os.getenv('ANTHROPIC_API_KEY')
AI_API_URL = os.getenv('AI_API_URL', 'https://api.anthropic.com/v1/messages')
AI_MODEL_ID = os.getenv('AI_MODEL_ID', 'claude-3-5-haiku-latest')
AI_TIMEOUT_SECONDS = int(os.getenv('AI_TIMEOUT_SECONDS', '30'))

# Check-ins
CHECKIN_MAX_IMAGE_BYTES = int(os.getenv('CHECKIN_MAX_IMAGE_BYTES', str(5 * 1024 * 1024)))
CHECKIN_ALLOWED_MIME_TYPES = ['image/jpeg', 'image/jpg', 'image/png', 'image/webp']
CHECKIN_PENDING_TTL_MINUTES = int(os.getenv('CHECKIN_PENDING_TTL_MINUTES', '30'))
CHECKIN_PAGE_SIZE = 30
CHECKIN_MAX_PAGE_SIZE = 100

# Streaks
STREAK_HISTORY_LIMIT = 50
LEADERBOARD_SIZE = 10

# Rate limiting (requests per window, per caller)
RATE_LIMIT_ENABLED = os.getenv('RATE_LIMIT_ENABLED', 'True') == 'True'
RATE_LIMIT_API_REQUESTS = int(os.getenv('RATE_LIMIT_API_REQUESTS', '100'))
RATE_LIMIT_API_WINDOW_SECONDS = 15 * 60
RATE_LIMIT_CHECKIN_REQUESTS = int(os.getenv('RATE_LIMIT_CHECKIN_REQUESTS', '100'))
RATE_LIMIT_CHECKIN_WINDOW_SECONDS = 24 * 60 * 60

# Reminders
HABIT_REMINDERS_ENABLED = os.getenv('HABIT_REMINDERS_ENABLED', 'True') == 'True'

# Email Configuration
EMAIL_BACKEND = os.getenv('EMAIL_BACKEND', 'django.core.mail.backends.console.EmailBackend')

EMAIL_HOST = os.getenv('EMAIL_HOST', '')
EMAIL_PORT = int(os.getenv('EMAIL_PORT', '587'))
EMAIL_USE_TLS = os.getenv('EMAIL_USE_TLS', 'True') == 'True'
EMAIL_HOST_USER = os.getenv('EMAIL_HOST_USER', '')
EMAIL_HOST_PASSWORD = os.getenv('EMAIL_HOST_PASSWORD', '')
DEFAULT_FROM_EMAIL = os.getenv('DEFAULT_FROM_EMAIL', 'noreply@example.com')

# Site URL
SITE_URL = os.getenv('SITE_URL', 'http://localhost:8000')

APP_VERSION = os.getenv('APP_VERSION', '1.0.0')

# Logging Configuration
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
APP_LOGGERS = ['core', 'accounts', 'habits', 'checkins', 'streaks', 'health_check']

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'level': LOG_LEVEL,
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'django': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
        **{name: {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False} for name in APP_LOGGERS},
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
}


# Django Q: reminder emails and deletion of replaced check-in images
Q_CLUSTER = {
    'name': 'habit_checkins',
    'workers': int(os.getenv('Q_WORKERS', '2')),
    'timeout': 60,
    'retry': 120,
    'max_attempts': 3,
    'save_limit': 100,
    'orm': 'default',  # Use Django ORM (Database) as the broker
}

# Django Q Email Setup
Q2_EMAIL_BACKEND = EMAIL_BACKEND  # The actual backend (SMTP/Console)
EMAIL_BACKEND = 'django_q2_email_backend.backends.Q2EmailBackend'  # The wrapper that queues emails

SENTRY_DSN = os.getenv("SENTRY_DSN", "")
if SENTRY_DSN != "":
    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[DjangoIntegration()],
        environment=os.getenv("SENTRY_ENVIRONMENT", "development"),
        release=APP_VERSION,
        send_default_pii=False,
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", 0.0)),
    )
