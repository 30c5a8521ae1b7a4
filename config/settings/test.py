from .base import *

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'test_db.sqlite3',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.InMemoryStorage',
    },
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}

# Run queued tasks inline.
Q_CLUSTER = {
    'name': 'habit_checkins_test',
    'sync': True,
    'timeout': 60,
    'retry': 120,
    'orm': 'default',
}

Q2_EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

ANTHROPIC_API_KEY = None

IDENTITY_TOKEN_ALGORITHMS = ['HS256']
IDENTITY_SHARED_SECRET = 'test-identity-secret'
IDENTITY_AUDIENCE = 'habit-checkins-test'
IDENTITY_ISSUER = 'https://identity.test'

RATE_LIMIT_ENABLED = False

LOGGING['root']['level'] = 'WARNING'
for _logger in LOGGING['loggers'].values():
    _logger['level'] = 'WARNING'
