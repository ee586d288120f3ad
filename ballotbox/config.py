# ballotbox/config.py

import os


def _flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Application configuration, read from the environment."""

    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-me-in-production')

    # Storage
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///election.sqlite')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_INITIALIZE = _flag('AUTO_INITIALIZE', '1')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Admin credentials: plain comparison unless hashing is switched on
    HASH_ADMIN_SECRETS = _flag('HASH_ADMIN_SECRETS')

    # Origin marker written on audit entries
    AUDIT_ORIGIN = os.environ.get('AUDIT_ORIGIN', 'localhost')

    # Backups; key is 64 hex chars (32 bytes), optional
    BACKUP_OUTDIR = os.environ.get('BACKUP_OUTDIR', './backups')
    BACKUP_AES256_KEY = os.environ.get('BACKUP_AES256_KEY')

    # Best-effort replication
    SYNC_ENDPOINT_URL = os.environ.get('SYNC_ENDPOINT_URL')
    SYNC_INTERVAL_SECONDS = float(os.environ.get('SYNC_INTERVAL_SECONDS', '0'))
    SYNC_TIMEOUT_SECONDS = float(os.environ.get('SYNC_TIMEOUT_SECONDS', '5'))

    # Health
    MIN_FREE_DISK_GB = float(os.environ.get('MIN_FREE_DISK_GB', '0.1'))


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    AUTO_INITIALIZE = False
    HASH_ADMIN_SECRETS = False
    BACKUP_AES256_KEY = None
    SYNC_ENDPOINT_URL = None
    SYNC_INTERVAL_SECONDS = 0
    MIN_FREE_DISK_GB = 0
    LOG_LEVEL = 'DEBUG'
