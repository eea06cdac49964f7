import os

# Ensure configuration never points at real services during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("OPTIMIZER_BASE_URL", "http://optimizer")
os.environ.setdefault("REFRESH_SLEEP_SECONDS", "0")
os.environ.setdefault("REVIEWS_SETTLE_MS", "0")
