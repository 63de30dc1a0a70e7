import os

# app.py reads its configuration at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-that-is-long-enough-for-hs256")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("NEED_WORKFLOW", "dispatch")
