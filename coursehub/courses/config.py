"""
Course System Configuration
Store connection, identity and progress policy settings
"""

import os

# MongoDB
MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "coursehub_db")

# Identity (shared secret with the auth provider)
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
JWT_ALGORITHM = "HS256"
ADMIN_ROLE = os.getenv("ADMIN_ROLE", "PROGRAMADOR")

# Quiz policy
QUIZ_PASS_THRESHOLD = float(os.getenv("QUIZ_PASS_THRESHOLD", "70"))

# Store timeouts
STORE_TIMEOUT_MS = int(os.getenv("STORE_TIMEOUT_MS", "5000"))
