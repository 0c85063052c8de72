import os

# Must be set before config.settings is imported by any test module
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PUBLIC_BASE_URL", "https://apply.example.com")
