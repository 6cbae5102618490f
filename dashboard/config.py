import os
import logging
from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw.strip())


class Config:
    # In-memory store (SQLAlchemy URL). Nothing is persisted between runs.
    STORE_URL = os.getenv("STORE_URL", "sqlite+aiosqlite:///:memory:")

    # Simulated API latency, milliseconds
    LATENCY_MIN_MS = _int_env("LATENCY_MIN_MS", 100)
    LATENCY_MAX_MS = _int_env("LATENCY_MAX_MS", 200)
    if LATENCY_MIN_MS > LATENCY_MAX_MS:
        raise ValueError(
            f"LATENCY_MIN_MS ({LATENCY_MIN_MS}) must not exceed LATENCY_MAX_MS ({LATENCY_MAX_MS})"
        )

    # Mock data generation
    MOCK_SEED = _int_env("MOCK_SEED", None)  # None = different data every run
    MOCK_TENANT_COUNT = _int_env("MOCK_TENANT_COUNT", 100)
    MOCK_SUBSCRIPTION_COUNT = _int_env("MOCK_SUBSCRIPTION_COUNT", 100)

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def is_memory_store(self) -> bool:
        return ":memory:" in self.STORE_URL

config = Config()

logging.info(f"Store: {'in-memory' if config.is_memory_store else config.STORE_URL}")
logging.info(f"Simulated latency: {config.LATENCY_MIN_MS}-{config.LATENCY_MAX_MS} ms")
