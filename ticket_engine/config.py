from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    code_version: str = "v1.0.0"
    default_variant: str = "lotofacil"
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000"

    # Retry / pass ceilings
    max_ticket_attempts: int = 2000
    max_allocation_attempts: int = 200
    quota_sampling_attempts: int = 200
    optimizer_max_passes: int = 200

    # Score subtracted from numbers already used perNumberCap times in a batch
    over_cap_penalty: float = 10.0

    random_seed: Optional[int] = None

    class Config:
        env_file = ".env"
        env_prefix = "TICKET_ENGINE_"


settings = Settings()
