from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Needed to create storage buckets

    # Storage buckets
    selfies_bucket: str = "selfies"
    selfie_max_bytes: int = 2 * 1024 * 1024
    group_photos_bucket: str = "group-photos"
    group_photos_prefix: str = "auto"

    # AWS Rekognition (will read from uppercase env vars automatically)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    face_match_threshold: float = 70.0

    # Game
    globals_row_id: int = 1
    question_policy: str = "first"  # first | last: which slots of a short group take extra questions
    qr_expected_payload: str = "This is the final checkpoint"
    final_assembly_solution: str = ""  # comma separated; empty means the hint answers in id order

    # App
    app_name: str = "icebreaker-hunt"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_final_assembly_solution(self) -> List[str]:
        return [a.strip() for a in self.final_assembly_solution.split(",") if a.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
