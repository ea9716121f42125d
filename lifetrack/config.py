from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    default_tz: str = "UTC"  # naive timestamps are read in this zone
    lifetrack_api_key: str | None = None
    log_level: str = "INFO"

    # Social goal defaults
    goals_family_contact_days_per_week: float = 3.0
    goals_friend_contact_days_per_week: float = 2.0
    goals_kat_smile_percentage: float = 70.0
    goals_kat_reviews_per_month: float = 4.0
    goals_new_phone_numbers_target: float = 5.0
    goals_new_hangouts_target: float = 2.0

    # Wellbeing goal defaults
    goals_journaling_percentage: float = 60.0
    goals_meditation_percentage: float = 50.0
    goals_epic_activities_per_month: float = 4.0

    # Health goal defaults
    goals_strength_challenge_target: float = 400.0
    goals_sleep_on_time_percentage: float = 90.0

    # Productivity goal defaults
    goals_language_days_percentage: float = 50.0
    goals_math_days_percentage: float = 50.0
    goals_code_days_percentage: float = 50.0
    goals_lessons_per_month: float = 4.0

    # Cardio training load (load = minutes * bpm / 100)
    cardio_default_duration_min: float = 30.0
    cardio_default_heart_rate: float = 130.0
    cardio_load_window_days: int = 7

    # Projection / trajectory
    projection_needed_rate_tolerance: float = 0.1
    trajectory_on_track_tolerance: float = 0.5
    trajectory_initial_fallback_ratio: float = 0.9  # initial = target * ratio when no history
    trends_min_periods: int = 2

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
