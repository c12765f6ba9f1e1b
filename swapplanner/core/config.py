from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

from swapplanner.schemas.config import AssignmentStrategy, PlannerConfig


class Settings(BaseSettings):
    # App Config
    PROJECT_NAME: str = "SwapPlanner"
    ENVIRONMENT: Literal["dev", "prod"] = "dev"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    # Planner defaults (used when a request carries no config)
    DEFAULT_SLOT_CAPACITY: int = 4
    DEFAULT_STRATEGY: AssignmentStrategy = AssignmentStrategy.INTERVAL
    DEFAULT_SLOTS_PER_UNIT: int = 4
    DEFAULT_MAX_COLORS_PER_SLOT: int = 4
    DEFAULT_AFFINITY_THRESHOLD: float = 20.0
    DEFAULT_BUFFER_LAYERS: int = 2
    DEFAULT_MAX_VISUAL_DISTANCE: float = 25.0
    DEFAULT_SECONDS_PER_SWAP: int = 30

    def planner_config(self) -> PlannerConfig:
        """Builds the planner configuration from the environment defaults."""
        return PlannerConfig(
            capacity=self.DEFAULT_SLOT_CAPACITY,
            strategy=self.DEFAULT_STRATEGY,
            slots_per_unit=self.DEFAULT_SLOTS_PER_UNIT,
            max_colors_per_slot=self.DEFAULT_MAX_COLORS_PER_SLOT,
            affinity_threshold=self.DEFAULT_AFFINITY_THRESHOLD,
            buffer_layers=self.DEFAULT_BUFFER_LAYERS,
            max_visual_distance=self.DEFAULT_MAX_VISUAL_DISTANCE,
            seconds_per_swap=self.DEFAULT_SECONDS_PER_SWAP,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


# Globally accessible settings instance (HTTP surface only; the planner core takes explicit config)
settings = Settings()
