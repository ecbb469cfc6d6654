"""Configuration management for famchart.

Loads layout settings from environment variables (``FAMCHART_`` prefix) and
maps them onto the engine config objects.
"""

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from famchart.fan_chart import FanChartConfig
from famchart.pedigree import PedigreeConfig
from famchart.timeline import TimelineConfig

# Load .env file if it exists
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FAMCHART_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Pedigree
    node_width: float = Field(default=200.0, gt=0)
    node_height: float = Field(default=64.0, gt=0)
    horizontal_gap: float = Field(default=80.0, ge=0)
    row_gap: float = Field(default=18.0, ge=0)
    cluster_gap: float = Field(default=24.0, ge=0)
    padding: float = Field(default=100.0, ge=0)
    sweep_count: int = Field(default=8, ge=0)

    # Fan chart
    root_radius: float = Field(default=70.0, gt=0)
    ring_width: float = Field(default=78.0, gt=0)

    # Timeline
    event_gap: float = Field(default=3.0, ge=0)
    person_gap: float = Field(default=2.0, ge=0)
    future_buffer: int = Field(default=25, ge=0)
    label_chars_per_year: float = Field(default=3.0, gt=0)

    # Output
    output_dir: Path = Path("./charts")

    def pedigree_config(self) -> PedigreeConfig:
        return PedigreeConfig(
            node_width=self.node_width,
            node_height=self.node_height,
            horizontal_gap=self.horizontal_gap,
            row_gap=self.row_gap,
            cluster_gap=self.cluster_gap,
            padding=self.padding,
            sweep_count=self.sweep_count,
        )

    def fan_chart_config(self) -> FanChartConfig:
        return FanChartConfig(root_radius=self.root_radius, ring_width=self.ring_width)

    def timeline_config(self) -> TimelineConfig:
        return TimelineConfig(
            event_gap=self.event_gap,
            person_gap=self.person_gap,
            future_buffer=self.future_buffer,
            label_chars_per_year=self.label_chars_per_year,
        )


# Global settings instance
settings = Settings()
