"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Tuple

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import WorkingHours
from .domain.payroll import PayrollPolicy
from .domain.tax import TaxPolicy


class StoreConfig(BaseModel):
    """Entity store connection settings."""
    base_url: str = ""
    api_key: str = ""
    timeout_seconds: float = 30

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value


class SchedulingConfig(BaseModel):
    """Lesson slot settings."""
    start_hour: int = 8
    end_hour: int = 20
    slot_minutes: int = 60

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 24."""
        if not 0 <= v <= 24:
            raise ValueError(f"Hour must be between 0 and 24, got {v}")
        return v

    @field_validator("slot_minutes")
    @classmethod
    def validate_slot_minutes(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("slot_minutes must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "SchedulingConfig":
        """Ensure the configured window opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self


class BonusTier(BaseModel):
    threshold: float
    bonus: float


class PayrollConfig(BaseModel):
    """Commission, bonus and withholding settings."""
    default_commission_rate: float = 30.0
    hours_per_lesson: float = 1.5
    performance_tiers: List[BonusTier] = Field(
        default_factory=lambda: [
            BonusTier(threshold=10000, bonus=200),
            BonusTier(threshold=8000, bonus=150),
            BonusTier(threshold=5000, bonus=100),
        ]
    )
    quality_rating_threshold: float = 4.8
    quality_bonus: float = 50.0
    tax_rate: float = 0.20
    ni_rate: float = 0.12

    @field_validator("default_commission_rate")
    @classmethod
    def validate_commission_rate(cls, value: float) -> float:
        if not 0 <= value <= 100:
            raise ValueError(f"default_commission_rate must be between 0 and 100, got {value}")
        return value

    @field_validator("tax_rate", "ni_rate")
    @classmethod
    def validate_fraction(cls, value: float) -> float:
        if not 0 <= value < 1:
            raise ValueError(f"Withholding rates are fractions between 0 and 1, got {value}")
        return value


class TaxSettings(BaseModel):
    """VAT defaults used when the store has no TaxConfig record."""
    default_standard_rate: float = 20.0
    filing_offset_days: int = 30
    urgent_window_days: int = 7

    @field_validator("default_standard_rate")
    @classmethod
    def validate_rate(cls, value: float) -> float:
        if not 0 <= value <= 100:
            raise ValueError(f"default_standard_rate must be between 0 and 100, got {value}")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    store: StoreConfig = Field(default_factory=StoreConfig)
    timezone: str = "Europe/Dublin"
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    payroll: PayrollConfig = Field(default_factory=PayrollConfig)
    tax: TaxSettings = Field(default_factory=TaxSettings)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def to_working_hours(self) -> WorkingHours:
        return WorkingHours(
            start_hour=self.scheduling.start_hour,
            end_hour=self.scheduling.end_hour,
            slot_minutes=self.scheduling.slot_minutes,
            timezone=self.timezone,
        )

    def to_payroll_policy(self) -> PayrollPolicy:
        tiers: Tuple[Tuple[float, float], ...] = tuple(
            (tier.threshold, tier.bonus) for tier in self.payroll.performance_tiers
        )
        return PayrollPolicy(
            default_commission_rate=self.payroll.default_commission_rate,
            hours_per_lesson=self.payroll.hours_per_lesson,
            performance_tiers=tiers,
            quality_rating_threshold=self.payroll.quality_rating_threshold,
            quality_bonus=self.payroll.quality_bonus,
            tax_rate=self.payroll.tax_rate,
            ni_rate=self.payroll.ni_rate,
        )

    def to_tax_policy(self) -> TaxPolicy:
        return TaxPolicy(
            default_standard_rate=self.tax.default_standard_rate,
            filing_offset_days=self.tax.filing_offset_days,
            urgent_window_days=self.tax.urgent_window_days,
        )


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
