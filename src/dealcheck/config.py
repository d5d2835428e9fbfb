"""
Configuration management (SSOT).

This module defines ALL configuration for dealcheck.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- Every tolerance is a Decimal (YAML floats go through str() first)
- Absolute tolerances are dollars, percent tolerances are fractions (0.05 = 5%)
- The per-rule cross-document thresholds are fixed code, not config
"""

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from .verification.review_gate import GateTolerances, Tolerance

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


def _to_decimal(value: Any, key: str) -> Decimal:
    """Convert a YAML scalar to Decimal via str() so floats keep their written form."""
    if isinstance(value, bool):
        raise ConfigValidationError(f"{key} must be a number, got {value!r}")
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ConfigValidationError(f"{key} must be a number, got {value!r}") from None
    if not number.is_finite():
        raise ConfigValidationError(f"{key} must be a finite number, got {value!r}")
    return number


def _env_decimal(name: str, default: Decimal) -> Decimal:
    """Decimal from an environment variable; unparseable values keep the default."""
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        number = Decimal(raw.strip())
    except InvalidOperation:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if not number.is_finite():
        logger.warning("Ignoring %s=%r: not a finite number", name, raw)
        return default
    return number


@dataclass
class ToleranceConfig:
    """A secondary (gate) tolerance: absolute dollars AND relative fraction."""

    absolute: Decimal
    percent: Decimal

    def to_tolerance(self) -> Tolerance:
        return Tolerance(absolute=self.absolute, percent=self.percent)


@dataclass
class CrossDocumentConfig:
    """Cross-document reconciliation settings."""

    # Differences up to this many dollars always pass
    absolute_tolerance: Decimal = Decimal("1")


@dataclass
class ArithmeticConfig:
    """Arithmetic self-consistency settings."""

    # Rounding allowance for "actual should equal expected"
    absolute_tolerance: Decimal = Decimal("1")


@dataclass
class OcrComparisonConfig:
    """OCR-vs-structured comparison settings."""

    # OCR and structured values within this many dollars agree
    match_tolerance: Decimal = Decimal("1")


@dataclass
class GateConfig:
    """Review gate secondary tolerances (SSOT).

    A failed check is auto-passed when its discrepancy is within BOTH the
    absolute and the percent bound of its category.
    """

    arithmetic: ToleranceConfig = field(
        default_factory=lambda: ToleranceConfig(Decimal("50"), Decimal("0.02"))
    )
    cross_document: ToleranceConfig = field(
        default_factory=lambda: ToleranceConfig(Decimal("100"), Decimal("0.05"))
    )
    ocr: ToleranceConfig = field(
        default_factory=lambda: ToleranceConfig(Decimal("25"), Decimal("0.03"))
    )

    def to_tolerances(self) -> GateTolerances:
        return GateTolerances(
            arithmetic=self.arithmetic.to_tolerance(),
            cross_document=self.cross_document.to_tolerance(),
            ocr=self.ocr.to_tolerance(),
        )


@dataclass
class Config:
    """Application configuration (SSOT).

    All configuration is centralized here. No other module should define
    configuration keys or defaults.
    """

    cross_document: CrossDocumentConfig = field(default_factory=CrossDocumentConfig)
    arithmetic: ArithmeticConfig = field(default_factory=ArithmeticConfig)
    ocr_comparison: OcrComparisonConfig = field(default_factory=OcrComparisonConfig)
    gate: GateConfig = field(default_factory=GateConfig)
    log_level: str = "INFO"

    def validate(self) -> list[str]:
        """Validate configuration consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        single_values = {
            "cross_document.absolute_tolerance": self.cross_document.absolute_tolerance,
            "arithmetic.absolute_tolerance": self.arithmetic.absolute_tolerance,
            "ocr_comparison.match_tolerance": self.ocr_comparison.match_tolerance,
        }
        for key, value in single_values.items():
            if value < 0:
                errors.append(f"{key} must be >= 0")

        for name in ("arithmetic", "cross_document", "ocr"):
            tolerance: ToleranceConfig = getattr(self.gate, name)
            if tolerance.absolute < 0:
                errors.append(f"gate.{name}.absolute must be >= 0")
            if tolerance.percent < 0:
                errors.append(f"gate.{name}.percent must be >= 0")
            if tolerance.percent > 1:
                errors.append(f"gate.{name}.percent must be <= 1 (a fraction, 0.05 = 5%)")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"log_level {self.log_level!r} is not a logging level")

        return errors


def _load_tolerance(
    data: dict,
    key: str,
    default: ToleranceConfig,
    env_absolute: str,
    env_percent: str,
) -> ToleranceConfig:
    section = data.get(key) or {}
    absolute = _to_decimal(section.get("absolute", default.absolute), f"gate.{key}.absolute")
    percent = _to_decimal(section.get("percent", default.percent), f"gate.{key}.percent")
    return ToleranceConfig(
        absolute=_env_decimal(env_absolute, absolute),
        percent=_env_decimal(env_percent, percent),
    )


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    A missing file yields the defaults. Environment variables can override
    config values:
    - DEALCHECK_CROSS_DOC_ABS_TOLERANCE
    - DEALCHECK_GATE_ARITHMETIC_ABS / DEALCHECK_GATE_ARITHMETIC_PCT
    - DEALCHECK_GATE_CROSS_DOC_ABS / DEALCHECK_GATE_CROSS_DOC_PCT
    - DEALCHECK_GATE_OCR_ABS / DEALCHECK_GATE_OCR_PCT
    - DEALCHECK_LOG_LEVEL

    Raises:
        ConfigValidationError: unreadable YAML, non-numeric or invalid values
    """
    if config_path.exists():
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError(f"{config_path} must contain a mapping at top level")
    else:
        logger.debug("Config file %s not found, using defaults", config_path)
        data = {}

    # Cross-document config
    cross_doc_data = data.get("cross_document") or {}
    cross_document = CrossDocumentConfig(
        absolute_tolerance=_env_decimal(
            "DEALCHECK_CROSS_DOC_ABS_TOLERANCE",
            _to_decimal(
                cross_doc_data.get("absolute_tolerance", "1"),
                "cross_document.absolute_tolerance",
            ),
        ),
    )

    # Arithmetic config
    arithmetic_data = data.get("arithmetic") or {}
    arithmetic = ArithmeticConfig(
        absolute_tolerance=_to_decimal(
            arithmetic_data.get("absolute_tolerance", "1"),
            "arithmetic.absolute_tolerance",
        ),
    )

    # OCR comparison config
    ocr_data = data.get("ocr_comparison") or {}
    ocr_comparison = OcrComparisonConfig(
        match_tolerance=_to_decimal(
            ocr_data.get("match_tolerance", "1"),
            "ocr_comparison.match_tolerance",
        ),
    )

    # Gate config
    gate_data = data.get("gate") or {}
    defaults = GateConfig()
    gate = GateConfig(
        arithmetic=_load_tolerance(
            gate_data,
            "arithmetic",
            defaults.arithmetic,
            "DEALCHECK_GATE_ARITHMETIC_ABS",
            "DEALCHECK_GATE_ARITHMETIC_PCT",
        ),
        cross_document=_load_tolerance(
            gate_data,
            "cross_document",
            defaults.cross_document,
            "DEALCHECK_GATE_CROSS_DOC_ABS",
            "DEALCHECK_GATE_CROSS_DOC_PCT",
        ),
        ocr=_load_tolerance(
            gate_data,
            "ocr",
            defaults.ocr,
            "DEALCHECK_GATE_OCR_ABS",
            "DEALCHECK_GATE_OCR_PCT",
        ),
    )

    config = Config(
        cross_document=cross_document,
        arithmetic=arithmetic,
        ocr_comparison=ocr_comparison,
        gate=gate,
        log_level=str(os.environ.get("DEALCHECK_LOG_LEVEL", data.get("log_level", "INFO"))),
    )

    errors = config.validate()
    if errors:
        raise ConfigValidationError("; ".join(errors))

    return config


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# dealcheck configuration
#
# Absolute tolerances are in dollars.
# Percent tolerances are fractions: 0.05 means 5%.

# Cross-document reconciliation
cross_document:
  absolute_tolerance: 1          # Differences up to $1 always pass

# Arithmetic self-consistency checks
arithmetic:
  absolute_tolerance: 1          # Rounding allowance per equation

# OCR-vs-structured comparison
ocr_comparison:
  match_tolerance: 1             # OCR and extraction agree within $1

# Review gate: a failed check is auto-passed when it is within
# BOTH the absolute and the percent bound of its category
gate:
  arithmetic:
    absolute: 50
    percent: 0.02
  cross_document:
    absolute: 100
    percent: 0.05
  ocr:
    absolute: 25
    percent: 0.03

log_level: INFO
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
