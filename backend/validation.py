"""
World Chat Startup Validation - Configuration Checks

Validates configuration at startup so a missing key fails fast instead of on
the first AI question. A missing LLM key is critical; a missing GIF key only
degrades the GIF picker.

Usage:
    from validation import validate_startup
    result = validate_startup(runtime_config)
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from config import RuntimeConfig
from errors import ConfigurationError

logger = logging.getLogger(__name__)


# =============================================================================
# VALIDATION RESULT TYPES
# =============================================================================


@dataclass
class ValidationIssue:
    """A single validation issue."""

    category: str
    severity: str  # "critical" or "warning"
    message: str
    details: Optional[str] = None


@dataclass
class ValidationResult:
    """Result of startup validation."""

    success: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    checks_performed: Dict[str, bool] = field(default_factory=dict)
    duration_ms: float = 0.0

    def add_issue(self, category: str, severity: str, message: str, details: Optional[str] = None) -> None:
        """Add a validation issue."""
        self.issues.append(ValidationIssue(category=category, severity=severity, message=message, details=details))

    def has_critical_issues(self) -> bool:
        """Check if any critical issues exist."""
        return any(i.severity == "critical" for i in self.issues)

    def get_warnings(self) -> List[ValidationIssue]:
        """Get all warning-level issues."""
        return [i for i in self.issues if i.severity == "warning"]

    def get_critical(self) -> List[ValidationIssue]:
        """Get all critical issues."""
        return [i for i in self.issues if i.severity == "critical"]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "duration_ms": round(self.duration_ms, 2),
            "checks_performed": self.checks_performed,
            "critical_count": len(self.get_critical()),
            "warning_count": len(self.get_warnings()),
            "issues": [
                {"category": i.category, "severity": i.severity, "message": i.message, "details": i.details}
                for i in self.issues
            ],
        }


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================


def validate_llm_config(result: ValidationResult, config: RuntimeConfig) -> None:
    """
    Validate the generative backend settings.

    Checks:
    - An API key is present (LLM_API_KEY / GEMINI_API_KEY)
    - The base URL is http(s)
    - A chat model is named
    """
    ok = True
    if not config.llm_api_key:
        result.add_issue(
            "llm",
            "critical",
            "No LLM API key configured",
            "Set LLM_API_KEY (or GEMINI_API_KEY) before starting the server",
        )
        ok = False
    if not config.llm_base_url.startswith(("http://", "https://")):
        result.add_issue("llm", "critical", f"Invalid LLM base URL: {config.llm_base_url!r}")
        ok = False
    if not config.model_chat:
        result.add_issue("llm", "critical", "No chat model configured (LLM_CHAT_MODEL)")
        ok = False
    result.checks_performed["llm"] = ok


def validate_gif_config(result: ValidationResult, config: RuntimeConfig) -> None:
    """Warn when GIF search will be unavailable."""
    if not config.gif_api_key:
        result.add_issue(
            "gif",
            "warning",
            "No GIF provider key configured; /api/gifs will return 500",
            "Set GIPHY_API_KEY to enable GIF search",
        )
        result.checks_performed["gif"] = False
        return
    result.checks_performed["gif"] = True


def validate_limits(result: ValidationResult, config: RuntimeConfig) -> None:
    """Check numeric settings against the same ranges runtime updates use."""
    ok = True
    for key, (lo, hi) in config._VALIDATION_RANGES.items():
        value = getattr(config, key)
        if not (lo <= value <= hi):
            result.add_issue("limits", "warning", f"{key}={value} is outside the expected range {lo}-{hi}")
            ok = False
    result.checks_performed["limits"] = ok


def validate_startup(config: RuntimeConfig) -> Dict[str, Any]:
    """
    Run all startup validation checks.

    Returns:
        Dict with validation results summary

    Raises:
        ConfigurationError: If any critical issues are found
    """
    start_time = time.perf_counter()
    result = ValidationResult(success=True)

    logger.info("Running startup validation...")

    validate_llm_config(result, config)
    validate_gif_config(result, config)
    validate_limits(result, config)

    result.duration_ms = (time.perf_counter() - start_time) * 1000

    # Log warnings
    warnings = result.get_warnings()
    for w in warnings:
        logger.warning(f"Validation warning [{w.category}]: {w.message}")
        if w.details:
            logger.warning(f"  Details: {w.details}")

    # Check for critical issues
    critical = result.get_critical()
    if critical:
        result.success = False
        error_msgs = []
        for c in critical:
            error_msgs.append(f"[{c.category}] {c.message}")
            logger.error(f"Validation CRITICAL [{c.category}]: {c.message}")
            if c.details:
                logger.error(f"  Details: {c.details}")

        raise ConfigurationError(
            f"Startup validation failed with {len(critical)} critical issue(s)",
            details="; ".join(error_msgs),
            setting=critical[0].category,
        )

    checks_passed = sum(1 for v in result.checks_performed.values() if v)
    total_checks = len(result.checks_performed)
    logger.info(
        f"Startup validation complete: {checks_passed}/{total_checks} checks passed, "
        f"{len(warnings)} warnings in {result.duration_ms:.1f}ms"
    )

    return result.to_dict()
