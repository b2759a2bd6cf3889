"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use STEERDOWN_ prefix (e.g., STEERDOWN_STRICT_DESTINATIONS=true).

Settings can also be loaded from a .env file in the project root.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use STEERDOWN_ prefix.

    Examples:
        STEERDOWN_STRICT_DESTINATIONS=true
        STEERDOWN_DEFAULT_TARGET=power
        STEERDOWN_FALLBACK_VERSION=0.0.0
    """

    model_config = SettingsConfigDict(
        env_prefix="STEERDOWN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Manifest configuration
    strict_destinations: bool = Field(
        default=False,
        description="Fail expansion when two expanded mappings share a destination",
    )

    default_target: str = Field(
        default="npm",
        description="Build target used when none is given on the command line",
    )

    # Substitution configuration
    section_error_template: str = Field(
        default="<!-- Error extracting section: {error} -->",
        description="Text written in place of a section that could not be extracted",
    )

    steering_install_path: str = Field(
        default="~/.kiro/steering/kiro-agents",
        description="Install location of steering documents (npm, dev and cli targets)",
    )

    power_install_path: str = Field(
        default="~/.kiro/powers/installed/kiro-agents/steering",
        description="Install location of steering documents for the power target",
    )

    fallback_version: str = Field(
        default="1.0.0",
        description="Version substituted when package.json is missing or has no version",
    )

    # Diagnostics
    debug_mode: bool = Field(
        default=False,
        description="Force debug verbosity (-vv) for every build",
    )

    def sectionError_make(self, error: object) -> str:
        """
        Render the diagnostic comment for a failed section substitution.

        Args:
            error: Exception (or message) describing the failure

        Returns:
            Diagnostic string (e.g., "<!-- Error extracting section: ... -->")

        Example:
            >>> settings = AppSettings()
            >>> settings.sectionError_make("Section not found: Intro")
            '<!-- Error extracting section: Section not found: Intro -->'
        """
        return self.section_error_template.format(error=error)


# Singleton instance - import this in your code
appsettings = AppSettings()
