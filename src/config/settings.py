"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use the WRAPDOWN_ prefix (e.g., WRAPDOWN_TAGS_FILE=tags.yaml).

Settings can also be loaded from a .env file in the working directory.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Examples:
        WRAPDOWN_TEXT_PLACEHOLDER=$(text)
        WRAPDOWN_MARKER_ESCAPE_FORMAT=&#x{code:x};
        WRAPDOWN_TAGS_FILE=/etc/wrapdown/tags.yaml
    """

    model_config = SettingsConfigDict(
        env_prefix="WRAPDOWN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Rendering configuration
    text_placeholder: str = Field(
        default="{text}",
        description="Placeholder in tag templates replaced by the rendered content",
    )

    marker_escape_format: str = Field(
        default="&#{code};",
        description="Format applied to each character of a claimed (related) marker; "
                    "{code} is the character's code point",
    )

    # Tag configuration
    tags_file: Optional[str] = Field(
        default=None,
        description="YAML tags file used instead of the default tag set",
    )

    # Output configuration
    output_extension: str = Field(
        default=".html",
        description="Extension of the rendered output file",
    )

    pygments_style: str = Field(
        default="monokai",
        description="Pygments style for the highlighted source view",
    )

    @field_validator("text_placeholder")
    @classmethod
    def placeholder_validate(cls, value: str) -> str:
        if not value:
            raise ValueError("text_placeholder must not be empty")
        return value

    def outputName_make(self, source_name: str) -> str:
        """
        Derive the output file name for a source file name

        Example:
            >>> AppSettings().outputName_make("notes.wd")
            'notes.html'
        """
        stem = source_name.rsplit('.', 1)[0] if '.' in source_name else source_name
        return f"{stem}{self.output_extension}"


# Singleton instance - import this in your code
appsettings = AppSettings()
