"""Configuration schema for MTS using Pydantic."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class PathsConfig(BaseModel):
    """Script and lookup file locations."""

    script: Optional[str] = None  # MTS_SCRIPT
    globals_file: Optional[str] = None  # MTS_GLOBALS, values dictionary
    elements_file: Optional[str] = None  # MTS_ELEMENTS, locators dictionary
    libraries_dir: Optional[str] = None  # MTS_LIBRARIES, capability modules
    globals_attribute: str = "gp"  # Attribute read from a .py globals module
    elements_attribute: str = "id"  # Attribute read from a .py elements module


class AppConfig(BaseModel):
    """Application under test."""

    base_url: Optional[str] = None  # Opened before the first command when set


class BrowserConfig(BaseModel):
    """Playwright browser connection."""

    ws_url: Optional[str] = None  # Connect to a remote server; launch locally if None
    browser: Literal["chromium", "firefox", "webkit"] = "chromium"
    headless: bool = True
    width: int = 1280
    height: int = 720


class ExecutionConfig(BaseModel):
    """Command timing and limits."""

    command_delay_ms: int = 1000  # Pause before each library command
    poll_interval_ms: int = Field(default=1000, gt=0)  # waitForElement poll interval
    wait_timeout_ms: int = Field(default=9000, ge=0)  # waitForElement timeout
    label_attribute: str = "label"  # Attribute read by assert
    max_script_depth: int = 16  # runScript nesting limit


class CapabilitiesConfig(BaseModel):
    """Capability module cache."""

    cache_key: Literal["leaf", "path"] = "leaf"


class OutputConfig(BaseModel):
    """Results output."""

    directory: Optional[str] = None  # results.json written here when set


class MtsConfig(BaseModel):
    """Root configuration model for MTS."""

    version: int = 1
    debug: bool = False
    paths: PathsConfig = Field(default_factory=PathsConfig)
    app: AppConfig = Field(default_factory=AppConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    capabilities: CapabilitiesConfig = Field(default_factory=CapabilitiesConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def get_default(cls) -> "MtsConfig":
        """Return default configuration."""
        return cls()
