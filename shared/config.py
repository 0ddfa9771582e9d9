"""
VM Pilot Configuration
Centralized configuration for the host (consumer) and the controller (producer).
"""
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional, Dict, Any
import logging
import os

import yaml
from dotenv import load_dotenv

from shared.constants import Defaults, Timing
from shared.mailbox import default_mailbox_path

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


@dataclass
class ChannelConfig:
    """Mailbox channel configuration."""
    mailbox_path: str = field(default_factory=default_mailbox_path)
    poll_interval: float = Timing.POLL_INTERVAL.value


@dataclass
class InjectorConfig:
    """Input injection timing."""
    press_duration: float = Timing.PRESS_DURATION.value
    char_pacing: float = Timing.CHAR_PACING.value


@dataclass
class SurfaceConfig:
    """Screen region that receives injected events (the VM view)."""
    left: int = 0
    top: int = 0
    width: Optional[int] = None  # None = full screen width
    height: Optional[int] = None  # None = full screen height


@dataclass
class CaptureConfig:
    """Screenshot capture configuration."""
    backend: str = "screencapture"  # "screencapture" or "mss"
    utility: str = Defaults.SCREENCAPTURE_UTILITY.value
    monitor_index: int = 1  # mss: primary monitor
    screenshot_dir: Optional[str] = None  # Keep screenshots here; None = discard


@dataclass
class LLMConfig:
    """Vision model endpoint configuration."""
    api_key: str = ""
    api_url: str = "https://api.openai.com/v1/chat/completions"
    model: str = "gpt-4o"
    timeout: float = 60.0
    max_tokens: int = 1000
    temperature: float = 0.1


@dataclass
class AgentConfig:
    """Orchestration settings for the controller."""
    target_app_name: str = Defaults.TARGET_APP_NAME.value
    dispatch_pacing: float = Timing.DISPATCH_PACING.value
    journal_path: Optional[str] = None  # JSONL plan journal; None = disabled


@dataclass
class PilotConfig:
    """Main configuration for VM Pilot."""
    channel: ChannelConfig = field(default_factory=ChannelConfig)
    injector: InjectorConfig = field(default_factory=InjectorConfig)
    surface: SurfaceConfig = field(default_factory=SurfaceConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)

    # Debug settings
    debug_mode: bool = False

    @classmethod
    def from_env(cls) -> "PilotConfig":
        """Load configuration from environment variables."""
        return cls(
            channel=ChannelConfig(
                mailbox_path=os.getenv("VM_MAILBOX_PATH", default_mailbox_path()),
                poll_interval=float(os.getenv("VM_POLL_INTERVAL", str(Timing.POLL_INTERVAL.value)))
            ),
            injector=InjectorConfig(
                press_duration=float(os.getenv("INJECT_PRESS_DURATION", str(Timing.PRESS_DURATION.value))),
                char_pacing=float(os.getenv("INJECT_CHAR_PACING", str(Timing.CHAR_PACING.value)))
            ),
            surface=SurfaceConfig(
                left=int(os.getenv("SURFACE_LEFT", "0")),
                top=int(os.getenv("SURFACE_TOP", "0")),
                width=_env_optional_int("SURFACE_WIDTH"),
                height=_env_optional_int("SURFACE_HEIGHT")
            ),
            capture=CaptureConfig(
                backend=os.getenv("CAPTURE_BACKEND", "screencapture"),
                utility=os.getenv("CAPTURE_UTILITY", Defaults.SCREENCAPTURE_UTILITY.value),
                monitor_index=int(os.getenv("CAPTURE_MONITOR_INDEX", "1")),
                screenshot_dir=os.getenv("CAPTURE_SCREENSHOT_DIR")
            ),
            llm=LLMConfig(
                api_key=os.getenv("OPENAI_API_KEY", ""),
                api_url=os.getenv("LLM_API_URL", "https://api.openai.com/v1/chat/completions"),
                model=os.getenv("LLM_MODEL", "gpt-4o"),
                timeout=float(os.getenv("LLM_TIMEOUT", "60.0")),
                max_tokens=int(os.getenv("LLM_MAX_TOKENS", "1000")),
                temperature=float(os.getenv("LLM_TEMPERATURE", "0.1"))
            ),
            agent=AgentConfig(
                target_app_name=os.getenv("VM_APP_NAME", Defaults.TARGET_APP_NAME.value),
                dispatch_pacing=float(os.getenv("AGENT_DISPATCH_PACING", str(Timing.DISPATCH_PACING.value))),
                journal_path=os.getenv("AGENT_JOURNAL_PATH")
            ),
            debug_mode=_env_bool("DEBUG_MODE")
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PilotConfig":
        """
        Build configuration from a nested dictionary.

        Unknown keys are ignored; missing sections keep their defaults.
        """
        sections = {
            "channel": ChannelConfig,
            "injector": InjectorConfig,
            "surface": SurfaceConfig,
            "capture": CaptureConfig,
            "llm": LLMConfig,
            "agent": AgentConfig,
        }

        kwargs: Dict[str, Any] = {}
        for name, section_cls in sections.items():
            section_data = data.get(name) or {}
            known = {f.name for f in fields(section_cls)}
            kwargs[name] = section_cls(**{k: v for k, v in section_data.items() if k in known})

        config = cls(**kwargs, debug_mode=bool(data.get("debug_mode", False)))

        # Never expect the credential in a checked-in file
        if not config.llm.api_key:
            config.llm.api_key = os.getenv("OPENAI_API_KEY", "")

        return config

    @classmethod
    def from_file(cls, path: str) -> "PilotConfig":
        """Load configuration from a YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")

        return cls.from_dict(data)


def load_env(env_file: Optional[str] = None) -> bool:
    """
    Load variables from a .env file if one exists.

    Args:
        env_file: Explicit path. If None, looks for .env in the working directory.

    Returns:
        True if a file was loaded.
    """
    env_path = Path(env_file) if env_file else Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        return True
    return False


def get_config(path: Optional[str] = None) -> PilotConfig:
    """Get configuration (from file if given, else from env, else default)."""
    if path:
        return PilotConfig.from_file(path)
    try:
        return PilotConfig.from_env()
    except ValueError as e:
        logger.warning(f"[CONFIG] Invalid environment value, using defaults: {e}")
        return PilotConfig()
