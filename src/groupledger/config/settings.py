"""Application settings loader from YAML configuration with environment overrides."""
import os
import re
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from groupledger.utils.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path("config.yaml")

# "item amount" phrases, highest priority first. Group 1 is the label, group 2 the amount.
DEFAULT_ITEM_PATTERNS = [
    r"(\w+)\s+(\d+(?:\.\d{2})?)",
    r"(\w+)\s+\$(\d+(?:\.\d{2})?)",
    r"(\w+)\s+(\d+(?:\.\d{2})?)\s*(?:dollars?|USD|usd)",
    r"(\w+)\s+(\d+(?:\.\d{2})?)\s*(?:euros?|EUR|eur)",
    r"(\w+)\s+(\d+(?:\.\d{2})?)\s*(?:pounds?|GBP|gbp)",
]

# Standalone amounts; the whole match is normalized.
DEFAULT_NUMBER_PATTERNS = [
    r"(\d+(?:\.\d{2})?)",
    r"(\$\d+(?:\.\d{2})?)",
    r"(\d+(?:\.\d{2})?\s*(?:dollars?|USD|usd))",
]

DEFAULT_SPENDING_KEYWORDS = [
    "spent", "paid", "cost", "price", "amount", "total", "bill", "payment",
    "purchase", "bought", "expense", "charge", "fee", "subscription",
]


def _env_flag(environ, name: str, default: bool) -> bool:
    value = environ.get(name)
    if value is None:
        return default
    return value.strip().lower() == "true"


@dataclass
class AppSettings:
    """Application-wide settings loaded from config.yaml."""
    
    # Chat
    target_conversation_id: str = "120363342387374955@g.us"
    
    # Store
    workbook_path: str = "./whatsapp_messages.xlsx"
    messages_sheet: str = "Messages"
    spending_sheet: str = "Spending Analysis"
    individual_sheet: str = "Individual Spending"
    
    # Processing
    enable_spending_analysis: bool = True
    high_value_threshold: float = 1000.0
    
    # Extraction
    item_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_ITEM_PATTERNS))
    number_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_NUMBER_PATTERNS))
    spending_keywords: List[str] = field(default_factory=lambda: list(DEFAULT_SPENDING_KEYWORDS))
    
    # Retry
    retry_max_attempts: int = 3
    retry_delay_seconds: float = 1.0
    
    # Logging
    log_level: str = "INFO"
    log_to_file: bool = True
    log_file: str = "./whatsapp_tracker.log"
    log_max_file_size_mb: int = 10
    log_backup_count: int = 5
    
    # HTTP status server
    server_host: str = "0.0.0.0"
    server_port: int = 3000
    
    @classmethod
    def load(cls, config_path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> "AppSettings":
        """Load settings from a YAML file (optional) and apply environment overrides."""
        if config_path is None:
            config_path = Path(os.getenv("GROUPLEDGER_CONFIG", DEFAULT_CONFIG_PATH))
        
        config: Dict[str, Any] = {}
        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
            if not isinstance(config, dict):
                raise ConfigError(f"Configuration root must be a mapping: {config_path}")
        
        settings = cls.from_dict(config)
        settings.apply_env(os.environ if environ is None else environ)
        return settings
    
    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "AppSettings":
        """Build settings from the nested YAML structure, keeping defaults for missing keys."""
        settings = cls()
        sections = {
            "chat": {"target_conversation_id": "target_conversation_id"},
            "store": {
                "workbook_path": "workbook_path",
                "messages_sheet": "messages_sheet",
                "spending_sheet": "spending_sheet",
                "individual_sheet": "individual_sheet",
            },
            "processing": {
                "enable_spending_analysis": "enable_spending_analysis",
                "high_value_threshold": "high_value_threshold",
            },
            "extraction": {
                "item_patterns": "item_patterns",
                "number_patterns": "number_patterns",
                "spending_keywords": "spending_keywords",
            },
            "retry": {
                "max_attempts": "retry_max_attempts",
                "delay_seconds": "retry_delay_seconds",
            },
            "logging": {
                "level": "log_level",
                "to_file": "log_to_file",
                "file": "log_file",
                "max_file_size_mb": "log_max_file_size_mb",
                "backup_count": "log_backup_count",
            },
            "server": {"host": "server_host", "port": "server_port"},
        }
        
        for section, keys in sections.items():
            values = config.get(section) or {}
            for yaml_key, attr in keys.items():
                if yaml_key in values:
                    setattr(settings, attr, values[yaml_key])
        return settings
    
    def apply_env(self, environ) -> None:
        """Apply deployment environment variables on top of the file values."""
        if environ.get("TARGET_GROUP_ID"):
            self.target_conversation_id = environ["TARGET_GROUP_ID"]
        if environ.get("EXCEL_FILE_PATH"):
            self.workbook_path = environ["EXCEL_FILE_PATH"]
        if environ.get("SHEET_NAME"):
            self.messages_sheet = environ["SHEET_NAME"]
        if environ.get("SPENDING_SHEET_NAME"):
            self.spending_sheet = environ["SPENDING_SHEET_NAME"]
        self.enable_spending_analysis = _env_flag(
            environ, "ENABLE_SPENDING_ANALYSIS", self.enable_spending_analysis
        )
        if environ.get("LOG_LEVEL"):
            self.log_level = environ["LOG_LEVEL"]
        self.log_to_file = _env_flag(environ, "LOG_TO_FILE", self.log_to_file)
        if environ.get("LOG_FILE_PATH"):
            self.log_file = environ["LOG_FILE_PATH"]
        if environ.get("PORT"):
            try:
                self.server_port = int(environ["PORT"])
            except ValueError as e:
                raise ConfigError(f"PORT must be an integer: {environ['PORT']!r}") from e
    
    def validate(self) -> tuple[bool, str]:
        """Validate configuration values."""
        if not self.target_conversation_id:
            return False, "Target conversation ID is required"
        
        if not self.workbook_path:
            return False, "Workbook path is required"
        
        sheet_names = [self.messages_sheet, self.spending_sheet, self.individual_sheet]
        if not all(sheet_names) or len(set(sheet_names)) != len(sheet_names):
            return False, "Sheet names must be non-empty and distinct"
        
        if int(self.retry_max_attempts) < 1:
            return False, "Retry attempts must be at least 1"
        
        if float(self.retry_delay_seconds) < 0:
            return False, "Retry delay cannot be negative"
        
        for pattern in list(self.item_patterns) + list(self.number_patterns):
            try:
                re.compile(pattern)
            except re.error as e:
                return False, f"Invalid pattern {pattern!r}: {e}"
        
        for pattern in self.item_patterns:
            if re.compile(pattern).groups < 2:
                return False, f"Item pattern needs label and amount groups: {pattern!r}"
        
        return True, "Configuration is valid"
    
    @property
    def log_path(self) -> Optional[Path]:
        return Path(self.log_file) if self.log_to_file and self.log_file else None
