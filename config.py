"""
Smart Scraper Configuration Management

Handles all configuration parameters with environment variable support
and default values for list detection, extraction and AI cleaning.
"""

import os
from typing import List, Optional
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


@dataclass
class Config:
    """Main configuration class for Smart Scraper"""

    # List detection
    MAX_ANCESTOR_DEPTH: int = int(os.getenv('MAX_ANCESTOR_DEPTH', '8'))

    # Field naming
    SEMANTIC_CLASS_PREFIX: str = os.getenv('SEMANTIC_CLASS_PREFIX', 'property-')
    WHOLE_ITEM_LABEL: str = os.getenv('WHOLE_ITEM_LABEL', 'Item Content')

    # HTML parsing ('soup' or 'lxml')
    HTML_PARSER: str = os.getenv('HTML_PARSER', 'soup')

    # Selenium WebDriver Settings
    WEBDRIVER_TIMEOUT: int = int(os.getenv('WEBDRIVER_TIMEOUT', '30'))
    WEBDRIVER_HEADLESS: bool = os.getenv('WEBDRIVER_HEADLESS', 'True').lower() == 'true'
    WEBDRIVER_IMPLICITLY_WAIT: int = int(os.getenv('WEBDRIVER_IMPLICITLY_WAIT', '10'))
    WEBDRIVER_SETTLE_TIME: float = float(os.getenv('WEBDRIVER_SETTLE_TIME', '2'))

    # AI Model Configuration
    AI_MODEL: str = os.getenv('AI_MODEL', 'ollama')  # 'ollama' or 'openai'
    OPENAI_API_KEY: Optional[str] = os.getenv('OPENAI_API_KEY')
    OPENAI_MODEL: str = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
    OLLAMA_BASE_URL: str = os.getenv('OLLAMA_BASE_URL', 'http://localhost:11434')
    OLLAMA_MODEL: str = os.getenv('OLLAMA_MODEL', 'llama3')
    AI_TEMPERATURE: float = float(os.getenv('AI_TEMPERATURE', '0.1'))
    DEFAULT_CLEANING_INSTRUCTION: str = os.getenv(
        'DEFAULT_CLEANING_INSTRUCTION',
        'Remove currency symbols and text, keep numbers'
    )

    # Export
    EXPORT_BASENAME: str = os.getenv('EXPORT_BASENAME', 'scraped_data')

    # API server
    API_HOST: str = os.getenv('API_HOST', '0.0.0.0')
    API_PORT: int = int(os.getenv('API_PORT', '8000'))

    # Logging Configuration
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    # User Agent for rendered pages
    USER_AGENT: str = os.getenv(
        'USER_AGENT',
        'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
    )

    def validate(self) -> None:
        """Validate configuration settings"""
        if self.AI_MODEL not in ('openai', 'ollama'):
            raise ValueError(f"AI_MODEL must be 'openai' or 'ollama', got '{self.AI_MODEL}'")

        if self.MAX_ANCESTOR_DEPTH < 1:
            raise ValueError("MAX_ANCESTOR_DEPTH must be at least 1")

        if self.HTML_PARSER not in ('soup', 'lxml'):
            raise ValueError(f"HTML_PARSER must be 'soup' or 'lxml', got '{self.HTML_PARSER}'")

    @property
    def ai_configured(self) -> bool:
        """Whether the selected AI backend has what it needs to run"""
        if self.AI_MODEL == 'openai':
            return bool(self.OPENAI_API_KEY)
        return bool(self.OLLAMA_BASE_URL)

    @property
    def selenium_options(self) -> List[str]:
        """Get Selenium Chrome options"""
        options = [
            '--no-sandbox',
            '--disable-dev-shm-usage',
            '--disable-gpu',
            '--disable-extensions',
            f'--user-agent={self.USER_AGENT}'
        ]

        if self.WEBDRIVER_HEADLESS:
            options.append('--headless=new')

        return options


# Global config instance
config = Config()

# Validate configuration on import
config.validate()
