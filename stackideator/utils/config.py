import os
import yaml
from pathlib import Path
from dotenv import load_dotenv

DEFAULT_NICHES = [
    "E-commerce",
    "Healthcare Management",
    "Fintech & Banking",
    "Education (LMS)",
    "Real Estate",
    "IoT Dashboard",
]


class Config:
    def __init__(self):
        # Load appropriate .env file based on environment
        self.env = os.getenv("STACKIDEATOR_ENV", "dev")
        self._load_env_file()

        # Project paths
        self.project_root = Path(__file__).parent.parent.parent
        self.niches_file = self.project_root / os.getenv("NICHES_FILE", "niches.yaml")

        # Google AI settings
        self.google_ai_api_key = os.getenv("GOOGLE_AI_API_KEY")
        self.google_ai_model = os.getenv("GOOGLE_AI_MODEL", "gemini-2.5-flash")
        self.idea_temperature = float(os.getenv("IDEA_TEMPERATURE", 0.7))
        self.blueprint_temperature = float(os.getenv("BLUEPRINT_TEMPERATURE", 0.5))

        # A value of 0 disables the timeout
        self.request_timeout_seconds = float(os.getenv("REQUEST_TIMEOUT_SECONDS", 120))

        # Target stack the ideas and blueprints are generated for
        self.backend_stack = os.getenv("BACKEND_STACK", "Spring Boot")
        self.frontend_stack = os.getenv("FRONTEND_STACK", "React")

        # Storage settings
        self.store_path = os.getenv("STORE_PATH", "data/stackideator.db")

        # Logging settings
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_format = os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        # Level for the Gemini client and its HTTP transport
        self.client_log_level = os.getenv("CLIENT_LOG_LEVEL", "WARNING").upper()

        # Load suggested niches from YAML
        self.suggested_niches = self._load_niches()

    @property
    def request_timeout(self):
        """Timeout for a single backend call, or None when disabled."""
        return self.request_timeout_seconds if self.request_timeout_seconds > 0 else None

    def _load_env_file(self):
        """Load the appropriate .env file based on the environment."""
        env_file = ".env"

        # Check for environment-specific .env file
        if self.env != "dev":
            env_specific_file = f".env.{self.env}"
            if Path(env_specific_file).exists():
                env_file = env_specific_file

        load_dotenv(env_file)

    def _load_niches(self):
        """Load and parse suggested niches from YAML file."""
        if not self.niches_file.exists():
            return list(DEFAULT_NICHES)

        with open(self.niches_file, 'r') as file:
            niches_config = yaml.safe_load(file) or {}
            return [
                niche['name']
                for niche in niches_config.get('niches', [])
                if niche.get('enabled', True)
            ]

# Create a global config instance
config = Config()
