"""Configuration management for the content migration tool."""

from enum import Enum
from typing import Optional, Dict, Any
from pathlib import Path
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator
import yaml
from dotenv import load_dotenv


class FailurePolicy(str, Enum):
    """What the import does when the target rejects an entity."""

    ABORT = 'abort'
    CONTINUE = 'continue'


class KontentInstanceConfig(BaseModel):
    """Configuration for the target project."""

    project_id: str = Field(..., description='Target project ID')
    api_key: str = Field(..., description='Management API key')
    base_url: str = Field(
        default='https://manage.kontent.ai/v2', description='Management API URL'
    )
    timeout: int = Field(default=30, description='Request timeout in seconds')
    rate_limit_per_second: float = Field(
        default=10.0, description='API requests per second limit'
    )
    retry_attempts: int = Field(
        default=5, description='Attempts for rate limited or failed requests'
    )
    retry_min_wait: float = Field(
        default=1.0, description='Initial backoff between attempts in seconds'
    )
    retry_max_wait: float = Field(
        default=60.0, description='Maximum backoff between attempts in seconds'
    )

    @field_validator('base_url')
    @classmethod
    def validate_url(cls, v):
        """Validate API URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('URL must start with http:// or https://')
        return v.rstrip('/')

    @field_validator('project_id', 'api_key')
    @classmethod
    def validate_not_blank(cls, v):
        """Validate credentials are not blank."""
        if not v or not v.strip():
            raise ValueError('Value must not be blank')
        return v.strip()

    @field_validator('rate_limit_per_second', 'timeout')
    @classmethod
    def validate_positive(cls, v):
        """Validate value is positive."""
        if v <= 0:
            raise ValueError('Value must be positive')
        return v

    @field_validator('retry_attempts')
    @classmethod
    def validate_retry_attempts(cls, v):
        """Validate at least one attempt is made."""
        if v < 1:
            raise ValueError('Retry attempts must be at least 1')
        return v

    @field_validator('retry_min_wait', 'retry_max_wait')
    @classmethod
    def validate_wait(cls, v):
        """Validate backoff is not negative."""
        if v < 0:
            raise ValueError('Wait must not be negative')
        return v


class ImportConfig(BaseModel):
    """Import-specific configuration."""

    skip_languages: bool = Field(
        default=False, description='Do not create languages on the target'
    )
    workflow_step_id_for_imported_items: str = Field(
        ..., description='Workflow step assigned to every imported variant'
    )
    failure_policy: FailurePolicy = Field(
        default=FailurePolicy.ABORT,
        description='Abort on the first rejected entity or record and continue',
    )
    resolve_intra_kind_references: bool = Field(
        default=False,
        description='Order content types by their mutual references and '
        'patch forward references after the run',
    )

    @field_validator('workflow_step_id_for_imported_items')
    @classmethod
    def validate_workflow_step(cls, v):
        """Validate workflow step id is present."""
        if not v or not v.strip():
            raise ValueError('Workflow step id must not be blank')
        return v.strip()


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default='INFO', description='Log level')
    file: Optional[str] = Field(default=None, description='Log file path')
    format: str = Field(
        default='{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}',
        description='Log format',
    )

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()


class Config(BaseModel):
    """Main configuration class for the content migration tool."""

    target: KontentInstanceConfig = Field(..., description='Target project')
    import_: ImportConfig = Field(..., alias='import', description='Import settings')
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description='Logging settings'
    )

    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """Load configuration from YAML file."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        return cls(**config_data)

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        # Load .env file if it exists
        load_dotenv()

        config_data = {
            'target': {
                'project_id': os.getenv('KONTENT_PROJECT_ID'),
                'api_key': os.getenv('KONTENT_API_KEY'),
                'base_url': os.getenv('KONTENT_BASE_URL'),
                'timeout': os.getenv('KONTENT_TIMEOUT'),
                'retry_attempts': os.getenv('KONTENT_RETRY_ATTEMPTS'),
            },
            'import': {
                'workflow_step_id_for_imported_items': os.getenv(
                    'KONTENT_WORKFLOW_STEP_ID'
                ),
                'skip_languages': os.getenv('KONTENT_SKIP_LANGUAGES', 'false').lower()
                == 'true',
                'failure_policy': os.getenv('KONTENT_FAILURE_POLICY'),
            },
            'logging': {
                'level': os.getenv('LOG_LEVEL', 'INFO'),
                'file': os.getenv('LOG_FILE'),
            },
        }

        # Remove None values
        config_data = cls._remove_none_values(config_data)

        return cls(**config_data)

    @staticmethod
    def _remove_none_values(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively remove None values from dictionary."""
        if isinstance(data, dict):
            return {
                k: Config._remove_none_values(v)
                for k, v in data.items()
                if v is not None
            }
        return data

    def to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                self.model_dump(mode='json', by_alias=True),
                f,
                default_flow_style=False,
                indent=2,
                sort_keys=False,
            )

    @staticmethod
    def create_template(output_path: str) -> None:
        """Create a configuration template file."""
        template_config = {
            'target': {
                'project_id': 'your-target-project-id',
                'api_key': 'your-management-api-key',
                'base_url': 'https://manage.kontent.ai/v2',
                'timeout': 30,
                'rate_limit_per_second': 10.0,
                'retry_attempts': 5,
            },
            'import': {
                'workflow_step_id_for_imported_items': 'your-draft-workflow-step-id',
                'skip_languages': False,
                'failure_policy': FailurePolicy.ABORT.value,
                'resolve_intra_kind_references': False,
            },
            'logging': {
                'level': 'INFO',
                'file': 'import.log',
                'format': '{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}',
            },
        }

        config_file = Path(output_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                template_config, f, default_flow_style=False, indent=2, sort_keys=False
            )
