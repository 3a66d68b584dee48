#!/usr/bin/env python3

"""
Configuration management for the annotation parser.

Centralized configuration with support for file-based configuration
and environment variable overrides.
"""

import os
import json
import logging
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any
from .exceptions import ConfigurationError

# Optional YAML support
try:
    import yaml
    YAML_AVAILABLE = True
except ImportError:
    YAML_AVAILABLE = False


DIALECT_NAMES = ('gff3', 'gtf', 'gff')


def _to_bool(value: str) -> bool:
    return value.lower() in ('true', '1', 'yes')


@dataclass
class ParserConfig:
    """Construction-time options for an AnnotationParser."""

    # Dialect selection
    dialect_override: Optional[str] = None
    sample_lines: int = 1000

    # Feature classes to materialize
    include_gene: bool = True
    include_exon: bool = True
    include_cds: bool = False
    include_utr: bool = False
    include_codon: bool = False

    # Keep only identity, name and parentage attributes
    simplify: bool = False

    # Performance settings
    memory_limit_mb: int = 4096
    batch_size: int = 10000
    enable_memory_monitoring: bool = True

    debug_mode: bool = False

    @classmethod
    def from_file(cls, config_path: str) -> 'ParserConfig':
        """Load configuration from file (JSON or YAML)."""
        if not os.path.exists(config_path):
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        is_yaml = config_path.lower().endswith(('.yaml', '.yml'))
        if is_yaml and not YAML_AVAILABLE:
            raise ConfigurationError("PyYAML not installed but YAML config provided")

        try:
            with open(config_path, 'r') as f:
                if is_yaml:
                    config_data = yaml.safe_load(f)
                else:
                    config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid configuration file format: {e}")
        except OSError as e:
            raise ConfigurationError(f"Error loading configuration: {e}")
        except Exception as e:
            if YAML_AVAILABLE and isinstance(e, yaml.YAMLError):
                raise ConfigurationError(f"Invalid YAML configuration file format: {e}")
            raise

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ParserConfig':
        """Create configuration from dictionary."""
        # Filter out unknown keys
        known_keys = set(cls.__dataclass_fields__.keys())
        filtered_dict = {k: v for k, v in config_dict.items() if k in known_keys}

        try:
            return cls(**filtered_dict)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration parameters: {e}")

    @classmethod
    def from_env(cls) -> 'ParserConfig':
        """Load configuration from environment variables."""
        config = cls()

        env_mappings = {
            'GFFPARSER_DIALECT': ('dialect_override', str.lower),
            'GFFPARSER_SAMPLE_LINES': ('sample_lines', int),
            'GFFPARSER_INCLUDE_GENE': ('include_gene', _to_bool),
            'GFFPARSER_INCLUDE_EXON': ('include_exon', _to_bool),
            'GFFPARSER_INCLUDE_CDS': ('include_cds', _to_bool),
            'GFFPARSER_INCLUDE_UTR': ('include_utr', _to_bool),
            'GFFPARSER_INCLUDE_CODON': ('include_codon', _to_bool),
            'GFFPARSER_SIMPLIFY': ('simplify', _to_bool),
            'GFFPARSER_MEMORY_LIMIT_MB': ('memory_limit_mb', int),
            'GFFPARSER_BATCH_SIZE': ('batch_size', int),
            'GFFPARSER_DEBUG_MODE': ('debug_mode', _to_bool),
        }

        for env_var, (field_name, converter) in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value:
                try:
                    setattr(config, field_name, converter(env_value))
                except (ValueError, TypeError) as e:
                    raise ConfigurationError(f"Invalid environment variable {env_var}: {e}")

        config.validate()
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def save_to_file(self, config_path: str) -> None:
        """Save configuration to file."""
        config_dict = self.to_dict()
        is_yaml = config_path.lower().endswith(('.yaml', '.yml'))
        if is_yaml and not YAML_AVAILABLE:
            raise ConfigurationError("PyYAML not installed but YAML output requested")

        try:
            with open(config_path, 'w') as f:
                if is_yaml:
                    yaml.safe_dump(config_dict, f, default_flow_style=False)
                else:
                    json.dump(config_dict, f, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Error saving configuration: {e}")

    def validate(self) -> None:
        """Validate configuration parameters."""
        if self.dialect_override is not None and self.dialect_override not in DIALECT_NAMES:
            raise ConfigurationError(
                f"dialect_override must be one of {', '.join(DIALECT_NAMES)}, got {self.dialect_override!r}"
            )

        if self.sample_lines < 1:
            raise ConfigurationError("sample_lines must be >= 1")

        if self.memory_limit_mb < 100:
            raise ConfigurationError("memory_limit_mb must be >= 100")

        if self.batch_size < 1:
            raise ConfigurationError("batch_size must be >= 1")

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.dialect_override, str):
            self.dialect_override = self.dialect_override.lower()
            if self.dialect_override == 'gff2':
                self.dialect_override = 'gff'
        self.validate()


def load_config(config_path: Optional[str] = None,
                use_env: bool = True) -> ParserConfig:
    """
    Load configuration with priority: file > environment > defaults.

    Args:
        config_path: Path to configuration file (optional)
        use_env: Whether to load environment variables

    Returns:
        ParserConfig: Loaded configuration
    """
    config = ParserConfig()

    if use_env:
        try:
            env_config = ParserConfig.from_env()
            for field_name in ParserConfig.__dataclass_fields__:
                env_value = getattr(env_config, field_name)
                if env_value != getattr(config, field_name):
                    setattr(config, field_name, env_value)
        except ConfigurationError as e:
            # Environment config is optional
            logging.warning(f"Ignoring environment configuration: {e}")

    if config_path:
        file_config = ParserConfig.from_file(config_path)
        for field_name in ParserConfig.__dataclass_fields__:
            setattr(config, field_name, getattr(file_config, field_name))

    return config
