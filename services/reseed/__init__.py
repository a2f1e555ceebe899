# Reseed pipeline
from .config import ReseedConfig, SourceConfig, StoreSettings, AdminSettings, default_config
from .errors import (
    ReseedError,
    SourceReadError,
    SourceParseError,
    ResolutionError,
    WriteError,
    ClearError,
    SeedError,
    PipelineCancelled,
    PipelineAborted,
)
from .resolver import ReferenceResolver
from .batch_writer import BatchWriter, WriteResult
from .rate_limiter import WriteRateLimiter
from .retry_handler import RetryHandler, RetryConfig
from .orchestrator import ReseedOrchestrator, PipelineState, FileStats, RunReport

__all__ = [
    'ReseedConfig', 'SourceConfig', 'StoreSettings', 'AdminSettings', 'default_config',
    'ReseedError', 'SourceReadError', 'SourceParseError', 'ResolutionError',
    'WriteError', 'ClearError', 'SeedError', 'PipelineCancelled', 'PipelineAborted',
    'ReferenceResolver', 'BatchWriter', 'WriteResult', 'WriteRateLimiter',
    'RetryHandler', 'RetryConfig',
    'ReseedOrchestrator', 'PipelineState', 'FileStats', 'RunReport',
]
