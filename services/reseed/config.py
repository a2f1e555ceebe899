"""
Reseed Configuration

Central configuration for a reseed run: source files, store backend,
batching, pacing and the optional admin user.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any
from pathlib import Path

from services.database.store import MAX_BATCH_WRITES


@dataclass
class SourceConfig:
    """One vendor export file and the vendor name it belongs to"""
    path: Path
    vendor_name: str

    def __post_init__(self):
        self.path = Path(self.path)
        if not self.vendor_name or not self.vendor_name.strip():
            raise ValueError(f"Source {self.path} has no vendor name")


@dataclass
class StoreSettings:
    """Which document store backend to use"""
    backend: str = "sqlite"  # "sqlite", "memory", "firestore"
    sqlite_path: Path = Path("./data/catalog.db")
    firestore_project: Optional[str] = None

    def __post_init__(self):
        self.sqlite_path = Path(self.sqlite_path)
        if self.backend not in ("sqlite", "memory", "firestore"):
            raise ValueError(f"Unknown store backend: {self.backend}")


@dataclass
class RetrySettings:
    """Retry of transient commit failures"""
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 10.0
    jitter: str = "full"  # "full", "equal", "decorrelated", "none"


@dataclass
class AdminSettings:
    """Admin user created by the admin variant of the run"""
    enabled: bool = False
    email: str = "admin@dentalkit.com"
    password: Optional[str] = None
    first_name: str = "Admin"
    last_name: str = "User"

    def __post_init__(self):
        if self.enabled and not self.password:
            raise ValueError("Admin user enabled without a password")


@dataclass
class ReseedConfig:
    """Main reseed configuration"""
    # Paths
    data_dir: Path = Path("./data")

    sources: List[SourceConfig] = field(default_factory=list)
    store: StoreSettings = field(default_factory=StoreSettings)
    retry: RetrySettings = field(default_factory=RetrySettings)
    admin: AdminSettings = field(default_factory=AdminSettings)

    # Batching
    chunk_size: int = 100
    prepare_workers: int = 4
    writes_per_second: Optional[float] = None  # None = unpaced

    # Behavior
    abort_on_parse_error: bool = True
    verify: bool = True
    default_category_id: str = "devices"
    taxonomy_path: Optional[Path] = None

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        if self.taxonomy_path is not None:
            self.taxonomy_path = Path(self.taxonomy_path)
        if not 1 <= self.chunk_size <= MAX_BATCH_WRITES:
            raise ValueError(f"chunk_size must be between 1 and {MAX_BATCH_WRITES}")
        if self.prepare_workers < 1:
            raise ValueError("prepare_workers must be at least 1")
        self.prepare_workers = min(self.prepare_workers, self.chunk_size)
        if self.writes_per_second is not None and self.writes_per_second <= 0:
            raise ValueError("writes_per_second must be positive")

        if not self.sources:
            self.sources = [
                SourceConfig(self.data_dir / "schema_22_Kandil.json", "Kandil Medical"),
                SourceConfig(self.data_dir / "schema_61_Denta_Carts.json", "Denta Carts"),
                SourceConfig(
                    self.data_dir / "schema_9_Misr_Sinai_For_Supplies.json",
                    "Misr Sinai For Supplies",
                ),
            ]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReseedConfig":
        data = dict(data)
        if 'sources' in data:
            data['sources'] = [SourceConfig(**s) for s in data['sources']]
        if 'store' in data:
            data['store'] = StoreSettings(**data['store'])
        if 'retry' in data:
            data['retry'] = RetrySettings(**data['retry'])
        if 'admin' in data:
            data['admin'] = AdminSettings(**data['admin'])
        return cls(**data)

    @classmethod
    def from_file(cls, path) -> "ReseedConfig":
        """Load configuration from a JSON file"""
        with open(path, 'r', encoding='utf-8') as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_env(cls, base: Optional["ReseedConfig"] = None) -> "ReseedConfig":
        """
        Override settings from RESEED_* environment variables.

        RESEED_DATA_DIR, RESEED_BACKEND, RESEED_SQLITE_PATH,
        RESEED_FIRESTORE_PROJECT, RESEED_CHUNK_SIZE, RESEED_WORKERS,
        RESEED_WRITES_PER_SECOND, RESEED_ADMIN_EMAIL, RESEED_ADMIN_PASSWORD
        """
        base = base or cls()
        data_dir = os.environ.get("RESEED_DATA_DIR")
        admin_password = os.environ.get("RESEED_ADMIN_PASSWORD", base.admin.password)
        rate = os.environ.get("RESEED_WRITES_PER_SECOND")

        return cls(
            data_dir=Path(data_dir) if data_dir else base.data_dir,
            sources=[] if data_dir else base.sources,
            store=StoreSettings(
                backend=os.environ.get("RESEED_BACKEND", base.store.backend),
                sqlite_path=os.environ.get("RESEED_SQLITE_PATH", base.store.sqlite_path),
                firestore_project=os.environ.get(
                    "RESEED_FIRESTORE_PROJECT", base.store.firestore_project
                ),
            ),
            retry=base.retry,
            admin=AdminSettings(
                enabled=base.admin.enabled or bool(os.environ.get("RESEED_ADMIN_PASSWORD")),
                email=os.environ.get("RESEED_ADMIN_EMAIL", base.admin.email),
                password=admin_password,
                first_name=base.admin.first_name,
                last_name=base.admin.last_name,
            ),
            chunk_size=int(os.environ.get("RESEED_CHUNK_SIZE", base.chunk_size)),
            prepare_workers=int(os.environ.get("RESEED_WORKERS", base.prepare_workers)),
            writes_per_second=float(rate) if rate else base.writes_per_second,
            abort_on_parse_error=base.abort_on_parse_error,
            verify=base.verify,
            default_category_id=base.default_category_id,
            taxonomy_path=base.taxonomy_path,
        )


# Default configuration instance
default_config = ReseedConfig()
