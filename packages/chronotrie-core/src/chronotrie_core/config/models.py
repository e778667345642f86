from typing import Literal

from pydantic import BaseModel, Field


class TrieConfig(BaseModel):
    # Growing depth later means re-keying every stored event.
    depth: int = Field(default=16, gt=0, le=40)
    bucket_ms: int = Field(default=60_000, gt=0)
    hash_algorithm: Literal["murmur3", "sha256"] = "murmur3"
    max_divergences: int | None = Field(default=None, gt=0)


class ClockConfig(BaseModel):
    origin: str = Field(default="", max_length=16)
    max_drift_ms: int = Field(default=60_000, gt=0)


class ChronotrieConfig(BaseModel):
    trie: TrieConfig = Field(default_factory=TrieConfig)
    clock: ClockConfig = Field(default_factory=ClockConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
