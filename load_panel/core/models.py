"""Wire and value models shared by the engine, client and dashboard."""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TestRequestSpec(BaseModel):
    """Shape of one compute request. Built fresh for each dispatch."""

    __test__ = False  # not a pytest test class
    model_config = ConfigDict(frozen=True)

    intensity: int = Field(ge=1)
    complexity: int = Field(default=1, ge=1)

    def to_payload(self) -> dict:
        return {"intensity": self.intensity, "complexity": self.complexity}


class CpuUsage(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    user: float = Field(ge=0)
    system: float = Field(ge=0)


class TestResult(BaseModel):
    """Outcome of one compute request as reported by the endpoint."""

    __test__ = False
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    execution_time_ms: float = Field(
        ge=0, validation_alias=AliasChoices("executionTimeMs", "executionTime", "execution_time_ms")
    )
    intensity: int = Field(ge=1, validation_alias=AliasChoices("intensity", "iterations"))
    cpu_usage: CpuUsage = Field(validation_alias=AliasChoices("cpuUsage", "cpu_usage"))
    timestamp: datetime

    @property
    def cpu_user(self) -> float:
        return self.cpu_usage.user

    @property
    def cpu_system(self) -> float:
        return self.cpu_usage.system

    @property
    def cpu_total_ms(self) -> float:
        return self.cpu_usage.user + self.cpu_usage.system


class ResultSummary(BaseModel):
    """Derived statistics over the current result buffer."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    mean_execution_time_ms: float = 0.0
    mean_cpu_ms: float = 0.0
    min_execution_time_ms: float = 0.0
    max_execution_time_ms: float = 0.0


class CpuInfo(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    cpu_count: int = Field(default=0, alias="cpuCount")
    cpu_model: str = Field(default="", alias="cpuModel")
    load_average: List[float] = Field(default_factory=list, alias="loadAverage")
    cpu_utilization: Optional[float] = Field(default=None, alias="cpuUtilization")
    load_average_1min: Optional[float] = Field(default=None, alias="loadAverage1min")
    load_average_5min: Optional[float] = Field(default=None, alias="loadAverage5min")
    load_average_10min: Optional[float] = Field(default=None, alias="loadAverage10min")


class MemoryInfo(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    total: int = 0
    free: int = 0
    used: int = 0
    usage_percent: Optional[float] = Field(default=None, alias="usagePercent")


class SystemInfo(BaseModel):
    """Snapshot returned by the telemetry endpoint."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    platform: str = ""
    arch: str = ""
    hostname: str = ""
    node_version: str = Field(default="", alias="nodeVersion")
    cpu: CpuInfo = Field(default_factory=CpuInfo)
    memory: MemoryInfo = Field(default_factory=MemoryInfo)
