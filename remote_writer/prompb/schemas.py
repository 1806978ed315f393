from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra='forbid')


class Label(WireModel):
    name: str
    value: str


class Sample(WireModel):
    value: float
    timestamp: int  # milliseconds since epoch


class TimeSeries(WireModel):
    labels: list[Label] = Field(default_factory=list)
    samples: list[Sample] = Field(default_factory=list)


class WriteRequest(WireModel):
    timeseries: list[TimeSeries] = Field(default_factory=list)
