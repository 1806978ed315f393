import logging

from google.protobuf.message import DecodeError, Message
import snappy

from remote_writer.exceptions import DecodingError, EncodingError
from remote_writer.prompb.schemas import Label, Sample, TimeSeries, WriteRequest
from remote_writer.prompb.types import (
    LabelMessage,
    SampleMessage,
    TimeSeriesMessage,
    WriteRequestMessage,
)

logger = logging.getLogger(__name__)

CONTENT_TYPE = 'application/x-protobuf'
CONTENT_ENCODING = 'snappy'
REMOTE_WRITE_VERSION = '0.1.0'


def _to_message(write_request: WriteRequest) -> Message:
    return WriteRequestMessage(
        timeseries=[
            TimeSeriesMessage(
                labels=[
                    LabelMessage(name=lb.name, value=lb.value) for lb in ts.labels
                ],
                samples=[
                    SampleMessage(value=s.value, timestamp=s.timestamp)
                    for s in ts.samples
                ],
            )
            for ts in write_request.timeseries
        ]
    )


def _from_message(message: Message) -> WriteRequest:
    return WriteRequest(
        timeseries=[
            TimeSeries(
                labels=[Label(name=lb.name, value=lb.value) for lb in ts.labels],
                samples=[
                    Sample(value=s.value, timestamp=s.timestamp) for s in ts.samples
                ],
            )
            for ts in message.timeseries  # type: ignore[attr-defined]
        ]
    )


def serialize(write_request: WriteRequest) -> bytes:
    try:
        data: bytes = _to_message(write_request).SerializeToString()
    except Exception as e:
        raise EncodingError(f'Unable to marshal protobuf: {e}') from e
    logger.debug(
        'WriteRequest serialized',
        extra={'series_count': len(write_request.timeseries), 'size': len(data)},
    )
    return data


def compress(data: bytes) -> bytes:
    try:
        return snappy.compress(data)
    except Exception as e:
        raise EncodingError(f'Unable to snappy-compress payload: {e}') from e


def encode(write_request: WriteRequest) -> bytes:
    return compress(serialize(write_request))


def decompress(payload: bytes) -> bytes:
    try:
        return snappy.uncompress(payload)
    except Exception as e:
        raise DecodingError(f'Unable to snappy-decompress payload: {e}') from e


def deserialize(data: bytes) -> WriteRequest:
    message = WriteRequestMessage()
    try:
        message.ParseFromString(data)
    except DecodeError as e:
        raise DecodingError(f'Unable to unmarshal protobuf: {e}') from e
    return _from_message(message)


def decode(payload: bytes) -> WriteRequest:
    return deserialize(decompress(payload))
