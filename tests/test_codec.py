import math
import struct

import pytest
import snappy

from remote_writer import codec
from remote_writer.converters import convert_families_to_write_request
from remote_writer.exceptions import DecodingError, EncodingError
from remote_writer.prompb.schemas import Label, Sample, TimeSeries, WriteRequest
from remote_writer.prompb.types import WriteRequestMessage


@pytest.fixture
def write_request(families) -> WriteRequest:
    return convert_families_to_write_request(families, 1_700_000_000_000)


def test_serialize_round_trip(write_request):
    assert codec.deserialize(codec.serialize(write_request)) == write_request


def test_compression_round_trip(write_request):
    serialized = codec.serialize(write_request)

    payload = codec.encode(write_request)

    assert payload != serialized
    assert codec.decompress(payload) == serialized
    assert snappy.uncompress(payload) == serialized


def test_decode(write_request):
    assert codec.decode(codec.encode(write_request)) == write_request


def test_field_numbering_matches_remote_write_proto():
    write_request = WriteRequest(
        timeseries=[
            TimeSeries(
                labels=[Label(name='a', value='b')],
                samples=[Sample(value=1.0, timestamp=2)],
            )
        ]
    )
    label = b'\x0a\x01a\x12\x01b'
    sample = b'\x09' + struct.pack('<d', 1.0) + b'\x10\x02'
    series = (
        b'\x0a' + bytes([len(label)]) + label + b'\x12' + bytes([len(sample)]) + sample
    )
    expected = b'\x0a' + bytes([len(series)]) + series

    assert codec.serialize(write_request) == expected


def test_message_descriptor():
    descriptor = WriteRequestMessage.DESCRIPTOR

    assert descriptor.full_name == 'prometheus.WriteRequest'
    assert descriptor.fields_by_name['timeseries'].number == 1


def test_special_float_values_survive():
    write_request = WriteRequest(
        timeseries=[
            TimeSeries(
                labels=[Label(name='__name__', value='weird')],
                samples=[
                    Sample(value=math.inf, timestamp=1),
                    Sample(value=math.nan, timestamp=1),
                ],
            )
        ]
    )

    [series] = codec.deserialize(codec.serialize(write_request)).timeseries

    assert series.samples[0].value == math.inf
    assert math.isnan(series.samples[1].value)


def test_serialize_failure_is_encoding_error(write_request, monkeypatch):
    def broken(_write_request):
        raise ValueError('boom')

    monkeypatch.setattr(codec, '_to_message', broken)

    with pytest.raises(EncodingError) as exc_info:
        codec.serialize(write_request)
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_compress_failure_is_encoding_error(monkeypatch):
    def broken(_data):
        raise RuntimeError('no snappy today')

    monkeypatch.setattr(codec.snappy, 'compress', broken)

    with pytest.raises(EncodingError):
        codec.compress(b'payload')


def test_decompress_garbage():
    with pytest.raises(DecodingError):
        codec.decompress(b'\xff\xff\xff\xff not snappy')


def test_deserialize_garbage():
    with pytest.raises(DecodingError):
        codec.deserialize(b'\x0a\xff')
