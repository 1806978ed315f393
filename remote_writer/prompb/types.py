"""Protobuf message classes of the Prometheus remote write 1.0 protocol.

The descriptor mirrors ``prompb/types.proto`` and ``prompb/remote.proto``
restricted to the fields this exporter writes. Field numbers are part of
the wire contract with the receiving storage and must not change.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message

PACKAGE = 'prometheus'

_Field = descriptor_pb2.FieldDescriptorProto


def _field(
    name: str,
    number: int,
    field_type: int,
    type_name: str | None = None,
    repeated: bool = False,
) -> descriptor_pb2.FieldDescriptorProto:
    field = _Field(
        name=name,
        number=number,
        type=field_type,  # type: ignore[arg-type]
        label=_Field.LABEL_REPEATED if repeated else _Field.LABEL_OPTIONAL,
    )
    if type_name is not None:
        field.type_name = f'.{PACKAGE}.{type_name}'
    return field


def _build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name='prometheus/remote_write.proto',
        package=PACKAGE,
        syntax='proto3',
    )
    file_proto.message_type.add(
        name='Label',
        field=[
            _field('name', 1, _Field.TYPE_STRING),
            _field('value', 2, _Field.TYPE_STRING),
        ],
    )
    file_proto.message_type.add(
        name='Sample',
        field=[
            _field('value', 1, _Field.TYPE_DOUBLE),
            _field('timestamp', 2, _Field.TYPE_INT64),
        ],
    )
    file_proto.message_type.add(
        name='TimeSeries',
        field=[
            _field('labels', 1, _Field.TYPE_MESSAGE, 'Label', repeated=True),
            _field('samples', 2, _Field.TYPE_MESSAGE, 'Sample', repeated=True),
        ],
    )
    write_request = file_proto.message_type.add(
        name='WriteRequest',
        field=[
            _field('timeseries', 1, _Field.TYPE_MESSAGE, 'TimeSeries', repeated=True),
        ],
    )
    # 2 was dropped upstream, 3 carries metadata which is never written
    write_request.reserved_range.add(start=2, end=4)
    return file_proto


FILE_DESCRIPTOR = _build_file_descriptor()

_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(FILE_DESCRIPTOR.SerializeToString())


def _message_class(name: str) -> type[Message]:
    descriptor = _pool.FindMessageTypeByName(f'{PACKAGE}.{name}')
    return message_factory.GetMessageClass(descriptor)


LabelMessage = _message_class('Label')
SampleMessage = _message_class('Sample')
TimeSeriesMessage = _message_class('TimeSeries')
WriteRequestMessage = _message_class('WriteRequest')
