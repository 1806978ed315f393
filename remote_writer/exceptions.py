class RemoteWriteError(Exception):
    kind = 'remote_write_error'


class GatherError(RemoteWriteError):
    kind = 'gather_error'


class UnknownMetricTypeError(RemoteWriteError):
    kind = 'unknown_metric_type'

    def __init__(self, metric_type: str, family_name: str) -> None:
        super().__init__(
            f'Unknown metric type {metric_type!r} for family {family_name!r}'
        )
        self.metric_type = metric_type
        self.family_name = family_name


class EncodingError(RemoteWriteError):
    kind = 'encoding_error'


class DecodingError(RemoteWriteError):
    kind = 'decoding_error'


class TransportError(RemoteWriteError):
    kind = 'transport_error'


class DeliveryRejectedError(RemoteWriteError):
    kind = 'delivery_rejected'

    def __init__(self, status: int, reason: str | None, body: str = '') -> None:
        super().__init__(
            f'Unexpected response status: {status} {reason or ""}'.strip()
        )
        self.status = status
        self.reason = reason
        self.body = body
