from pydantic import Field
from pydantic_settings import BaseSettings

from remote_writer.worker import FailurePolicy


class Settings(BaseSettings):
    model_config = {
        'extra': 'ignore',
        'env_file': '.env',
        'env_file_encoding': 'utf-8',
        'frozen': True,
    }

    REMOTE_WRITE_URL: str
    REMOTE_WRITE_INTERVAL: float = Field(default=5.0, gt=0)
    REMOTE_WRITE_TIMEOUT: float | None = Field(default=None, gt=0)
    REMOTE_WRITE_FAILURE_POLICY: FailurePolicy = FailurePolicy.EXIT

    SERVICE_NAME: str = 'remote-writer'
    SERVICE_VERSION: str = '0.1.0'
    LOG_LEVEL: str = 'INFO'
    LOG_FORMAT: str = 'text'


settings = Settings()  # type: ignore[call-arg]
