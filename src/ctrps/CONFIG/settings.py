# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Settings read from CTRPS_* environment variables and an optional .env file.
"""
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "CTRPS_"


class ListingSettings(BaseSettings):
    """
    Settings shared by the CLI and the listing engine.
    """
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    state_file: str = "ctrps-state.yml"
    proc_root: str = "/proc"
    log_level: str = "WARNING"
    workers: int = Field(default=1, ge=1)

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()


def load_settings(env_file: Optional[str] = None) -> ListingSettings:
    """
    Load settings from the environment.

    Args:
        env_file: .env file to read instead of ./.env. Real environment
            variables take precedence over its values.

    Returns:
        ListingSettings with every unset variable at its default.

    Raises:
        pydantic.ValidationError: A variable holds an invalid value.
    """
    if env_file is None:
        return ListingSettings()
    return ListingSettings(_env_file=env_file)
