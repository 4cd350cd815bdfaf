"""Versioning utility module"""

import json
import pathlib

from pydantic import BaseModel, HttpUrl


class Version(BaseModel, extra="forbid"):
    """Model for version.json data"""

    source: HttpUrl
    version: str
    commit: str
    build: str


def fetch_app_version_from_file(
    app_root_path: pathlib.Path = pathlib.Path.cwd(),
) -> Version:
    """Fetch the content of the version.json file, which contains the SHA-1 hash
    commit value, repo source url, version, and CI build values.
    During deployment, this file is written and values are populated for
    the current version of the service.

    Errors are not handled here as the desired behavior is for the service to crash.
    The following exceptions can possibly be raised.
    Raises:
        FileNotFoundError if file cannot be found.
        JSONDecodeError if the file cannot be processed.
        ValidationError if Pydantic model validation for Version fails.
    """
    version_file: pathlib.Path = app_root_path / "version.json"
    version_file_content: dict = json.loads(version_file.read_text())
    return Version(**version_file_content)
