# Copyright (C) 2025 Juraj Marcin <juraj@jurajmarcin.com>
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import shutil
from io import BytesIO
from pathlib import Path, PurePosixPath
from zipfile import BadZipFile, ZipFile

import httpx

from wdacapply.config import Config
from wdacapply.deploy.common import (
    DeployError,
    DownloadError,
    PolicyDeployer,
    PolicyToolchain,
    UnsupportedOSError,
)
from wdacapply.host import BLOCKLIST_BUILD, HostPlatform
from wdacapply.types.reports import DeploymentReport, PolicySource
from wdacapply.utils.logging import get_logger

_logger = get_logger(__name__)

ENFORCED_MEMBER = "SiPolicy_Enforced.p7b"
AUDIT_MEMBER = "SiPolicy_Audit.p7b"


def download_blocklist(client: httpx.Client, url: str) -> bytes:
    _logger.info("Downloading vulnerable driver block list from %r", url)
    try:
        response = client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as ex:
        raise DownloadError(f"Failed to download block list from '{url}': {ex}") from ex
    _logger.debug(
        "Downloaded %d bytes from %r", len(response.content), str(response.url)
    )
    return response.content


def extract_member(archive: bytes, member_name: str, destination: Path) -> Path:
    try:
        with ZipFile(BytesIO(archive)) as zip_file:
            for info in zip_file.infolist():
                name = PurePosixPath(info.filename.replace("\\", "/")).name
                if info.is_dir() or name != member_name:
                    continue
                _logger.verbose("Extracting %r to %r", info.filename, str(destination))
                with zip_file.open(info) as src, open(destination, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                return destination
    except BadZipFile as ex:
        raise DownloadError(f"Downloaded block list is not a zip archive: {ex}") from ex
    raise DownloadError(f"Block list archive does not contain '{member_name}'")


class BlockListDeployer(PolicyDeployer):
    def __init__(
        self,
        config: Config,
        host: HostPlatform,
        toolchain: PolicyToolchain,
        client: httpx.Client,
    ) -> None:
        super().__init__(config, host, toolchain)
        self._client = client

    def deploy(self) -> DeploymentReport:
        if not self._host.supports_blocklist:
            raise UnsupportedOSError(
                f"Block list deployment requires Windows 10 build {BLOCKLIST_BUILD} "
                f"or newer, this system is build {self._host.build}"
            )
        archive = download_blocklist(self._client, self._config.blocklist_url)
        member = ENFORCED_MEMBER if self._config.enforce else AUDIT_MEMBER
        binary = self._config.work_dir / member
        try:
            self._config.work_dir.mkdir(parents=True, exist_ok=True)
        except OSError as ex:
            raise DeployError(f"Failed to create working directory: {ex}") from ex
        extract_member(archive, member, binary)
        destination = self._host.single_policy_path
        self._install(binary, destination)
        return self._finish(
            DeploymentReport(
                source=PolicySource.AUTO,
                enforce=self._config.enforce,
                destination=destination,
                binary_path=binary,
            )
        )
