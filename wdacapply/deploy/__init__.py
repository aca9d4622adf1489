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

from logging import getLogger

import httpx

from wdacapply.config import Config
from wdacapply.deploy.blocklist import BlockListDeployer
from wdacapply.deploy.common import PolicyToolchain, check_host
from wdacapply.deploy.xmlpolicy import XMLPolicyDeployer
from wdacapply.host import HostPlatform
from wdacapply.types.reports import DeploymentReport

_logger = getLogger(__name__)


def deploy_policy(
    config: Config,
    host: HostPlatform,
    toolchain: PolicyToolchain,
    client: httpx.Client | None = None,
) -> DeploymentReport:
    check_host(host)
    if config.auto:
        _logger.info("Deploying the vulnerable driver block list")
        if client is not None:
            return BlockListDeployer(config, host, toolchain, client).deploy()
        with httpx.Client(follow_redirects=True, timeout=config.timeout) as client:
            return BlockListDeployer(config, host, toolchain, client).deploy()
    _logger.info("Deploying policy %r", str(config.xml_policy))
    return XMLPolicyDeployer(config, host, toolchain).deploy()
