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

from logging import basicConfig, getLogger
from shutil import rmtree
from sys import stderr, stdout

from wdacapply.config import Config
from wdacapply.deploy import deploy_policy
from wdacapply.deploy.common import DeployError
from wdacapply.deploy.toolchain import ConfigCIToolchain
from wdacapply.host import HostPlatform
from wdacapply.report import report_formatter_factory

__version__ = "0.1"


def main() -> None:
    config = Config.parse_args(__version__)
    if config is None:
        return
    basicConfig(level=config.log_level, stream=stderr)
    _logger = getLogger(__name__)
    for vf, level in config.log_levels.items():
        getLogger(vf).setLevel(level)
    _logger.debug("%r", config)

    try:
        host = HostPlatform.detect(config.system_root)
        toolchain = ConfigCIToolchain(config.powershell_path, config.citool_path)
        report = deploy_policy(config, host, toolchain)
        report_formatter = report_formatter_factory(config, report)
        if config.output:
            with open(config.output, "w", encoding="locale") as output:
                report_formatter.format_report(output)
        else:
            report_formatter.format_report(stdout)
    except DeployError as ex:
        _logger.error("%s", ex)
    finally:
        if config.keep_work_dir:
            _logger.info("Keeping the working directory '%s'", config.work_dir)
        else:
            _logger.debug("Removing the working directory '%s'", config.work_dir)
            rmtree(config.work_dir, ignore_errors=True)
