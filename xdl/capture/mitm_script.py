"""
Entry script loaded by ``mitmdump -s``; `xdl proxy` points mitmdump here.

The config file location is passed through the XDL_CONFIG environment variable.
"""

import os
from pathlib import Path

from xdl.capture.mitm_addon import XdlAddon
from xdl.storage.config_manager import ConfigManager, default_config_file

config_file = Path(os.environ.get("XDL_CONFIG") or default_config_file())
addons = [XdlAddon(ConfigManager(config_file).load_config())]
