import argparse
import logging
from typing import List, Optional

import uvicorn

from src.core.config_manager import ConfigManager, ConfigError, ReloadConfig
from src.reload.notifier import ChangeNotifier
from src.server.app import ReloadServer

logger = logging.getLogger(__name__)

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Push compiled changes to the browser")
    parser.add_argument("--config", default="reload.json", help="JSON config file")
    parser.add_argument("--port", type=int, dest="server_port")
    parser.add_argument("--host")
    parser.add_argument("--root", help="project root")
    parser.add_argument("--http-server-root", dest="http_server_root")
    parser.add_argument("--output-dir", dest="output_dir")
    parser.add_argument("--output-to", dest="output_to")
    parser.add_argument("--css-dir", action="append", dest="css_dirs",
                        help="stylesheet directory to watch (repeatable)")
    parser.add_argument("--compile-wait-time", type=int, dest="compile_wait_time",
                        help="debounce before sending, in ms")
    parser.add_argument("--log-level", dest="log_level")
    return parser.parse_args(argv)

def load_config(args: argparse.Namespace) -> ReloadConfig:
    manager = ConfigManager(args.config)
    overrides = {k: v for k, v in vars(args).items() if k != "config"}
    return manager.apply_overrides(overrides)

def build_server(config: ReloadConfig) -> ReloadServer:
    return ReloadServer(ChangeNotifier(config))

def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    try:
        config = load_config(args)
    except ConfigError as e:
        raise SystemExit(f"Invalid configuration: {e}")

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    server = build_server(config)
    uvicorn.run(server.app, host=config.host, port=config.server_port,
                log_level=config.log_level.lower())

if __name__ == '__main__':
    main()
