import argparse
import logging
import time
from pathlib import Path

from .config import load_config
from .watcher import run_watcher, trigger_rerender

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(
                        prog='koreander',
                        description='Renders koreander templates to files and re-renders them on change',
                        epilog='The config file lists src/dst pairs under "write".')
    parser.add_argument('config')
    parser.add_argument('--once', action='store_true', help='render once and exit')
    parser.add_argument('-v', '--verbose', action='store_true', help='log generated code')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(message)s',
                        datefmt='%Y-%m-%d %H:%M:%S')

    if args.once:
        cfg = load_config(Path(args.config))
        trigger_rerender(cfg.jobs)
        return 0

    while True:
        try:
            cfg = load_config(Path(args.config))
            trigger_rerender(cfg.jobs)
            run_watcher(cfg.jobs, cfg.watch_paths | {Path(args.config)})
            return 0
        except Exception:
            logger.exception("Rendering failed")
            print("Please check your configuration and try again, attempting to reload in 3 seconds...")
            time.sleep(3)


if __name__ == '__main__':
    raise SystemExit(main())
