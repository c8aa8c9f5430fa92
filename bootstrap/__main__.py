# bootstrap/__main__.py
import logging
import sys

from bootstrap.bootstrap_context import DEFAULT_CONFIG_DIR

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

_SWITCH_FLAGS = {
    '--debug': 'ENABLE_DEBUG',
    '--nacos': 'ENABLE_NACOS',
    '--queue': 'ENABLE_QUEUE',
    '--custom-port': 'CUSTOM_PORT',
}


def main_cli_entry(argv):
    if argv and argv[0] in ('-h', '--help'):
        print('Usage: python -m bootstrap [<config_dir>] [--debug] [--nacos] [--queue] [--custom-port]')
        print('       python -m bootstrap --version')
        return 0

    if argv and argv[0] == '--version':
        from . import __version__
        print(f'Bootstrap {__version__}')
        return 0

    from .bootstrap_context import Switch
    from .engine import new_engine

    switches = [Switch[_SWITCH_FLAGS[arg]] for arg in argv if arg in _SWITCH_FLAGS]
    unknown = [arg for arg in argv if arg.startswith('--') and arg not in _SWITCH_FLAGS]
    if unknown:
        print(f'Unknown option(s): {" ".join(unknown)}')
        return 1
    positional = [arg for arg in argv if not arg.startswith('--')]
    config_dir = positional[0] if positional else DEFAULT_CONFIG_DIR

    engine = new_engine(*switches, config_dir=config_dir)
    try:
        engine.run()
    except KeyboardInterrupt:
        print('\n✗ Bootstrap interrupted by user')
        return 130
    except Exception as e:
        logger.error(f'Bootstrap failed with an unhandled exception: {e}', exc_info=True)
        print(f'\n✗ FATAL BOOTSTRAP ERROR: {e}')
        return 2
    return 0


def main():
    sys.exit(main_cli_entry(sys.argv[1:]))


if __name__ == '__main__':
    main()
