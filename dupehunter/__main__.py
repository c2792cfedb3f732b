"""
Entry point for ``python -m dupehunter`` and the ``dupehunter`` script.

    dupehunter a.jpg b.png                # ingest, then report
    find . -name '*.jpg' | dupehunter -   # paths from stdin
    dupehunter config                     # show effective settings
    dupehunter config --init              # write an example config file
"""

import sys


def show_config(args: list[str]) -> int:
    from .user_config import get_user_config

    config = get_user_config()
    path = config.config_file_path

    if '--init' in args or '-i' in args:
        if not config.create_example_config():
            print(f"Could not create {path}")
            return 1
        print(f"Created example configuration file at:\n  {path}")
        return 0

    print(f"Configuration file: {path} ({'found' if path.exists() else 'not found, using defaults'})")
    print("\nEffective settings:")
    for name, value in config.as_dict().items():
        print(f"  {name}: {value}")
    if not path.exists():
        print("\nRun 'dupehunter config --init' to create one.")
    return 0


def main():
    if sys.argv[1:2] == ['config']:
        sys.exit(show_config(sys.argv[2:]))

    from .cli import main as cli_main
    sys.exit(cli_main())


if __name__ == '__main__':
    main()
