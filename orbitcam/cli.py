"""
Command-line interface for orbitcam.

Replays a recorded gesture script through the orbit controller and writes
the resulting camera poses as JSON.
"""

import json
import logging
import sys
from typing import Optional

from .config import create_argument_parser, Config
from .replay import load_event_script, replay


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for CLI.

    Args:
        argv: Command-line arguments (None = sys.argv)

    Returns:
        Exit code (0 = success, non-zero = error)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.save_config:
        template = Config.generate_default_config_template()
        with open(args.save_config, 'w') as f:
            f.write(template)
        print(f"Default configuration saved to: {args.save_config}")
        print(f"Edit this file and use with: orbitcam --config {args.save_config} EVENTS")
        return 0

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if not args.events:
        print("Error: an event script must be specified", file=sys.stderr)
        print("\nUse --help for usage information or --save-config to generate a template.", file=sys.stderr)
        return 1

    try:
        config = Config.from_args(args)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        records = load_event_script(args.events)
        poses = replay(records, config)

        payload = json.dumps(
            [pose.to_dict() for pose in poses],
            indent=config.output.indent
        )

        if config.output.path:
            with open(config.output.path, 'w') as f:
                f.write(payload + "\n")
            if args.verbose:
                print(f"{len(poses)} poses → {config.output.path}", file=sys.stderr)
        else:
            print(payload)

        return 0

    except FileNotFoundError as e:
        print(f"Error: File not found: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: Invalid event script: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
