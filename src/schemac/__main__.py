"""CLI entry point: run `schemac app.yaml` or `python -m schemac app.yaml`."""

import logging
import sys
from pathlib import Path


def main(argv=None) -> int:
    import argparse
    from .compiler.driver import CompilerDriver
    from .model.serialization import serialize_type_settings
    from .utils.io_utils import read_source_file

    parser = argparse.ArgumentParser(
        prog="schemac",
        description="Compile an application description and print the type settings of its rank profiles.",
    )
    parser.add_argument("file", type=Path, help="Path to application description (.yaml or .json)")
    parser.add_argument("--compact", action="store_true", help="Print the type settings on one line")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v info, -vv debug)")
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    path = args.file.resolve()
    if not path.is_file():
        sys.stderr.write(f"schemac: error: file not found: {path}\n")
        return 1

    try:
        source = read_source_file(path)
    except (OSError, UnicodeDecodeError) as e:
        sys.stderr.write(f"schemac: error: could not read file: {e}\n")
        return 1

    result = CompilerDriver().compile(source, str(path))

    if not result.success:
        if result.ctx and result.ctx.reporter.has_errors():
            sys.stderr.write(result.ctx.reporter.format_all_errors() + "\n")
        else:
            sys.stderr.write("schemac: compilation failed\n")
        return 1

    sys.stdout.write(serialize_type_settings(result.application, pretty=not args.compact) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
