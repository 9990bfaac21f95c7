import argparse
import logging
from pathlib import Path
from typing import List, Optional

import colorlog
from tqdm import tqdm

from command_center import __version__ as _PACKAGE_VERSION
from command_center.core.enums import ParserKind
from command_center.core.exceptions import StructuralError

# Parser kind choices for argparse - used across all commands
PARSER_KIND_CHOICES = [k.value for k in ParserKind]


def setup_logging(
    verbose: bool = False, warnings_only: bool = False, errors_only: bool = False
) -> None:
    logger = logging.getLogger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    log_format = (
        "%(asctime)s:%(levelname)s:%(name)s in %(filename)s:%(funcName)s:%(lineno)d: %(message)s"
    )
    log_colors = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold_red",
    }
    stream_handler = colorlog.StreamHandler()
    formatter = colorlog.ColoredFormatter(f"%(log_color)s{log_format}", log_colors=log_colors)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    if errors_only:
        logger.setLevel(logging.ERROR)
    elif warnings_only:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def cmd_admit(args: argparse.Namespace) -> int:
    """Check files against the admission rules for a parser kind.

    Returns:
        0 if every file is admitted
        2 if any file is rejected
    """
    from command_center.ingestion import check_admission

    rejected = 0
    for file_path in args.files:
        path = Path(file_path)
        try:
            size = path.stat().st_size
        except OSError as e:
            logging.error("Cannot read %s: %s", path, e)
            rejected += 1
            continue
        result = check_admission(path.name, size, args.kind)
        if result.valid:
            logging.info("Admitted %s (%d bytes)", path, size)
        else:
            logging.warning("Rejected %s: %s", path, result.error)
            rejected += 1
    return 0 if rejected == 0 else 2


def cmd_sheets(args: argparse.Namespace) -> int:
    from command_center.ingestion import list_sheets

    path = Path(args.file)
    try:
        sheets = list_sheets(path.read_bytes())
    except (OSError, StructuralError) as e:
        logging.error("Unable to list sheets in %s: %s", path, e)
        return 1
    for sheet in sheets:
        year = sheet.year if sheet.year is not None else "-"
        kind = "scenario" if sheet.is_scenario else "budget"
        print(f"{sheet.name}\t{year}\t{kind}")
    return 0


def _load_vocabulary(args: argparse.Namespace):
    from command_center.ingestion.config import build_vocabulary, load_vocabulary_overrides

    if not getattr(args, "vocabulary", None):
        return None
    overrides = load_vocabulary_overrides(Path(args.vocabulary))
    return build_vocabulary(ParserKind(args.kind), overrides)


def cmd_parse(args: argparse.Namespace) -> int:
    """Parse one or more workbooks and report on each.

    A file that cannot be parsed at all only logs an error; the command
    succeeds if at least one file was parsed.

    Returns:
        0 if at least one file was parsed
        1 if no file was parsed
        2 on bad usage (missing files, bad vocabulary)
    """
    from command_center.ingestion import parse_workbook, print_report

    files = [Path(f) for f in args.files]
    missing = [f for f in files if not f.is_file()]
    if missing:
        for f in missing:
            logging.error("Input file not found: %s", f)
        return 2

    try:
        vocabulary = _load_vocabulary(args)
    except (FileNotFoundError, ValueError) as e:
        logging.error("Invalid vocabulary: %s", e)
        return 2

    out_dir: Optional[Path] = None
    if args.output:
        out_dir = Path(args.output).resolve()
        out_dir.mkdir(parents=True, exist_ok=True)

    options = {"sheet_name": args.sheet, "vocabulary": vocabulary}
    if args.kind == ParserKind.BUDGET.value and args.fixed_min_samples is not None:
        options["fixed_cost_min_samples"] = args.fixed_min_samples

    parsed = 0
    pbar = tqdm(
        files,
        desc=f"{'Parsing ' + args.kind:<31}",
        unit="files",
        bar_format="{desc}{percentage:3.0f}%|{bar}| {n:>5}/{total:>5} [{elapsed}<{remaining}, {rate_fmt}]",
        disable=len(files) < 2,
    )
    for path in pbar:
        try:
            result = parse_workbook(path.read_bytes(), args.kind, **options)
        except (OSError, StructuralError) as e:
            logging.error("Failed to parse %s: %s", path, e)
            continue
        parsed += 1

        if result.errors:
            logging.warning("%s: %s", path.name, result.import_summary())
        else:
            logging.info("%s: %s", path.name, result.import_summary())
        print_report(result)

        if out_dir is not None:
            out_path = out_dir / f"{path.stem}_{args.kind.lower()}.json"
            out_path.write_text(result.to_json(), encoding="utf-8")
            logging.info("Saved %s", out_path)
    pbar.close()

    if parsed == 0:
        logging.error("No files were parsed")
        return 1
    return 0


def cmd_template(args: argparse.Namespace) -> int:
    from command_center.ingestion import generate_budget_template

    out_path = Path(args.output)
    if out_path.suffix.lower() != ".xlsx":
        logging.error("Template output must be an .xlsx file: %s", out_path)
        return 2
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(generate_budget_template(args.year))
    logging.info("Budget template written to %s", out_path)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="command-center",
        description=f"Command Center spreadsheet ingestion (v{_PACKAGE_VERSION})",
    )
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    p.add_argument(
        "--warnings-only",
        action="store_true",
        help="Show only warnings and errors (overrides --verbose)",
    )
    p.add_argument(
        "--errors-only",
        action="store_true",
        help="Show only errors (overrides --warnings-only and --verbose)",
    )

    sub = p.add_subparsers(dest="command", required=True)

    p_admit = sub.add_parser("admit", help="Check file extension and size before parsing")
    p_admit.add_argument(
        "--kind", required=True, choices=PARSER_KIND_CHOICES, help="Parser kind"
    )
    p_admit.add_argument("files", nargs="+", help="Files to check")
    p_admit.set_defaults(func=cmd_admit)

    p_sheets = sub.add_parser("sheets", help="List workbook sheets with year and scenario flag")
    p_sheets.add_argument("file", help="Workbook file")
    p_sheets.set_defaults(func=cmd_sheets)

    p_parse = sub.add_parser("parse", help="Parse workbooks and print a report per file")
    p_parse.add_argument(
        "--kind", required=True, choices=PARSER_KIND_CHOICES, help="Parser kind"
    )
    p_parse.add_argument("--sheet", default=None, help="Sheet name (default: per-kind selection)")
    p_parse.add_argument(
        "--vocabulary",
        default=None,
        help="YAML file with extra header aliases, section keywords and skip labels",
    )
    p_parse.add_argument(
        "--output", default=None, help="Directory for <stem>_<kind>.json results"
    )
    p_parse.add_argument(
        "--fixed-min-samples",
        type=int,
        default=None,
        help="Non-zero months required for a fixed cost (BUDGET only)",
    )
    p_parse.add_argument("files", nargs="+", help="Workbook files")
    p_parse.set_defaults(func=cmd_parse)

    p_template = sub.add_parser("template", help="Write a starter budget workbook")
    p_template.add_argument("output", help="Output .xlsx path")
    p_template.add_argument("--year", type=int, default=None, help="Year in the sheet name")
    p_template.set_defaults(func=cmd_template)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        verbose=bool(args.verbose),
        warnings_only=bool(getattr(args, "warnings_only", False)),
        errors_only=bool(getattr(args, "errors_only", False)),
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
