import argparse
import logging
from pathlib import Path
from typing import Any, Callable

from skytools import __version__
from skytools.client import SkywardClient
from skytools.districts import DistrictSearcher
from skytools.errors import SkywardError
from skytools.gradebook import (
    get_gradebook,
    get_grid_boxes,
    get_terms,
    init_gradebook,
)
from skytools.utils import print_table, to_csv, to_json


def _format_output(data: Any, output_format: str) -> str:
    if output_format == "json":
        return to_json(data)
    if output_format == "csv":
        return to_csv(data)
    return print_table(data)


def _write_output(text: str, output_path: str | None) -> None:
    if output_path:
        with open(output_path, "w", encoding="utf-8") as handle:
            handle.write(text)
        return
    print(text)


def _add_output_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        default="table",
        choices=("table", "json", "csv"),
        help="Output format",
    )
    parser.add_argument("--output", help="Write output to file")


def _add_page_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--html", help="Parse a saved gradebook page instead of fetching it"
    )
    parser.add_argument("--base-url", help="Skyward base URL, e.g. https://host/scripts/wsisa.dll/WService=wsEAplus/")


def _require_value(value: Any, label: str) -> None:
    if value is None or str(value).strip() == "":
        raise ValueError(f"{label} is required")


def _load_payload(args: argparse.Namespace):
    if args.html:
        path = Path(args.html)
        if not path.exists():
            raise ValueError(f"--html file not found: {path}")
        return init_gradebook(path.read_text(encoding="utf-8", errors="ignore"))
    client = SkywardClient(base_url=args.base_url)
    return get_gradebook(client)


def _handle_terms(args: argparse.Namespace) -> str:
    payload = _load_payload(args)
    data = get_terms(payload.header_cells)
    return _format_output(data, args.format)


def _handle_gradebook(args: argparse.Namespace) -> str:
    payload = _load_payload(args)
    terms = get_terms(payload.header_cells)
    data = get_grid_boxes(payload.body_rows, terms, payload.raw_html)
    return _format_output(data, args.format)


def _handle_states(args: argparse.Namespace) -> str:
    data = DistrictSearcher().load_states()
    return _format_output(data, args.format)


def _handle_districts(args: argparse.Namespace) -> str:
    _require_value(args.state, "--state")
    _require_value(args.query, "--query")
    data = DistrictSearcher().search(args.state, args.query)
    return _format_output(data, args.format)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skytools", description="Skyward gradebook command line"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    terms_parser = subparsers.add_parser("terms", help="List gradebook terms")
    _add_page_options(terms_parser)
    _add_output_options(terms_parser)
    terms_parser.set_defaults(handler=_handle_terms)

    gradebook_parser = subparsers.add_parser(
        "gradebook", help="List classified gradebook boxes"
    )
    _add_page_options(gradebook_parser)
    _add_output_options(gradebook_parser)
    gradebook_parser.set_defaults(handler=_handle_gradebook)

    states_parser = subparsers.add_parser(
        "states", help="List states accepted by the district search"
    )
    _add_output_options(states_parser)
    states_parser.set_defaults(handler=_handle_states)

    districts_parser = subparsers.add_parser(
        "districts", help="Search Skyward districts"
    )
    districts_parser.add_argument("--state", help="State id, see 'states'")
    districts_parser.add_argument("--query", help="District name to search for")
    _add_output_options(districts_parser)
    districts_parser.set_defaults(handler=_handle_districts)

    return parser


def main(argv=None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    handler: Callable[[argparse.Namespace], str] = args.handler
    try:
        output_text = handler(args)
    except (ValueError, SkywardError) as exc:
        parser.error(str(exc))
        return
    _write_output(output_text, args.output)


if __name__ == "__main__":
    main()
