"""Main CLI entry point for the xml-extensions command-line tool.

Captures the extension regions of XML files and prints them as JSON
structures, XML text or a short text report.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from xml_extension_dom import __version__
from xml_extension_dom.api import ExtensionParser, LxmlAdapter
from xml_extension_dom.dom import node_to_dict
from xml_extension_dom.shared import ConfigError, ExtensionConfig, get_logger


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.extension_config = ExtensionConfig()
        self.output_format = "json"
        self.keep_going = False

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file holds ``ExtensionConfig`` fields under ``"extension"`` plus
        the CLI's own ``output_format`` and ``keep_going`` keys.
        """
        config = cls()
        with config_path.open() as f:
            data = json.load(f)

        if "extension" in data:
            config.extension_config = ExtensionConfig.from_dict(data["extension"])
        config.output_format = data.get("output_format", config.output_format)
        config.keep_going = data.get("keep_going", config.keep_going)
        return config


class ExtensionProcessor:
    """Captures extension regions file by file for CLI commands."""

    def __init__(self, config: CLIConfig) -> None:
        self.config = config
        self.parser = ExtensionParser(config.extension_config)
        self.adapter = LxmlAdapter()
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_file(self, file_path: Path) -> Dict[str, Any]:
        """Capture every region of one file and return a JSON-compatible report."""
        if not file_path.is_file():
            return {"file": str(file_path), "success": False, "error": "File not found", "regions": []}

        regions = []
        for result in self.parser.iter_extensions(file_path):
            region: Dict[str, Any] = {"success": result.success}
            if result.element is not None:
                region["tree"] = node_to_dict(result.element)
                xml_text = self.adapter.to_string(result.element)
                if xml_text.success:
                    region["xml"] = xml_text.converted_data
            if result.error is not None:
                region["error"] = result.error.to_dict()
            region["metrics"] = result.metrics.to_dict()
            regions.append(region)

        success = all(region["success"] for region in regions)
        if not success:
            self.logger.warning("Extension capture failed", extra={"file": str(file_path)})
        return {"file": str(file_path), "success": success, "regions": regions}

    def process_files(self, paths: List[Path]) -> List[Dict[str, Any]]:
        results = []
        for path in paths:
            result = self.process_file(path)
            results.append(result)
            if not result["success"] and not self.config.keep_going:
                break
        return results


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-extensions",
        description="Capture vendor extension regions of XML documents verbatim"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    capture_parser = subparsers.add_parser("capture", help="Capture extension regions")
    capture_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files to read"
    )
    capture_parser.add_argument(
        "--root-tag", "-t",
        help="Local name of the element bounding each region (default: extensions)"
    )
    capture_parser.add_argument(
        "--format", "-f",
        choices=["json", "xml", "text"],
        help="Output format (default: json)"
    )
    capture_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    capture_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )
    capture_parser.add_argument(
        "--keep-going", "-k",
        action="store_true",
        help="Continue with the next file after a failed one"
    )
    capture_parser.add_argument(
        "--no-pis",
        action="store_true",
        help="Drop processing instructions inside extension regions"
    )
    capture_parser.add_argument(
        "--forbid-dtd",
        action="store_true",
        help="Reject documents that contain a DTD"
    )
    capture_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    capture_parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format capture reports for output."""
    if format_type == "xml":
        blocks = []
        for result in results:
            for region in result["regions"]:
                if "xml" in region:
                    blocks.append(region["xml"])
        return "\n".join(blocks)

    if format_type == "text":
        if not results:
            return "No results to display."

        successful = sum(1 for r in results if r["success"])
        lines = [f"Processed {len(results)} files, {successful} successful", "-" * 60]
        for result in results:
            status = "OK" if result["success"] else "FAILED"
            lines.append(f"{status} {result['file']}")
            if "error" in result:
                lines.append(f"   Error: {result['error']}")
            for index, region in enumerate(result["regions"]):
                if region["success"]:
                    metrics = region["metrics"]
                    lines.append(
                        f"   Region {index}: {metrics['elements_created']} elements, "
                        f"max depth {metrics['max_depth']}"
                    )
                else:
                    lines.append(f"   Region {index}: {region['error']['kind']}: "
                                 f"{region['error']['message']}")
            lines.append("")
        return "\n".join(lines)

    # Drop the XML rendering from JSON output; the tree already carries it
    return json.dumps(
        [
            {**result, "regions": [
                {key: value for key, value in region.items() if key != "xml"}
                for region in result["regions"]
            ]}
            for result in results
        ],
        indent=2,
        ensure_ascii=False,
    )


def cmd_capture(args: argparse.Namespace) -> int:
    """Handle capture command."""
    config = CLIConfig()
    try:
        if args.config:
            config = CLIConfig.from_file(args.config)

        overrides: Dict[str, Any] = {}
        if args.root_tag:
            overrides["root_tag"] = args.root_tag
        if args.no_pis:
            overrides["preserve_processing_instructions"] = False
        if args.forbid_dtd:
            overrides["reader__forbid_dtd"] = True
        if overrides:
            config.extension_config = config.extension_config.override(**overrides)
    except (OSError, ValueError, ConfigError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    if args.format:
        config.output_format = args.format
    if args.keep_going:
        config.keep_going = True

    processor = ExtensionProcessor(config)
    results = processor.process_files(args.paths)
    formatted_output = format_results(results, config.output_format)

    if args.output:
        try:
            args.output.write_text(formatted_output, encoding="utf-8")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(formatted_output)

    if not results:
        return 1
    return 0 if all(r["success"] for r in results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    try:
        if args.command == "capture":
            return cmd_capture(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
