# promptdoc/cli/interface.py
import dataclasses
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
from click_option_group import optgroup
from rich.console import Console as RichConsole
from rich.table import Table as RichTable
import structlog
import toml
import yaml

from promptdoc import __version__ as app_version
from promptdoc.config.loader import load_and_merge_configs, config_from_mapping
from promptdoc.config.settings import DEFAULT_TRUNCATE_MARKER, RenderConfig, Syntax
from promptdoc.core.output import copy_to_clipboard, write_to_file, write_to_stdout
from promptdoc.core.renderer import render_document
from promptdoc.core.serialization import load_document
from promptdoc.exceptions import ConfigError, PromptDocError
from promptdoc.logging_setup import configure_logging

log = structlog.get_logger(__name__)


def _load_context_file(path: Path) -> Dict[str, Any]:
    # json, yaml or toml by suffix; the top level must be a mapping.
    suffix = path.suffix.lower()
    try:
        raw_text = path.read_text(encoding="utf-8-sig")
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(raw_text)
        elif suffix == ".toml":
            data = toml.loads(raw_text)
        else:
            data = json.loads(raw_text)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot load context file '{path}': {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"context file '{path}' must contain a mapping, got {type(data).__name__}")
    return data


def _parse_user_vars(pairs: Tuple[str, ...]) -> Dict[str, str]:
    user_vars: Dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected KEY=VALUE, got '{pair}'", param_hint="--var")
        key, value = pair.split("=", 1)
        user_vars[key.strip()] = value
    return user_vars


def _base_dir_configured(raw: Dict[str, Any], profile: Optional[str]) -> bool:
    if "base_dir" in raw:
        return True
    return bool(profile) and "base_dir" in raw.get("profiles", {}).get(profile, {})


def _print_console_summary(document: Path, config: RenderConfig, context: Dict[str, Any], output: str, destination: str):
    log.debug("console_summary_output_requested")
    table = RichTable(title="promptdoc render summary", show_header=False)
    table.add_column("field", style="cyan")
    table.add_column("value")
    table.add_row("document", str(document))
    table.add_row("syntax", config.syntax.value)
    table.add_row("unknown tags", config.unknown_tag_policy.value)
    table.add_row("context keys", ", ".join(sorted(context)) or "(none)")
    table.add_row("characters", f"{len(output):,}")
    table.add_row("lines", f"{len(output.splitlines()):,}")
    table.add_row("destination", destination)
    RichConsole(stderr=True).print(table)


def _emit_output(output: str, output_file: Optional[Path], clipboard: bool) -> str:
    # returns a short description of where the output went.
    destinations = []
    if output_file:
        write_to_file(output_file, output)
        click.echo(f"Info: Output written to: {output_file}", err=True)
        destinations.append(str(output_file))

    clipboard_copy_succeeded = False
    if clipboard:
        clipboard_copy_succeeded = copy_to_clipboard(output.strip())
        if clipboard_copy_succeeded:
            click.echo("Info: Rendered document copied to clipboard.", err=True)
            destinations.append("clipboard")
        else:
            click.echo("Info: Clipboard copy failed. Outputting to stdout instead.", err=True)

    if not destinations:
        log.info("writing_final_output_to_stdout")
        write_to_stdout(output)
        destinations.append("stdout")
    return ", ".join(destinations)


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("document", type=click.Path(exists=True, dir_okay=False, readable=True, path_type=Path))
@optgroup.group("Context Options", help="Values available to placeholders, conditions and loops.")
@optgroup.option("--context", "context_file", type=click.Path(exists=True, dir_okay=False, readable=True, path_type=Path), default=None, help="JSON, YAML or TOML file holding the root context mapping.")
@optgroup.option("--var", "user_vars", multiple=True, metavar="KEY=VALUE", help="Context variable (string value); overrides --context entries.")
@optgroup.group("Rendering Options", help="How the document is rendered.")
@optgroup.option("--syntax", "syntax_str", type=click.Choice([s.value for s in Syntax]), default=None, help="Output syntax. Default: markdown, or the configured value.")
@optgroup.option("--strict-tags", "strict_tags", is_flag=True, default=False, help="Fail on tags that are neither built in nor registered.")
@optgroup.option("--truncate-marker", "truncate_marker", default=None, help=f"Marker appended where charLimit/tokenLimit cut content. Default: '{DEFAULT_TRUNCATE_MARKER}'.")
@optgroup.option("--concurrent-children", "concurrent_children", is_flag=True, default=False, help="Render sibling nodes concurrently; output order is unchanged.")
@optgroup.group("Output Options", help="Where the rendered document goes.")
@optgroup.option("-o", "--output", "output_file", type=click.Path(dir_okay=False, writable=True, path_type=Path), default=None, help="Path to write the output to.")
@optgroup.option("--clipboard", "clipboard", is_flag=True, default=False, help="Copy output to clipboard.")
@optgroup.option("--console-summary", "console_summary", is_flag=True, default=False, help="Print a render summary table to stderr.")
@optgroup.group("Application Behavior", help="Configuration profiles and logging.")
@optgroup.option("--config-profile", "config_profile", default=None, help="Load a profile from config file(s).")
@optgroup.option("--verbose", "-v", "verbosity_level", count=True, help="Verbosity: -v info, -vv debug.")
@optgroup.option("--force-json-logs", "force_json_logs", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, package_name="promptdoc", prog_name="promptdoc", help="Show version and exit.")
def main_cli(
    document: Path,
    context_file: Optional[Path],
    user_vars: Tuple[str, ...],
    syntax_str: Optional[str],
    strict_tags: bool,
    truncate_marker: Optional[str],
    concurrent_children: bool,
    output_file: Optional[Path],
    clipboard: bool,
    console_summary: bool,
    config_profile: Optional[str],
    verbosity_level: int,
    force_json_logs: bool,
):
    """promptdoc: render a JSON/YAML prompt document to markdown, html,
    json, yaml, xml or plain text."""
    log_level = "warning"
    if verbosity_level == 1:
        log_level = "info"
    elif verbosity_level >= 2:
        log_level = "debug"
    configure_logging(log_level_str=log_level, force_json_logs=force_json_logs)
    log.debug("cli_command_invoked", document=str(document), syntax=syntax_str, profile=config_profile)

    try:
        raw_configs_from_toml_files = load_and_merge_configs()
        config = config_from_mapping(
            raw_configs_from_toml_files,
            profile=config_profile,
            syntax=syntax_str,
            unknown_tag_policy="error" if strict_tags else None,
            truncate_marker=truncate_marker,
            concurrent_children=concurrent_children or None,
        )
        if not _base_dir_configured(raw_configs_from_toml_files, config_profile):
            # media paths in a document are relative to the document by default.
            config = dataclasses.replace(config, base_dir=document.resolve().parent)

        context: Dict[str, Any] = _load_context_file(context_file) if context_file else {}
        context.update(_parse_user_vars(user_vars))

        node = load_document(document)
        output = render_document(node, context, config=config)
        log.info("document_rendered", document=str(document), output_length=len(output))

        destination = _emit_output(output, output_file, clipboard)
        if console_summary:
            _print_console_summary(document, config, context, output, destination)

    except PromptDocError as e:
        log.error("handled_application_error_in_cli", error_type=type(e).__name__, message=str(e))
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
